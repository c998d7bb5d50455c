"""EXIF/TIFF directory reader -- stdlib only (struct module).

Walks the IFD tree embedded in an APP1 ``Exif\\0\\0`` payload and builds a
plain ``dict`` document keyed by tag name. Sub-IFDs (Exif, GPS,
Interoperability) nest under fixed keys; the 1st IFD, when present,
becomes the ``thumbnail`` document.

Every read goes through ``Cursor``, so malformed or hostile input raises
``FormatError``/``RangeError`` instead of reading past the blob.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from jpegraw.errors import FormatError, RangeError
from jpegraw.exif.cursor import IFD_ENTRY_SIZE, ByteOrder, Cursor
from jpegraw.exif.tags import (
    SUB_IFD_POINTERS, THUMBNAIL_LENGTH_TAG, THUMBNAIL_OFFSET_TAG, TIFF_TAGS,
)
from jpegraw.exif.values import decode_value
from jpegraw.models import MarkerSegment

logger = logging.getLogger(__name__)

EXIF_IDENTIFIER = b'Exif\x00\x00'
TIFF_MAGIC = 0x2A

# The TIFF header starts right after the identifier; all TIFF offsets are
# relative to it.
HEADER_BASE = len(EXIF_IDENTIFIER)
TIFF_HEADER_SIZE = 8

APP1 = 0xE1
MIN_EXIF_SEGMENT = HEADER_BASE + TIFF_HEADER_SIZE

Document = Dict[str, Any]


class TIFFHeader:
    """Parsed TIFF header of an EXIF blob."""
    __slots__ = ('byte_order', 'first_ifd_offset')

    def __init__(self, byte_order: ByteOrder, first_ifd_offset: int):
        self.byte_order = byte_order
        self.first_ifd_offset = first_ifd_offset

    def cursor(self, blob: bytes, table=TIFF_TAGS) -> Cursor:
        """Cursor positioned at the first (0th) IFD."""
        return Cursor(blob, HEADER_BASE, HEADER_BASE + self.first_ifd_offset,
                      self.byte_order, table)


def read_header(blob: bytes) -> TIFFHeader:
    """Validate the identifier and TIFF header of an EXIF blob."""
    if len(blob) < MIN_EXIF_SEGMENT or blob[:HEADER_BASE] != EXIF_IDENTIFIER:
        raise FormatError('invalid exif identifier')

    byte_order = ByteOrder.from_marker(bytes(blob[HEADER_BASE:HEADER_BASE + 2]))
    probe = Cursor(blob, HEADER_BASE, HEADER_BASE, byte_order, TIFF_TAGS)

    if probe.u16(HEADER_BASE + 2) != TIFF_MAGIC:
        raise FormatError('invalid tiff header (magic number)')

    offset = probe.u32(HEADER_BASE + 4)
    if offset < TIFF_HEADER_SIZE or offset >= len(blob) - HEADER_BASE:
        raise RangeError(f'invalid tiff header (first IFD offset {offset})')

    return TIFFHeader(byte_order, offset)


def read_entry_count(cursor: Cursor) -> int:
    """Entry count of the directory at the cursor, checked against the blob."""
    count = cursor.u16(cursor.position)
    cursor.check(cursor.position + 2, count * IFD_ENTRY_SIZE)
    return count


def next_ifd_offset(cursor: Cursor, count: int) -> int:
    """Trailing next-IFD offset; 0 when the blob ends before it."""
    offset = cursor.position + 2 + count * IFD_ENTRY_SIZE
    if offset + 4 > len(cursor.buffer):
        return 0
    return cursor.u32(offset)


def read_directory(cursor: Cursor) -> Tuple[Document, int]:
    """Read one IFD (recursing into sub-IFDs).

    Returns (document, next_ifd_offset).
    """
    document: Document = {}
    count = read_entry_count(cursor)

    for index in range(count):
        entry = cursor.entry(index)

        pointer = SUB_IFD_POINTERS.get(entry.tag_id)
        if pointer is not None:
            key, table = pointer
            child = cursor.child(entry.raw_value, table)
            document[key], _ = read_directory(child)
            continue

        name = cursor.table.lookup(entry.tag_id)
        document[name] = decode_value(cursor, entry)

    return document, next_ifd_offset(cursor, count)


def _thumbnail_range(info: Document) -> Optional[Tuple[int, int]]:
    offset = info.get(TIFF_TAGS.lookup(THUMBNAIL_OFFSET_TAG))
    length = info.get(TIFF_TAGS.lookup(THUMBNAIL_LENGTH_TAG))
    for value in (offset, length):
        if not isinstance(value, int) or value < 0:
            return None
    return offset, length


def read_thumbnail(cursor: Cursor, relative: int) -> Optional[Document]:
    """Read the 1st IFD and promote its embedded JPEG thumbnail.

    Returns None when the directory does not reference a thumbnail.
    """
    info, _ = read_directory(cursor.at(relative))

    span = _thumbnail_range(info)
    if span is None:
        logger.debug('1st IFD has no thumbnail offset/length pair')
        return None

    offset, length = span
    info['jpeg_interchange'] = cursor.read(cursor.resolve(offset), length)
    del info[TIFF_TAGS.lookup(THUMBNAIL_OFFSET_TAG)]
    del info[TIFF_TAGS.lookup(THUMBNAIL_LENGTH_TAG)]
    return info


def parse(blob: bytes) -> Document:
    """Parse a complete EXIF blob (starting with ``Exif\\0\\0``).

    Raises:
        FormatError: bad identifier, byte order, magic, or nesting too deep.
        RangeError: any offset or size outside the blob.
        UnsupportedTypeError: an entry uses an undecodable field type.
    """
    header = read_header(blob)
    cursor = header.cursor(blob)

    document, next_offset = read_directory(cursor)

    if next_offset:
        thumbnail = read_thumbnail(cursor, next_offset)
        if thumbnail is not None:
            document['thumbnail'] = thumbnail

    return document


def is_exif_segment(segment: MarkerSegment) -> bool:
    marker, payload = segment
    return (marker == APP1 and len(payload) >= MIN_EXIF_SEGMENT
            and payload[:HEADER_BASE] == EXIF_IDENTIFIER)


def find_exif_segment(markers: Iterable[MarkerSegment]) -> Optional[bytes]:
    """Payload of the first APP1 Exif segment, or None."""
    for segment in markers:
        if is_exif_segment(segment):
            return bytes(segment[1])
    return None


def parse_markers(markers: Iterable[MarkerSegment]) -> Document:
    """Parse the EXIF document carried by a list of marker segments."""
    blob = find_exif_segment(markers)
    if blob is None:
        return {}
    return parse(blob)
