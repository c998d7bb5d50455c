"""Bounds-checked read cursor over an EXIF/TIFF byte blob.

All offsets handled here are absolute offsets into the blob. TIFF value
offsets are relative to the TIFF header; ``Cursor.resolve`` converts them.
"""

import struct
from enum import Enum
from typing import NamedTuple, Optional, Set, Tuple

from jpegraw.errors import FormatError, RangeError

IFD_ENTRY_SIZE = 12

# Deepest legitimate nesting is root -> Exif -> Interoperability
MAX_IFD_DEPTH = 4


class ByteOrder(Enum):
    BIG = '>'
    LITTLE = '<'

    @classmethod
    def from_marker(cls, marker: bytes) -> 'ByteOrder':
        if marker == b'MM':
            return cls.BIG
        if marker == b'II':
            return cls.LITTLE
        raise FormatError('invalid tiff header (byte order marker %r)' % (marker,))


class DirectoryEntry(NamedTuple):
    """One 12-byte IFD entry. ``offset`` is the entry's absolute position."""
    tag_id: int
    type_code: int
    count: int
    raw_value: int
    offset: int

    @property
    def value_field(self) -> int:
        """Absolute position of the 4-byte value/offset field."""
        return self.offset + 8


class Cursor:
    """Read position inside one directory of a parse.

    Every read validates ``offset + size <= len(buffer)`` first and raises
    ``RangeError`` instead of slicing past the end.

    Cursors derived through ``at``/``child`` share one ``visited`` set of
    directory positions, so each directory is read at most once per parse.
    """
    __slots__ = ('buffer', 'header_base', 'position', 'byte_order', 'table',
                 'depth', 'visited')

    def __init__(self, buffer: bytes, header_base: int, position: int,
                 byte_order: ByteOrder, table, depth: int = 0,
                 visited: Optional[Set[int]] = None):
        self.buffer = buffer
        self.header_base = header_base
        self.position = position
        self.byte_order = byte_order
        self.table = table
        self.depth = depth
        self.visited = visited if visited is not None else {position}

    def check(self, offset: int, size: int) -> None:
        if offset < 0 or size < 0 or offset + size > len(self.buffer):
            raise RangeError(
                f'read of {size} bytes at offset {offset} exceeds '
                f'buffer of {len(self.buffer)} bytes')

    def read(self, offset: int, size: int) -> bytes:
        self.check(offset, size)
        return bytes(self.buffer[offset:offset + size])

    def unpack(self, fmt: str, offset: int) -> Tuple:
        fmt = self.byte_order.value + fmt
        self.check(offset, struct.calcsize(fmt))
        return struct.unpack_from(fmt, self.buffer, offset)

    def u16(self, offset: int) -> int:
        return self.unpack('H', offset)[0]

    def u32(self, offset: int) -> int:
        return self.unpack('I', offset)[0]

    def resolve(self, relative: int) -> int:
        """Absolute position of an offset relative to the TIFF header."""
        return self.header_base + relative

    def entry(self, index: int) -> DirectoryEntry:
        """Decode the ``index``-th entry of the directory at ``position``."""
        offset = self.position + 2 + index * IFD_ENTRY_SIZE
        tag_id, type_code, count, raw_value = self.unpack('HHII', offset)
        return DirectoryEntry(tag_id, type_code, count, raw_value, offset)

    def _enter(self, relative: int) -> int:
        position = self.resolve(relative)
        self.check(position, 2)
        if position in self.visited:
            raise FormatError(
                f'IFD pointer to 0x{relative:x} targets a directory already read')
        self.visited.add(position)
        return position

    def at(self, relative: int) -> 'Cursor':
        """Sibling cursor at another directory, same table and depth."""
        position = self._enter(relative)
        return Cursor(self.buffer, self.header_base, position,
                      self.byte_order, self.table, self.depth, self.visited)

    def child(self, relative: int, table) -> 'Cursor':
        """Cursor for a sub-IFD one nesting level down."""
        if self.depth + 1 > MAX_IFD_DEPTH:
            raise FormatError(
                f'sub-IFD nesting deeper than {MAX_IFD_DEPTH} levels '
                f'(pointer to 0x{relative:x})')
        position = self._enter(relative)
        return Cursor(self.buffer, self.header_base, position,
                      self.byte_order, table, self.depth + 1, self.visited)
