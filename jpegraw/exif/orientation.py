"""Orientation tag lookup and the orientation code -> transform flag table.

``resolve`` is the fast path used by the decoder: it validates the TIFF
header and scans only the 0th IFD for the orientation tag, without decoding
any other value. It never raises; anything malformed means "upright".
"""

import logging
import struct
from typing import Iterable, NamedTuple, Optional

from jpegraw.errors import FormatError, RangeError
from jpegraw.exif.reader import (
    APP1, EXIF_IDENTIFIER, read_entry_count, read_header,
)
from jpegraw.exif.tags import ORIENTATION_TAG
from jpegraw.exif.values import FieldType
from jpegraw.models import MarkerSegment

logger = logging.getLogger(__name__)

IDENTITY = 1


class OrientationFlags(NamedTuple):
    """Transforms needed to display an image upright.

    Applied in the order transpose, vertical flip, horizontal mirror.
    """
    mirror: bool
    flip: bool
    transpose: bool

    @property
    def is_identity(self) -> bool:
        return not (self.mirror or self.flip or self.transpose)


ORIENTATION_FLAGS = {
    1: OrientationFlags(mirror=False, flip=False, transpose=False),
    2: OrientationFlags(mirror=True, flip=False, transpose=False),
    3: OrientationFlags(mirror=True, flip=True, transpose=False),
    4: OrientationFlags(mirror=False, flip=True, transpose=False),
    5: OrientationFlags(mirror=False, flip=False, transpose=True),
    6: OrientationFlags(mirror=True, flip=False, transpose=True),
    7: OrientationFlags(mirror=True, flip=True, transpose=True),
    8: OrientationFlags(mirror=False, flip=True, transpose=True),
}


def is_valid_orientation(code) -> bool:
    return isinstance(code, int) and not isinstance(code, bool) and code in ORIENTATION_FLAGS


def orientation_flags(code: int) -> OrientationFlags:
    """Flags for an orientation code; RangeError outside 1-8."""
    if not is_valid_orientation(code):
        raise RangeError(f'orientation code out of range: {code!r}')
    return ORIENTATION_FLAGS[code]


def _scan(blob: bytes) -> Optional[int]:
    """Raw orientation value of the 0th IFD, or None if there is none."""
    header = read_header(blob)
    cursor = header.cursor(blob)
    count = read_entry_count(cursor)

    for index in range(count):
        entry = cursor.entry(index)
        if entry.tag_id != ORIENTATION_TAG:
            continue
        if entry.type_code == FieldType.SHORT and entry.count == 1:
            return cursor.u16(entry.value_field)
        logger.warning('Illegal orientation tag found [type:%d, count:%d]',
                       entry.type_code, entry.count)
    return None


def _normalize(value: int) -> int:
    return value if value in ORIENTATION_FLAGS else IDENTITY


def resolve(blob: bytes) -> int:
    """Orientation code (1-8) of an EXIF blob; 1 when absent or malformed."""
    try:
        value = _scan(blob)
    except (FormatError, RangeError) as e:
        logger.debug('No orientation: %s', e)
        return IDENTITY
    if value is None:
        return IDENTITY
    return _normalize(value)


def resolve_markers(markers: Iterable[MarkerSegment]) -> int:
    """Orientation from the first APP1 Exif segment that carries one."""
    for marker, payload in markers:
        if marker != APP1 or payload[:len(EXIF_IDENTIFIER)] != EXIF_IDENTIFIER:
            continue
        try:
            value = _scan(payload)
        except (FormatError, RangeError) as e:
            logger.debug('Skipping malformed Exif segment: %s', e)
            continue
        if value is not None:
            return _normalize(value)
    return IDENTITY


def build_orientation_segment(code: int) -> bytes:
    """Minimal big-endian Exif payload holding only an orientation tag."""
    orientation_flags(code)
    return b''.join([
        EXIF_IDENTIFIER,
        b'MM',
        struct.pack('>HI', 0x2A, 8),
        struct.pack('>H', 1),
        struct.pack('>HHIHH', ORIENTATION_TAG, FieldType.SHORT, 1, code, 0),
        struct.pack('>I', 0),
    ])
