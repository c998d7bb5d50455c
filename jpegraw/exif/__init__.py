"""EXIF metadata: tag catalogs, IFD reader and orientation lookup."""

from jpegraw.exif.cursor import MAX_IFD_DEPTH, ByteOrder, Cursor  # noqa: F401
from jpegraw.exif.orientation import (  # noqa: F401
    ORIENTATION_FLAGS,
    OrientationFlags,
    build_orientation_segment,
    orientation_flags,
    resolve,
    resolve_markers,
)
from jpegraw.exif.reader import (  # noqa: F401
    EXIF_IDENTIFIER,
    find_exif_segment,
    parse,
    parse_markers,
    read_header,
)
from jpegraw.exif.tags import (  # noqa: F401
    EXIF_TAGS,
    GPS_TAGS,
    INTEROPERABILITY_TAGS,
    TIFF_TAGS,
    TagTable,
    lookup,
)
from jpegraw.exif.values import FieldType, decode_value  # noqa: F401
