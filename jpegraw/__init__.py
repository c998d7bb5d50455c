"""jpegraw -- raw JPEG pixel buffers and EXIF metadata extraction."""

__version__ = "1.0.0"

from jpegraw.errors import (
    DecodeError,
    EncodeError,
    FormatError,
    JPEGError,
    OptionTypeError,
    RangeError,
    UnsupportedError,
    UnsupportedTypeError,
)
from jpegraw.models import CheckResult, DecodedImage, MarkerSegment, Meta, PixelBuffer, Rational
from jpegraw.exif import orientation_flags, parse, parse_markers, resolve
from jpegraw.pixels import apply_orientation, expand_colormap
from jpegraw.decoder import Decoder, is_broken
from jpegraw.encoder import Encoder

__all__ = [
    "__version__",
    "JPEGError",
    "FormatError",
    "RangeError",
    "OptionTypeError",
    "UnsupportedError",
    "UnsupportedTypeError",
    "DecodeError",
    "EncodeError",
    "Rational",
    "MarkerSegment",
    "PixelBuffer",
    "Meta",
    "DecodedImage",
    "CheckResult",
    "parse",
    "parse_markers",
    "resolve",
    "orientation_flags",
    "apply_orientation",
    "expand_colormap",
    "Decoder",
    "Encoder",
    "is_broken",
]
