"""Exception types raised by jpegraw.

Every error derives from ``JPEGError`` and also from the builtin exception
that best describes it, so callers can catch either.
"""


class JPEGError(Exception):
    """Base class for all jpegraw errors."""


class FormatError(JPEGError, ValueError):
    """Malformed input: bad identifier, byte-order marker or magic number."""


class RangeError(JPEGError, ValueError):
    """An offset, size or numeric option falls outside its valid range."""


class OptionTypeError(JPEGError, TypeError):
    """An option value has the wrong type."""


class UnsupportedError(JPEGError, NotImplementedError):
    """Pixel format, channel count or element width is not implemented."""


class UnsupportedTypeError(UnsupportedError):
    """A TIFF directory entry uses a field type with no decoder."""

    def __init__(self, type_code: int, tag_id: int):
        super().__init__(
            f'invalid tag data type {type_code} (tag 0x{tag_id:04x})')
        self.type_code = type_code
        self.tag_id = tag_id


class DecodeError(JPEGError, RuntimeError):
    """The codec failed to decompress the input."""


class EncodeError(JPEGError, RuntimeError):
    """The codec failed to compress the input."""
