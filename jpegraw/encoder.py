"""JPEG encode pipeline -- raw pixels in, compressed stream out."""

import logging
from typing import Optional

from jpegraw.codec import Codec, default_codec
from jpegraw.config import EncoderOptions
from jpegraw.errors import OptionTypeError, RangeError
from jpegraw.exif.orientation import build_orientation_segment
from jpegraw.exif.reader import APP1
from jpegraw.pixels.formats import UNIT_LINES, check_stride, iter_row_batches

logger = logging.getLogger(__name__)


def _check_dimension(name: str, value) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise OptionTypeError(f'{name} must be an integer, not {type(value).__name__}')
    if value <= 0:
        raise RangeError(f'{name} must be positive ({value})')
    return value


class Encoder:
    """Compresses raw frames of a fixed size and pixel format.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        codec: Codec to use; defaults to ``PillowCodec``.
        **options: See ``EncoderOptions``.
    """

    def __init__(self, width: int, height: int, codec: Optional[Codec] = None,
                 **options):
        self.width = _check_dimension('width', width)
        self.height = _check_dimension('height', height)
        self.codec = codec if codec is not None else default_codec()
        self.options = EncoderOptions.from_dict(options)

        fmt = self.options.pixel_format
        if self.options.stride is None:
            self.stride = fmt.min_row_bytes(self.width)
        else:
            self.stride = self.options.stride
            check_stride(fmt, self.width, self.stride)

    @property
    def frame_size(self) -> int:
        """Exact byte length ``encode`` expects."""
        return self.stride * self.height

    def _check_raw(self, raw) -> memoryview:
        if not isinstance(raw, (bytes, bytearray, memoryview)):
            raise OptionTypeError(
                f'raw data must be bytes-like, not {type(raw).__name__}')
        size = len(raw) if not isinstance(raw, memoryview) else raw.nbytes
        if size < self.frame_size:
            raise RangeError(
                f'raw image data is too short ({size} < {self.frame_size})')
        if size > self.frame_size:
            raise RangeError(
                f'raw image data is too large ({size} > {self.frame_size})')
        return memoryview(raw).cast('B')

    def encode(self, raw) -> bytes:
        """Compress one frame of raw pixels to a JPEG stream."""
        data = self._check_raw(raw)
        opts = self.options
        fmt = opts.pixel_format

        session = self.codec.start_compress(
            self.width, self.height, fmt.colorspace, fmt.components,
            opts.quality)

        if opts.orientation is not None:
            session.write_marker(APP1, build_orientation_segment(opts.orientation))

        for nrows, rows in iter_row_batches(fmt, data, self.width, self.height,
                                            self.stride, UNIT_LINES):
            session.write_scanlines(rows, nrows)

        jpeg = session.finish()
        logger.debug('Encoded %dx%d %s frame into %d bytes',
                     self.width, self.height, fmt.name, len(jpeg))
        return jpeg
