"""JPEG decode pipeline -- raw pixels plus header metadata.

The codec produces rows; everything around it (orientation lookup, EXIF
parsing, palette expansion, chroma swap, orientation correction) happens
here on raw buffers.
"""

import logging
from typing import Optional

from jpegraw.codec import Codec, DecompressSession, default_codec
from jpegraw.config import DecoderOptions
from jpegraw.errors import DecodeError, OptionTypeError
from jpegraw.exif.orientation import IDENTITY, orientation_flags, resolve_markers
from jpegraw.exif.reader import parse_markers
from jpegraw.models import DecodedImage, Meta, PixelBuffer
from jpegraw.pixels.colormap import expand_colormap, pack_colormap
from jpegraw.pixels.formats import UNIT_LINES, swap_cbcr
from jpegraw.pixels.transform import orient

logger = logging.getLogger(__name__)


def _check_data(data) -> bytes:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise OptionTypeError(
            f'JPEG data must be bytes-like, not {type(data).__name__}')
    return bytes(data)


class Decoder:
    """A reusable decoding session.

    Options (see ``DecoderOptions``) apply to every call until changed
    with ``set``. The session keeps one scratch buffer for transposes
    between calls.
    """

    def __init__(self, codec: Optional[Codec] = None, **options):
        self.codec = codec if codec is not None else default_codec()
        self.options = DecoderOptions.from_dict(options)
        self._scratch: Optional[bytearray] = None

    def set(self, **options) -> 'Decoder':
        """Change some options; the rest keep their current values."""
        self.options = self.options.update(**options)
        return self

    # -- session helpers ---------------------------------------------------

    def _configure(self, session: DecompressSession) -> None:
        opts = self.options
        session.configure(opts.pixel_format.colorspace, scale=opts.scale,
                          dither=opts.dither)

    def _orientation(self, session: DecompressSession) -> int:
        if not self.options.apply_orientation:
            return IDENTITY
        return resolve_markers(session.markers)

    def _palette_planes(self) -> int:
        return 1 if self.options.pixel_format.colorspace == 'GRAYSCALE' else 3

    def _output_colorspace(self, session: DecompressSession) -> str:
        fmt = self.options.pixel_format
        if fmt.swap_cbcr and not self.options.dither.quantize:
            return fmt.aliases[0]
        if self.options.dither.quantize and fmt.colorspace != 'GRAYSCALE':
            return 'RGB'
        return session.output_colorspace

    def _meta(self, session: DecompressSession, width: int, height: int,
              components: int, orientation: int, palette=None) -> Meta:
        opts = self.options
        meta = Meta(
            width=width,
            height=height,
            stride=width * components,
            original_colorspace=session.colorspace,
            output_colorspace=self._output_colorspace(session),
            num_components=components,
            orientation=orientation,
        )
        if opts.with_exif_tags:
            meta.exif_tags = parse_markers(session.markers)
        if opts.dither.quantize and palette is not None:
            meta.colormap = pack_colormap(palette)
        return meta

    # -- public API --------------------------------------------------------

    def read_header(self, data) -> Meta:
        """Header metadata without decoding any pixels."""
        data = _check_data(data)
        with self.codec.open(data) as session:
            orientation = self._orientation(session)
            self._configure(session)

            width = session.output_width
            height = session.output_height
            components = session.output_components
            if self.options.dither.quantize and self.options.expand_colormap:
                components = self._palette_planes()
            if orientation_flags(orientation).transpose:
                width, height = height, width

            return self._meta(session, width, height, components, orientation)

    def _read_rows(self, session: DecompressSession) -> bytearray:
        width = session.output_width
        height = session.output_height
        stride = width * session.output_components

        buffer = bytearray(stride * height)
        row = 0
        while row < height:
            chunk = session.read_scanlines(UNIT_LINES)
            nrows = len(chunk) // stride if stride else 0
            if nrows == 0:
                raise DecodeError(
                    f'premature end of image data (row {row} of {height})')
            start = row * stride
            buffer[start:start + nrows * stride] = chunk[:nrows * stride]
            row += nrows
        return buffer

    def decode(self, data) -> DecodedImage:
        """Decode a JPEG stream into raw pixels in the configured format."""
        data = _check_data(data)
        opts = self.options

        with self.codec.open(data) as session:
            orientation = self._orientation(session)
            self._configure(session)

            width = session.output_width
            height = session.output_height
            components = session.output_components

            buffer = self._read_rows(session)
            palette = session.palette if opts.dither.quantize else None

            if palette is not None and opts.expand_colormap:
                buffer = bytearray(expand_colormap(buffer, palette))
                components = len(palette)

            if opts.pixel_format.swap_cbcr and not opts.dither.quantize:
                swap_cbcr(buffer)

            if orientation != IDENTITY:
                logger.debug('Applying orientation %d to %dx%d image',
                             orientation, width, height)
                source = PixelBuffer(buffer, width, height, components)
                upright = orient(source, orientation, scratch=self._scratch)
                if upright.data is not source.data:
                    self._scratch = source.data
                buffer, width, height = upright.data, upright.width, upright.height

            meta = None
            if not opts.without_meta:
                meta = self._meta(session, width, height, components,
                                  orientation, palette)

        return DecodedImage(bytes(buffer), meta)

    def is_broken(self, data) -> bool:
        return is_broken(data, self.codec)


def is_broken(data, codec: Optional[Codec] = None) -> bool:
    """True if the codec cannot even read the header of ``data``."""
    codec = codec if codec is not None else default_codec()
    try:
        with codec.open(_check_data(data)):
            pass
    except DecodeError as e:
        logger.debug('Broken JPEG: %s', e)
        return True
    return False
