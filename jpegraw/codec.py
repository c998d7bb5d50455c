"""Codec collaborator -- the JPEG compression transform itself.

jpegraw never implements DCT or entropy coding. It talks to a ``Codec``
that hands out row batches, marker segments and palettes. ``PillowCodec``
is the shipped implementation.

Requires Pillow:
    pip install Pillow
"""

import io
import logging
import math
import struct
import warnings
from abc import ABC, abstractmethod
from fractions import Fraction
from typing import List, Optional, Tuple

from jpegraw.errors import DecodeError, EncodeError, UnsupportedError
from jpegraw.models import MarkerSegment

logger = logging.getLogger(__name__)

# Lazy-checked at call time
_pil = None

# Largest payload a marker segment can carry (16-bit length incl. itself)
MAX_MARKER_PAYLOAD = 0xFFFF - 2

APP0 = 0xE0
COM = 0xFE

# Output colour space -> bytes per pixel
COMPONENTS = {
    'GRAYSCALE': 1,
    'RGB': 3,
    'BGR': 3,
    'YCbCr': 3,
    'RGBX': 4,
    'BGRX': 4,
}


def _require_pillow():
    global _pil
    if _pil is not None:
        return _pil
    try:
        from PIL import Image
        _pil = Image
        return Image
    except ImportError:
        raise ImportError(
            "Pillow is required for JPEG encoding/decoding. "
            "Install it with: pip install Pillow"
        )


def scaled_size(width: int, height: int, scale: Fraction) -> Tuple[int, int]:
    """Output dimensions for a scale factor, rounded up."""
    return (max(1, math.ceil(width * scale)),
            max(1, math.ceil(height * scale)))


# ---------------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------------

class DecompressSession(ABC):
    """One opened JPEG stream.

    After ``open`` the header is parsed: ``markers``, ``width``, ``height``
    and ``colorspace`` are available. ``configure`` selects the output;
    ``read_scanlines`` then yields tightly packed rows.
    """

    markers: List[MarkerSegment]
    width: int
    height: int
    colorspace: str

    output_width: int
    output_height: int
    output_colorspace: str
    output_components: int

    @abstractmethod
    def configure(self, colorspace: str, scale: Fraction = Fraction(1),
                  dither=None) -> None:
        """Select output colour space, scale and optional quantization."""
        ...

    @abstractmethod
    def read_scanlines(self, max_rows: int) -> bytes:
        """Return up to ``max_rows`` output rows; empty once exhausted."""
        ...

    @property
    def palette(self) -> Optional[List[List[int]]]:
        """Colour planes of a quantized output, None otherwise."""
        return None

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class CompressSession(ABC):
    """Compression of one image; rows are written top to bottom."""

    @abstractmethod
    def write_marker(self, marker: int, payload: bytes) -> None:
        ...

    @abstractmethod
    def write_scanlines(self, rows: bytes, nrows: int) -> None:
        ...

    @abstractmethod
    def finish(self) -> bytes:
        """Complete compression and return the JPEG stream."""
        ...


class Codec(ABC):
    """Factory for decompress/compress sessions."""

    @abstractmethod
    def open(self, data: bytes) -> DecompressSession:
        ...

    @abstractmethod
    def start_compress(self, width: int, height: int, colorspace: str,
                       components: int, quality: int) -> CompressSession:
        ...


# ---------------------------------------------------------------------------
# Pillow implementation
# ---------------------------------------------------------------------------

# Colour space -> (Pillow image mode, raw pack/unpack mode)
_PIL_MODES = {
    'GRAYSCALE': ('L', 'L'),
    'RGB': ('RGB', 'RGB'),
    'BGR': ('RGB', 'BGR'),
    'YCbCr': ('YCbCr', 'YCbCr'),
    'RGBX': ('RGB', 'RGBX'),
    'BGRX': ('RGB', 'BGRX'),
}

# Exceptions Pillow raises for undecodable or unencodable data
_PIL_ERRORS = (OSError, SyntaxError, ValueError, EOFError, struct.error)


def _pil_modes(colorspace: str) -> Tuple[str, str]:
    try:
        return _PIL_MODES[colorspace]
    except KeyError:
        raise UnsupportedError(f'colorspace {colorspace} is not supported') from None


def _marker_code(name: str) -> Optional[int]:
    if name.startswith('APP') and name[3:].isdigit():
        return APP0 + int(name[3:])
    if name == 'COM':
        return COM
    return None


def _source_colorspace(img) -> str:
    """Colour space of the compressed data as libjpeg names it."""
    if img.mode == 'L':
        return 'GRAYSCALE'
    transform = img.info.get('adobe_transform')
    if img.mode == 'CMYK':
        return 'YCCK' if transform == 2 else 'CMYK'
    if img.mode == 'RGB':
        return 'RGB' if 'adobe' in img.info and transform == 0 else 'YCbCr'
    return img.mode


class PillowDecompressSession(DecompressSession):

    def __init__(self, data: bytes):
        Image = _require_pillow()
        self._stream = io.BytesIO(bytes(data))
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            try:
                self._img = Image.open(self._stream)
            except _PIL_ERRORS as e:
                raise DecodeError(f'cannot read JPEG header: {e}') from e
        if self._img.format != 'JPEG':
            fmt = self._img.format
            self.close()
            raise DecodeError(f'not a JPEG stream ({fmt})')

        self.markers = []
        for name, payload in getattr(self._img, 'applist', []):
            code = _marker_code(name)
            if code is not None:
                self.markers.append(MarkerSegment(code, bytes(payload)))

        self.width, self.height = self._img.size
        self.colorspace = _source_colorspace(self._img)

        self.configure('RGB')

    def configure(self, colorspace: str, scale: Fraction = Fraction(1),
                  dither=None) -> None:
        _pil_modes(colorspace)
        self.output_colorspace = colorspace
        self.output_width, self.output_height = scaled_size(
            self.width, self.height, scale)
        self._dither = dither if dither is not None and dither.quantize else None
        if self._dither is not None:
            self.output_components = 1
        else:
            self.output_components = COMPONENTS[colorspace]
        self._pixels = None
        self._palette = None
        self._row = 0

    def _load(self):
        img = self._img
        size = (self.output_width, self.output_height)
        if size != img.size:
            if size[0] < img.size[0] and size[1] < img.size[1]:
                img.draft(None, size)
            img.load()
            if img.size != size:
                logger.debug('Resizing %dx%d draft to %dx%d',
                             img.size[0], img.size[1], size[0], size[1])
                img = img.resize(size)
        else:
            img.load()
        return img

    def _quantize(self, img) -> None:
        Image = _require_pillow()
        dither = self._dither
        if self.output_colorspace == 'GRAYSCALE':
            base = img.convert('L').convert('RGB')
        else:
            base = img.convert('RGB')

        method = Image.Quantize.MEDIANCUT if dither.two_pass else Image.Quantize.FASTOCTREE
        paletted = base.quantize(colors=dither.num_colors, method=method)
        # Pillow only error-diffuses when remapping onto a fixed palette;
        # it has no ordered dither for palette output.
        if dither.mode == 'FS':
            paletted = base.quantize(palette=paletted,
                                     dither=Image.Dither.FLOYDSTEINBERG)

        flat = paletted.getpalette() or []
        ncolors = min(len(flat) // 3, dither.num_colors)
        flat = flat[:ncolors * 3]
        if self.output_colorspace == 'GRAYSCALE':
            self._palette = [flat[0::3]]
        else:
            self._palette = [flat[0::3], flat[1::3], flat[2::3]]
        self._pixels = paletted.tobytes()

    def _render(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            try:
                img = self._load()
                if self._dither is not None:
                    self._quantize(img)
                else:
                    mode, rawmode = _pil_modes(self.output_colorspace)
                    self._pixels = img.convert(mode).tobytes('raw', rawmode)
            except _PIL_ERRORS as e:
                raise DecodeError(f'cannot decode JPEG data: {e}') from e

    def read_scanlines(self, max_rows: int) -> bytes:
        if self._pixels is None:
            self._render()
        nrows = min(max_rows, self.output_height - self._row)
        if nrows <= 0:
            return b''
        stride = self.output_width * self.output_components
        start = self._row * stride
        self._row += nrows
        return self._pixels[start:start + nrows * stride]

    @property
    def palette(self) -> Optional[List[List[int]]]:
        if self._dither is not None and self._pixels is None:
            self._render()
        return self._palette

    def close(self) -> None:
        img = getattr(self, '_img', None)
        if img is not None:
            img.close()
            self._img = None


def marker_bytes(marker: int, payload: bytes) -> bytes:
    """Serialize one marker segment (``FF xx`` + length + payload)."""
    if len(payload) > MAX_MARKER_PAYLOAD:
        raise EncodeError(f'marker 0x{marker:02X} payload too large '
                          f'({len(payload)} bytes)')
    return struct.pack('>BBH', 0xFF, marker, len(payload) + 2) + payload


class PillowCompressSession(CompressSession):

    def __init__(self, width: int, height: int, colorspace: str,
                 components: int, quality: int):
        _require_pillow()
        self._mode, self._rawmode = _pil_modes(colorspace)
        self.width = width
        self.height = height
        self.components = components
        self.quality = quality
        self._rows = bytearray()
        self._nrows = 0
        self._exif = None
        self._extra = bytearray()

    def write_marker(self, marker: int, payload: bytes) -> None:
        if marker == 0xE1 and self._exif is None and payload[:6] == b'Exif\x00\x00':
            self._exif = bytes(payload)
        else:
            self._extra += marker_bytes(marker, bytes(payload))

    def write_scanlines(self, rows: bytes, nrows: int) -> None:
        if self._nrows + nrows > self.height:
            raise EncodeError('too many scanlines written')
        self._rows += rows
        self._nrows += nrows

    def finish(self) -> bytes:
        Image = _require_pillow()
        if self._nrows != self.height:
            raise EncodeError(
                f'incomplete image ({self._nrows} of {self.height} rows)')

        options = {'quality': self.quality}
        if self._exif is not None:
            options['exif'] = self._exif
        if self._extra:
            options['extra'] = bytes(self._extra)

        out = io.BytesIO()
        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            try:
                img = Image.frombytes(self._mode, (self.width, self.height),
                                      bytes(self._rows), 'raw', self._rawmode)
                img.save(out, 'JPEG', **options)
            except _PIL_ERRORS as e:
                raise EncodeError(f'cannot encode JPEG data: {e}') from e
        return out.getvalue()


class PillowCodec(Codec):
    """``Codec`` backed by Pillow's libjpeg bindings."""

    def open(self, data: bytes) -> DecompressSession:
        return PillowDecompressSession(data)

    def start_compress(self, width: int, height: int, colorspace: str,
                       components: int, quality: int) -> CompressSession:
        if COMPONENTS.get(colorspace) != components:
            raise UnsupportedError(
                f'{components} components do not match colorspace {colorspace}')
        return PillowCompressSession(width, height, colorspace, components,
                                     quality)


def default_codec() -> Codec:
    return PillowCodec()
