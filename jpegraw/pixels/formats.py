"""Pixel format registry and row-batch transcoders.

The encoder feeds the codec tightly packed rows in the codec's colour space.
Wire layouts that the codec cannot take directly (packed 4:2:2 and RGB565)
are expanded here, ``UNIT_LINES`` rows at a time.
"""

from typing import Callable, Dict, Iterator, NamedTuple, Optional, Tuple

from jpegraw.errors import OptionTypeError, RangeError, UnsupportedError

# Rows moved per codec call
UNIT_LINES = 10

ENCODE = 'encode'
DECODE = 'decode'


class PixelFormat(NamedTuple):
    """A named raw pixel layout.

    ``bytes_per_pixel`` is the wire size of one pixel; ``components`` is the
    number of bytes per pixel the codec exchanges for this format.
    """
    name: str
    aliases: Tuple[str, ...]
    bytes_per_pixel: int
    components: int
    colorspace: str
    encode: bool = True
    decode: bool = True
    swap_cbcr: bool = False

    def min_row_bytes(self, width: int) -> int:
        """Smallest legal stride for ``width`` pixels."""
        if self.name == 'YUV422':
            return ((width + 1) // 2) * 4
        return width * self.bytes_per_pixel

    def supports(self, direction: str) -> bool:
        return self.encode if direction == ENCODE else self.decode


FORMATS: Tuple[PixelFormat, ...] = (
    PixelFormat('YUV422', ('YUYV',), 2, 3, 'YCbCr', decode=False),
    PixelFormat('RGB565', (), 2, 3, 'RGB', decode=False),
    PixelFormat('RGB', ('RGB24',), 3, 3, 'RGB'),
    PixelFormat('BGR', ('BGR24',), 3, 3, 'BGR'),
    PixelFormat('YUV444', ('YCbCr',), 3, 3, 'YCbCr'),
    PixelFormat('YVU444', ('YCrCb',), 3, 3, 'YCbCr', encode=False,
                swap_cbcr=True),
    PixelFormat('RGBX', ('RGB32',), 4, 4, 'RGBX'),
    PixelFormat('BGRX', ('BGR32',), 4, 4, 'BGRX'),
    PixelFormat('GRAYSCALE', (), 1, 1, 'GRAYSCALE'),
)

_BY_NAME: Dict[str, PixelFormat] = {}
for _fmt in FORMATS:
    for _name in (_fmt.name,) + _fmt.aliases:
        _BY_NAME[_name.upper()] = _fmt


def get_format(name, direction: Optional[str] = None) -> PixelFormat:
    """Look up a pixel format by name or alias (case-insensitive).

    Raises:
        OptionTypeError: ``name`` is not a string.
        UnsupportedError: unknown name, or not available for ``direction``.
    """
    if isinstance(name, PixelFormat):
        fmt = name
    elif not isinstance(name, str):
        raise OptionTypeError(
            f'unsupported :pixel_format option value type: {type(name).__name__}')
    else:
        fmt = _BY_NAME.get(name.upper())
        if fmt is None:
            raise UnsupportedError(f'unsupported :pixel_format option value: {name}')

    if direction is not None and not fmt.supports(direction):
        raise UnsupportedError(
            f'{fmt.name} pixel format is not implemented for {direction}')
    return fmt


def check_stride(fmt: PixelFormat, width: int, stride: int) -> None:
    if stride < fmt.min_row_bytes(width):
        raise RangeError(
            f'stride too short ({stride} < {fmt.min_row_bytes(width)} '
            f'for {width} px of {fmt.name})')


# ---------------------------------------------------------------------------
# Row converters (wire layout -> codec layout)
# ---------------------------------------------------------------------------

_R565 = bytes(b & 0xf8 for b in range(256))
_G565_HI = bytes((b << 5) & 0xe0 for b in range(256))
_G565_LO = bytes((b >> 3) & 0x1c for b in range(256))
_B565 = bytes((b << 3) & 0xf8 for b in range(256))


def expand_yuv422(row: bytes, width: int) -> bytearray:
    """Expand packed ``[Y0 Cb Y1 Cr]`` macropixels to ``Y Cb Cr`` triples.

    For odd widths the second sample of the last macropixel is dropped.
    """
    pairs = (width + 1) // 2
    src = bytes(row[:pairs * 4])
    y0, cb, y1, cr = src[0::4], src[1::4], src[2::4], src[3::4]

    dst = bytearray(pairs * 6)
    dst[0::6] = y0
    dst[1::6] = cb
    dst[2::6] = cr
    dst[3::6] = y1
    dst[4::6] = cb
    dst[5::6] = cr
    del dst[width * 3:]
    return dst


def expand_rgb565(row: bytes, width: int) -> bytearray:
    """Unpack little-endian RGB565 into 8-bit RGB (low bits zero)."""
    src = bytes(row[:width * 2])
    lo, hi = src[0::2], src[1::2]

    dst = bytearray(width * 3)
    dst[0::3] = hi.translate(_R565)
    dst[1::3] = bytes(g_hi | g_lo for g_hi, g_lo in
                      zip(hi.translate(_G565_HI), lo.translate(_G565_LO)))
    dst[2::3] = lo.translate(_B565)
    return dst


def copy_row(row: bytes, width: int, bytes_per_pixel: int) -> bytes:
    return bytes(row[:width * bytes_per_pixel])


_EXPANDERS: Dict[str, Callable[[bytes, int], bytearray]] = {
    'YUV422': expand_yuv422,
    'RGB565': expand_rgb565,
}


def pack_rows(fmt: PixelFormat, data, start: int, width: int, stride: int,
              nrows: int) -> bytes:
    """Convert ``nrows`` wire rows starting at byte ``start`` to codec rows."""
    expand = _EXPANDERS.get(fmt.name)
    out = bytearray()
    for i in range(nrows):
        offset = start + i * stride
        row = data[offset:offset + stride]
        if expand is not None:
            out += expand(row, width)
        else:
            out += copy_row(row, width, fmt.bytes_per_pixel)
    return bytes(out)


def iter_row_batches(fmt: PixelFormat, data, width: int, height: int,
                     stride: int, lines: int = UNIT_LINES
                     ) -> Iterator[Tuple[int, bytes]]:
    """Yield ``(row_count, packed_rows)`` batches covering the whole image."""
    check_stride(fmt, width, stride)
    view = memoryview(data)
    row = 0
    while row < height:
        nrows = min(lines, height - row)
        yield nrows, pack_rows(fmt, view, row * stride, width, stride, nrows)
        row += nrows


# ---------------------------------------------------------------------------
# Decode-side post pass
# ---------------------------------------------------------------------------

def swap_cbcr(buffer: bytearray) -> bytearray:
    """Swap the 2nd and 3rd byte of every 3-byte pixel, in place."""
    cb = buffer[1::3]
    buffer[1::3] = buffer[2::3]
    buffer[2::3] = cb
    return buffer
