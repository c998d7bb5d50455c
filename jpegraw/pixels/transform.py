"""Geometric transforms over raw row-major pixel buffers.

Each operator is specialised per element width. Widths 1, 2 and 4 move
whole pixels as array elements; width 3 has no native element type and
moves each channel as a strided byte slice.
"""

from array import array
from typing import Callable, Dict, Optional, Tuple

from jpegraw.errors import RangeError, UnsupportedError
from jpegraw.exif.orientation import orientation_flags
from jpegraw.models import PixelBuffer

# array typecode of a 4-byte unsigned element
_U32 = 'I' if array('I').itemsize == 4 else 'L'

_TYPECODES = {1: 'B', 2: 'H', 4: _U32}


def _check(buffer, width: int, height: int, bpp: int) -> int:
    if bpp not in SUPPORTED_WIDTHS:
        raise UnsupportedError(f'element width {bpp} is not supported')
    size = width * height * bpp
    if len(buffer) < size:
        raise RangeError(
            f'buffer too short ({len(buffer)} < {size} for '
            f'{width}x{height}x{bpp})')
    return size


def _elements(buffer, size: int, bpp: int) -> array:
    elements = array(_TYPECODES[bpp])
    elements.frombytes(bytes(buffer[:size]))
    return elements


# ---------------------------------------------------------------------------
# Transpose
# ---------------------------------------------------------------------------

def _transpose_elements(src, dst: bytearray, width: int, height: int,
                        bpp: int) -> None:
    size = width * height * bpp
    pixels = _elements(src, size, bpp)
    out = array(pixels.typecode, bytes(size))
    for y in range(height):
        out[y::height] = pixels[y * width:(y + 1) * width]
    dst[:size] = out.tobytes()


def _transpose_rgb(src, dst: bytearray, width: int, height: int,
                   bpp: int) -> None:
    row_bytes = width * 3
    column_step = height * 3
    for y in range(height):
        row = y * row_bytes
        for c in range(3):
            dst[y * 3 + c::column_step] = src[row + c:row + row_bytes:3]


# ---------------------------------------------------------------------------
# Vertical flip
# ---------------------------------------------------------------------------

def _flip_rows(buffer: bytearray, width: int, height: int, bpp: int) -> None:
    row_bytes = width * bpp
    for i in range(height // 2):
        top = i * row_bytes
        bottom = (height - 1 - i) * row_bytes
        buffer[top:top + row_bytes], buffer[bottom:bottom + row_bytes] = (
            buffer[bottom:bottom + row_bytes], buffer[top:top + row_bytes])


# ---------------------------------------------------------------------------
# Horizontal mirror
# ---------------------------------------------------------------------------

def _mirror_elements(buffer: bytearray, width: int, height: int,
                     bpp: int) -> None:
    size = width * height * bpp
    pixels = _elements(buffer, size, bpp)
    for y in range(height):
        start = y * width
        pixels[start:start + width] = pixels[start:start + width][::-1]
    buffer[:size] = pixels.tobytes()


def _mirror_rgb(buffer: bytearray, width: int, height: int, bpp: int) -> None:
    row_bytes = width * 3
    for y in range(height):
        start = y * row_bytes
        row = buffer[start:start + row_bytes]
        for c in range(3):
            buffer[start + c:start + row_bytes:3] = row[c::3][::-1]


_TRANSPOSE: Dict[int, Callable] = {
    1: _transpose_elements,
    2: _transpose_elements,
    3: _transpose_rgb,
    4: _transpose_elements,
}

_FLIP: Dict[int, Callable] = {
    1: _flip_rows,
    2: _flip_rows,
    3: _flip_rows,
    4: _flip_rows,
}

_MIRROR: Dict[int, Callable] = {
    1: _mirror_elements,
    2: _mirror_elements,
    3: _mirror_rgb,
    4: _mirror_elements,
}

SUPPORTED_WIDTHS = frozenset(_TRANSPOSE)


def transpose(buffer, width: int, height: int, bpp: int,
              scratch: Optional[bytearray] = None) -> bytearray:
    """Transpose into a second buffer; returns it (``scratch`` if it fits).

    The result is ``height`` pixels wide and ``width`` pixels high.
    """
    size = _check(buffer, width, height, bpp)
    if scratch is not None and len(scratch) == size:
        dst = scratch
    else:
        dst = bytearray(size)
    _TRANSPOSE[bpp](buffer, dst, width, height, bpp)
    return dst


def flip(buffer: bytearray, width: int, height: int, bpp: int) -> bytearray:
    """Swap row ``i`` with row ``height - 1 - i``, in place."""
    _check(buffer, width, height, bpp)
    _FLIP[bpp](buffer, width, height, bpp)
    return buffer


def mirror(buffer: bytearray, width: int, height: int, bpp: int) -> bytearray:
    """Swap column ``j`` with column ``width - 1 - j`` in every row, in place."""
    _check(buffer, width, height, bpp)
    _MIRROR[bpp](buffer, width, height, bpp)
    return buffer


def apply_orientation(buffer: bytearray, width: int, height: int, bpp: int,
                      code: int, scratch: Optional[bytearray] = None
                      ) -> Tuple[bytearray, int, int]:
    """Bring a decoded buffer upright for an EXIF orientation code.

    Applies transpose, vertical flip and horizontal mirror in that order.
    Returns ``(buffer, width, height)``; the buffer is a different object
    when a transpose was needed.
    """
    flags = orientation_flags(code)
    _check(buffer, width, height, bpp)

    if flags.transpose:
        buffer = transpose(buffer, width, height, bpp, scratch)
        width, height = height, width

    if flags.flip:
        flip(buffer, width, height, bpp)

    if flags.mirror:
        mirror(buffer, width, height, bpp)

    return buffer, width, height


def compact(pixels: PixelBuffer) -> bytearray:
    """Rows of ``pixels`` with any stride padding removed."""
    row_bytes = pixels.width * pixels.bytes_per_pixel
    if pixels.stride == row_bytes:
        return pixels.data
    if pixels.stride < row_bytes:
        raise RangeError(f'stride too short ({pixels.stride} < {row_bytes})')
    out = bytearray(row_bytes * pixels.height)
    for y in range(pixels.height):
        src = y * pixels.stride
        out[y * row_bytes:(y + 1) * row_bytes] = pixels.data[src:src + row_bytes]
    return out


def orient(pixels: PixelBuffer, code: int,
           scratch: Optional[bytearray] = None) -> PixelBuffer:
    """``apply_orientation`` for a ``PixelBuffer``; the result is tightly packed."""
    data, width, height = apply_orientation(
        compact(pixels), pixels.width, pixels.height, pixels.bytes_per_pixel,
        code, scratch)
    return PixelBuffer(data, width, height, pixels.bytes_per_pixel)
