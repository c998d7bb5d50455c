"""Palette (colormap) expansion for quantized decoder output."""

from typing import List, Sequence

from jpegraw.errors import UnsupportedError

MAX_PLANES = 3


def _check_planes(planes: Sequence[Sequence[int]]) -> int:
    n = len(planes)
    if n < 1 or n > MAX_PLANES:
        raise UnsupportedError(
            f'this number of components is not implemented yet ({n})')
    return n


def _lookup_table(plane: Sequence[int]) -> bytes:
    # Indices past the end of a short palette map to 0
    table = bytes(plane[:256])
    return table + bytes(256 - len(table))


def expand_colormap(indices, planes: Sequence[Sequence[int]]) -> bytes:
    """Replace each palette index with its colour, one byte per plane.

    ``out[i * n + c] == planes[c][indices[i]]`` for ``n = len(planes)``.
    """
    n = _check_planes(planes)
    indices = bytes(indices)
    out = bytearray(len(indices) * n)
    for c, plane in enumerate(planes):
        out[c::n] = indices.translate(_lookup_table(plane))
    return bytes(out)


def pack_colormap(planes: Sequence[Sequence[int]]) -> List[int]:
    """One integer per palette entry, first plane in the highest byte."""
    _check_planes(planes)
    packed = []
    for entry in zip(*planes):
        value = 0
        for component in entry:
            value = (value << 8) | component
        packed.append(value)
    return packed
