"""Data models shared by the EXIF reader, pixel engine and codec sessions."""

from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Dict, List, NamedTuple, Optional


class Rational(NamedTuple):
    """A TIFF RATIONAL/SRATIONAL value, kept as the raw num/denom pair."""
    numerator: int
    denominator: int

    def as_fraction(self) -> Fraction:
        return Fraction(self.numerator, self.denominator)

    def __float__(self) -> float:
        return self.numerator / self.denominator


class MarkerSegment(NamedTuple):
    """A JPEG marker segment: marker code (e.g. 0xE1) and its payload."""
    marker: int
    payload: bytes


@dataclass
class PixelBuffer:
    """A raw, row-major pixel buffer."""
    data: bytearray
    width: int
    height: int
    bytes_per_pixel: int
    stride: int = 0

    def __post_init__(self):
        if not self.stride:
            self.stride = self.width * self.bytes_per_pixel

    @property
    def size(self) -> int:
        return self.stride * self.height


@dataclass
class Meta:
    """Header information for a decoded (or about to be decoded) image."""
    width: int
    height: int
    stride: int
    original_colorspace: str
    output_colorspace: str
    num_components: int
    orientation: int = 1
    exif_tags: Optional[Dict[str, Any]] = None
    colormap: Optional[List[int]] = None


@dataclass
class DecodedImage:
    """Raw pixels produced by ``Decoder.decode`` plus their metadata."""
    data: bytes
    meta: Optional[Meta] = None

    def __bytes__(self) -> bytes:
        return bytes(self.data)

    def __len__(self) -> int:
        return len(self.data)


@dataclass
class CheckResult:
    """Result of probing one file with ``Decoder.is_broken``."""
    path: str
    is_broken: bool
    error: Optional[str] = None
