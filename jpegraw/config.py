"""Validated encoder/decoder options.

Options arrive as keyword arguments (or a JSON file via ``from_json``) and
are checked once, up front, so the codec never sees an invalid value.
Type problems raise ``OptionTypeError``; out-of-range values raise
``RangeError``; unknown option names raise ``OptionTypeError`` and unknown
pixel formats or dither modes raise ``UnsupportedError``.
"""

import json
import math
from dataclasses import dataclass, fields, replace
from fractions import Fraction
from numbers import Rational as _RationalNumber
from typing import Any, Dict, NamedTuple, Optional, Union

from jpegraw.errors import OptionTypeError, RangeError, UnsupportedError
from jpegraw.pixels.formats import DECODE, ENCODE, get_format

DEFAULT_QUALITY = 75
DEFAULT_ENCODE_FORMAT = 'YUV422'
DEFAULT_DECODE_FORMAT = 'RGB'

DITHER_MODES = ('NONE', 'ORDERED', 'FS')
MIN_COLORS = 8
MAX_COLORS = 256


class Dither(NamedTuple):
    mode: str
    two_pass: bool
    num_colors: int

    @property
    def quantize(self) -> bool:
        return self.mode != 'NONE'


# Stored when no dither option is given
NO_DITHER = Dither('NONE', False, 0)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_real(value) -> bool:
    return (isinstance(value, (int, float, _RationalNumber))
            and not isinstance(value, bool))


def check_quality(value) -> int:
    if not _is_real(value):
        raise OptionTypeError(
            f'unsupported :quality option type: {type(value).__name__}')
    if isinstance(value, float) and not math.isfinite(value):
        raise RangeError(f'unsupported :quality option value: {value}')
    if value < 0:
        raise RangeError(':quality less than 0')
    if value > 100:
        raise RangeError(':quality greater than 100')
    return int(value)


def check_orientation(value) -> Optional[int]:
    if value is None:
        return None
    if not _is_int(value):
        raise OptionTypeError(
            f'unsupported :orientation option type: {type(value).__name__}')
    if value < 1 or value > 8:
        raise RangeError(f':orientation option out of range: {value}')
    return value


def check_stride(value) -> Optional[int]:
    if value is None:
        return None
    if not _is_int(value):
        raise OptionTypeError(
            f'unsupported :stride option type: {type(value).__name__}')
    if value <= 0:
        raise RangeError(f':stride must be positive: {value}')
    return value


def check_dither(value) -> Dither:
    if value is None or value == NO_DITHER:
        return NO_DITHER
    if isinstance(value, Dither):
        value = tuple(value)
    if not isinstance(value, (list, tuple)):
        raise OptionTypeError(
            f'unsupported :dither type: {type(value).__name__}')
    if len(value) != 3:
        raise RangeError(f':dither invalid size ({len(value)})')

    mode, two_pass, num_colors = value
    if not isinstance(mode, str):
        raise OptionTypeError(
            f'unsupported dither mode type: {type(mode).__name__}')
    mode = mode.upper()
    if mode not in DITHER_MODES:
        raise UnsupportedError(f'dither mode is illegal value: {mode}')
    if not _is_int(num_colors):
        raise OptionTypeError(
            f'unsupported number of colors type: {type(num_colors).__name__}')
    if num_colors < MIN_COLORS:
        raise RangeError(f'number of colors less than {MIN_COLORS}')
    if num_colors > MAX_COLORS:
        raise RangeError(f'number of colors greater than {MAX_COLORS}')
    return Dither(mode, bool(two_pass), num_colors)


def check_scale(value) -> Fraction:
    if value is None:
        return Fraction(1)
    if not _is_real(value):
        raise OptionTypeError(
            f'unsupported :scale option type: {type(value).__name__}')
    if isinstance(value, float):
        if not math.isfinite(value):
            raise RangeError(f'unsupported :scale option value: {value}')
        value = Fraction(value).limit_denominator(1000)
    value = Fraction(value)
    if value <= 0:
        raise RangeError(':scale less equal 0')
    return value


class _Options:
    """Shared constructors for the option dataclasses."""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise OptionTypeError(f'unknown option(s): {", ".join(unknown)}')
        return cls(**data)

    @classmethod
    def from_json(cls, path):
        """Load options from a JSON object file.

        JSON format::

            {"pixel_format": "RGB", "quality": 90}

        Omitted keys keep their defaults.
        """
        with open(str(path), 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise OptionTypeError('option file must hold a JSON object')
        return cls.from_dict(data)

    def update(self, **options):
        """Copy with some options replaced, re-validated."""
        unknown = sorted(set(options) - {f.name for f in fields(self)})
        if unknown:
            raise OptionTypeError(f'unknown option(s): {", ".join(unknown)}')
        return replace(self, **options)


@dataclass
class EncoderOptions(_Options):
    """Options accepted by ``Encoder``.

    ``stride`` defaults to the tight row size of ``pixel_format``; it is
    checked against the image width by the encoder.
    """
    pixel_format: Any = DEFAULT_ENCODE_FORMAT
    quality: Union[int, float] = DEFAULT_QUALITY
    orientation: Optional[int] = None
    stride: Optional[int] = None

    def __post_init__(self):
        self.pixel_format = get_format(self.pixel_format, ENCODE)
        self.quality = check_quality(self.quality)
        self.orientation = check_orientation(self.orientation)
        self.stride = check_stride(self.stride)


@dataclass
class DecoderOptions(_Options):
    """Options accepted by ``Decoder``."""
    pixel_format: Any = DEFAULT_DECODE_FORMAT
    dither: Any = None
    without_meta: bool = False
    expand_colormap: bool = False
    scale: Any = 1
    with_exif_tags: bool = False
    apply_orientation: bool = False

    def __post_init__(self):
        self.pixel_format = get_format(self.pixel_format, DECODE)
        self.dither = check_dither(self.dither)
        self.without_meta = bool(self.without_meta)
        self.expand_colormap = bool(self.expand_colormap)
        self.scale = check_scale(self.scale)
        self.with_exif_tags = bool(self.with_exif_tags)
        self.apply_orientation = bool(self.apply_orientation)
