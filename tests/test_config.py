"""Tests for option validation."""

import json
from fractions import Fraction

import pytest

from jpegraw.config import (
    DEFAULT_QUALITY, DecoderOptions, Dither, EncoderOptions, check_dither,
    check_quality, check_scale,
)
from jpegraw.errors import OptionTypeError, RangeError, UnsupportedError


class TestEncoderOptions:
    def test_defaults(self):
        opts = EncoderOptions()
        assert opts.pixel_format.name == 'YUV422'
        assert opts.quality == DEFAULT_QUALITY == 75
        assert opts.orientation is None
        assert opts.stride is None

    def test_pixel_format_resolved(self):
        assert EncoderOptions(pixel_format='bgr').pixel_format.name == 'BGR'

    def test_decode_only_format_rejected(self):
        with pytest.raises(UnsupportedError):
            EncoderOptions(pixel_format='YVU444')

    @pytest.mark.parametrize('value', [0, 100, 55.9])
    def test_quality_accepted(self, value):
        assert EncoderOptions(quality=value).quality == int(value)

    @pytest.mark.parametrize('value', [-1, 101, 100.5, float('nan'),
                                       float('inf')])
    def test_quality_out_of_range(self, value):
        with pytest.raises(RangeError):
            EncoderOptions(quality=value)

    @pytest.mark.parametrize('value', ['90', None, True, [90]])
    def test_quality_wrong_type(self, value):
        with pytest.raises(OptionTypeError):
            EncoderOptions(quality=value)

    @pytest.mark.parametrize('value', [0, 9])
    def test_orientation_out_of_range(self, value):
        with pytest.raises(RangeError):
            EncoderOptions(orientation=value)

    def test_orientation_wrong_type(self):
        with pytest.raises(OptionTypeError):
            EncoderOptions(orientation='6')

    @pytest.mark.parametrize('value,error', [(0, RangeError), (-4, RangeError),
                                             (3.0, OptionTypeError)])
    def test_bad_stride(self, value, error):
        with pytest.raises(error):
            EncoderOptions(stride=value)

    def test_update_revalidates(self):
        opts = EncoderOptions(pixel_format='RGB')
        updated = opts.update(quality=90)
        assert updated.quality == 90
        assert updated.pixel_format.name == 'RGB'
        assert opts.quality == 75
        with pytest.raises(RangeError):
            opts.update(quality=200)

    def test_update_unknown_option(self):
        with pytest.raises(OptionTypeError, match='bogus'):
            EncoderOptions().update(bogus=1)


class TestDecoderOptions:
    def test_defaults(self):
        opts = DecoderOptions()
        assert opts.pixel_format.name == 'RGB'
        assert opts.dither == Dither('NONE', False, 0)
        assert not opts.dither.quantize
        assert opts.scale == 1
        assert not opts.with_exif_tags
        assert not opts.apply_orientation

    def test_encode_only_format_rejected(self):
        with pytest.raises(UnsupportedError):
            DecoderOptions(pixel_format='YUV422')

    def test_update_keeps_default_dither(self):
        opts = DecoderOptions().update(scale=2)
        assert opts.scale == 2
        assert opts.dither == Dither('NONE', False, 0)

    def test_update_keeps_quantizing_dither(self):
        opts = DecoderOptions(dither=('FS', True, 16)).update(with_exif_tags=True)
        assert opts.dither == Dither('FS', True, 16)
        assert opts.with_exif_tags

    @pytest.mark.parametrize('name', ['output_gamma', 'do_fancy_upsampling',
                                      'do_smoothing', 'dct_method'])
    def test_codec_tuning_options_unknown(self, name):
        with pytest.raises(OptionTypeError, match=name):
            DecoderOptions.from_dict({name: 1})

    def test_flags_coerced_to_bool(self):
        opts = DecoderOptions(with_exif_tags=1, expand_colormap='yes')
        assert opts.with_exif_tags is True
        assert opts.expand_colormap is True


class TestDither:
    def test_valid(self):
        dither = check_dither(['fs', 1, 64])
        assert dither == Dither('FS', True, 64)
        assert dither.quantize

    def test_accepts_dither_instance(self):
        assert check_dither(Dither('ORDERED', False, 8)).mode == 'ORDERED'

    @pytest.mark.parametrize('value,error', [
        ('FS', OptionTypeError),
        (('FS', True), RangeError),
        (('FS', True, 16, 1), RangeError),
        ((1, True, 16), OptionTypeError),
        (('SPIRAL', True, 16), UnsupportedError),
        (('FS', True, 16.0), OptionTypeError),
        (('FS', True, 7), RangeError),
        (('FS', True, 257), RangeError),
    ])
    def test_invalid(self, value, error):
        with pytest.raises(error):
            check_dither(value)

    @pytest.mark.parametrize('count', [8, 256])
    def test_color_count_bounds(self, count):
        assert check_dither(('NONE', False, count)).num_colors == count


class TestScale:
    @pytest.mark.parametrize('value,expected', [
        (1, Fraction(1)),
        (0.5, Fraction(1, 2)),
        (Fraction(3, 8), Fraction(3, 8)),
        (0.125, Fraction(1, 8)),
        (None, Fraction(1)),
    ])
    def test_accepted(self, value, expected):
        assert check_scale(value) == expected

    @pytest.mark.parametrize('value', [0, -1, 0.0, float('inf')])
    def test_out_of_range(self, value):
        with pytest.raises(RangeError):
            check_scale(value)

    @pytest.mark.parametrize('value', ['1/2', [1, 2], False])
    def test_wrong_type(self, value):
        with pytest.raises(OptionTypeError):
            check_scale(value)


class TestQuality:
    def test_fraction(self):
        assert check_quality(Fraction(181, 2)) == 90


class TestFromJson:
    def test_loads_object(self, tmp_path):
        path = tmp_path / 'encode.json'
        path.write_text(json.dumps({'pixel_format': 'RGB', 'quality': 90,
                                    'orientation': 6}))
        opts = EncoderOptions.from_json(path)
        assert opts.pixel_format.name == 'RGB'
        assert opts.quality == 90
        assert opts.orientation == 6

    def test_dither_list(self, tmp_path):
        path = tmp_path / 'decode.json'
        path.write_text(json.dumps({'dither': ['FS', True, 32]}))
        assert DecoderOptions.from_json(path).dither == Dither('FS', True, 32)

    def test_unknown_key(self, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text(json.dumps({'qualty': 90}))
        with pytest.raises(OptionTypeError, match='qualty'):
            EncoderOptions.from_json(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / 'list.json'
        path.write_text('[1, 2]')
        with pytest.raises(OptionTypeError):
            DecoderOptions.from_json(path)
