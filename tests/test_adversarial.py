"""Malformed and hostile EXIF blobs must fail with a typed error, never crash."""

import random
import struct

import pytest

from jpegraw.errors import (
    FormatError, JPEGError, RangeError, UnsupportedTypeError,
)
from jpegraw.exif import orientation
from jpegraw.exif.reader import parse
from tests.conftest import (
    EXIF_HEADER, EXIF_POINTER, GPS_POINTER, build_exif, pack_ifd, rationals,
    tiff_header,
)


def _sample_blob():
    return build_exif(
        [(0x010f, 2, 8, b'Vendor!\x00'), (0x0112, 3, 1, 6)],
        exif=[(0x829a, 5, 1, rationals((1, 60)))],
        gps=[(0x0001, 2, 2, b'S\x00')],
        thumbnail=b'\xff\xd8' + b'\x00' * 20 + b'\xff\xd9',
    )


class TestTruncation:
    def test_every_prefix_fails_cleanly(self):
        blob = _sample_blob()
        for size in range(len(blob)):
            try:
                parse(blob[:size])
            except (FormatError, RangeError):
                pass

    def test_header_prefixes_are_format_errors(self):
        blob = _sample_blob()
        for size in range(14):
            with pytest.raises(FormatError):
                parse(blob[:size])

    def test_entry_table_past_end(self):
        blob = EXIF_HEADER + tiff_header() + struct.pack('<H', 40) + b'\x00' * 12
        with pytest.raises(RangeError):
            parse(blob)

    def test_value_offset_past_end(self):
        blob = build_exif([(0x010f, 2, 100, b'\x00\x10\x00\x00')])
        with pytest.raises(RangeError):
            parse(blob)

    def test_huge_count(self):
        blob = build_exif([(0x0111, 4, 0xFFFFFFFF, b'\x08\x00\x00\x00')])
        with pytest.raises(RangeError):
            parse(blob)

    def test_sub_ifd_pointer_past_end(self):
        blob = build_exif([(GPS_POINTER, 4, 1, 0x7FFF)])
        with pytest.raises(RangeError):
            parse(blob)

    def test_missing_next_ifd_offset_treated_as_end(self):
        blob = build_exif([(0x0112, 3, 1, 3)])
        assert parse(blob[:-4]) == {'orientation': 3}


class TestNesting:
    def test_self_referencing_pointer(self):
        body = pack_ifd([(EXIF_POINTER, 4, 1, 8)], 8)
        blob = EXIF_HEADER + tiff_header() + body
        with pytest.raises(FormatError, match='already read'):
            parse(blob)

    def test_shared_sub_directory_read_once(self):
        # Two pointers in the root IFD target the same directory
        root = pack_ifd([(EXIF_POINTER, 4, 1, 38), (GPS_POINTER, 4, 1, 38)], 8)
        shared = pack_ifd([(0x0112, 3, 1, 1)], 38)
        blob = EXIF_HEADER + tiff_header() + root + shared
        with pytest.raises(FormatError, match='already read'):
            parse(blob)

    def test_fan_out_chain_fails_fast(self):
        # Four directories, each holding 16 pointers to the next one
        fan_out = 16
        size = 2 + 12 * fan_out + 4
        body = b''
        for level in range(4):
            start = 8 + level * size
            body += pack_ifd([(EXIF_POINTER, 4, 1, start + size)] * fan_out, start)
        body += pack_ifd([(0x0112, 3, 1, 1)], 8 + 4 * size)
        with pytest.raises(FormatError, match='already read'):
            parse(EXIF_HEADER + tiff_header() + body)

    def test_next_ifd_pointing_at_root(self):
        body = pack_ifd([(0x0112, 3, 1, 1)], 8, next_ifd=8)
        with pytest.raises(FormatError, match='already read'):
            parse(EXIF_HEADER + tiff_header() + body)

    def test_two_directory_cycle(self):
        first = pack_ifd([(EXIF_POINTER, 4, 1, 26)], 8)
        second = pack_ifd([(GPS_POINTER, 4, 1, 8)], 26)
        blob = EXIF_HEADER + tiff_header() + first + second
        with pytest.raises(FormatError):
            parse(blob)

    def test_deep_distinct_chain(self):
        # Six directories, each pointing at the next
        body = b''
        for level in range(6):
            start = 8 + level * 18
            if level < 5:
                body += pack_ifd([(EXIF_POINTER, 4, 1, start + 18)], start)
            else:
                body += pack_ifd([(0x0112, 3, 1, 1)], start)
        with pytest.raises(FormatError):
            parse(EXIF_HEADER + tiff_header() + body)

    def test_legitimate_nesting_accepted(self):
        doc = parse(build_exif([], exif=[], interop=[(0x0001, 2, 4, b'R98\x00')]))
        assert doc['exif']['interoperability']['interoperability_index'] == 'R98'


class TestBadInput:
    @pytest.mark.parametrize('marker', [b'IM', b'MI', b'\x00\x00', b'ii'])
    def test_bad_byte_order(self, marker):
        blob = EXIF_HEADER + marker + struct.pack('<HI', 42, 8) + pack_ifd([], 8)
        with pytest.raises(FormatError):
            parse(blob)

    @pytest.mark.parametrize('endian', ['<', '>'])
    def test_bad_magic(self, endian):
        bo = b'II' if endian == '<' else b'MM'
        blob = EXIF_HEADER + bo + struct.pack(endian + 'HI', 0x2B, 8) \
            + pack_ifd([], 8, endian)
        with pytest.raises(FormatError):
            parse(blob)

    def test_magic_in_wrong_byte_order(self):
        blob = EXIF_HEADER + b'II' + struct.pack('>HI', 42, 8) + pack_ifd([], 8)
        with pytest.raises(FormatError):
            parse(blob)

    def test_unknown_type_in_sub_ifd(self):
        blob = build_exif([], exif=[(0x9000, 12, 1, b'\x00' * 4)])
        with pytest.raises(UnsupportedTypeError):
            parse(blob)

    def test_random_garbage_after_header(self):
        rng = random.Random(1234)
        for _ in range(200):
            tail = bytes(rng.randrange(256) for _ in range(rng.randrange(2, 96)))
            blob = EXIF_HEADER + tiff_header() + tail
            try:
                parse(blob)
            except JPEGError:
                pass
            # The orientation fast path never raises
            assert 1 <= orientation.resolve(blob) <= 8
