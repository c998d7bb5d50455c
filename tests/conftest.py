"""Shared test fixtures -- synthetic EXIF blobs, fake codec, Pillow JPEGs."""

import io
import struct

import pytest

from jpegraw.codec import Codec, CompressSession, DecompressSession, scaled_size
from jpegraw.errors import DecodeError
from jpegraw.models import MarkerSegment

EXIF_HEADER = b'Exif\x00\x00'

EXIF_POINTER = 0x8769
GPS_POINTER = 0x8825
INTEROP_POINTER = 0xA005

# Inline struct format for int values per TIFF type
_INT_FORMATS = {1: 'B', 3: 'H', 4: 'I', 9: 'i'}


def rationals(*pairs, endian='<', signed=False):
    """Pack (num, denom) pairs as RATIONAL (or SRATIONAL) bytes."""
    fmt = 'i' if signed else 'I'
    return b''.join(struct.pack(endian + fmt * 2, n, d) for n, d in pairs)


def shorts(*values, endian='<'):
    return struct.pack(endian + 'H' * len(values), *values)


def longs(*values, endian='<'):
    return struct.pack(endian + 'I' * len(values), *values)


def _raw_value(value, type_id, endian):
    if isinstance(value, int):
        return struct.pack(endian + _INT_FORMATS[type_id], value)
    return bytes(value)


def ifd_size(entries):
    """Bytes taken by an IFD and its out-of-line data."""
    size = 2 + 12 * len(entries) + 4
    for _, type_id, _, value in entries:
        if not isinstance(value, int) and len(value) > 4:
            size += len(value)
    return size


def pack_ifd(entries, start, endian='<', next_ifd=0):
    """Pack one IFD located at ``start`` (relative to the TIFF header).

    Args:
        entries: List of (tag_id, type_id, count, value) tuples.
            Pass an int for single BYTE/SHORT/LONG/SLONG values; pass bytes
            otherwise. Bytes longer than 4 go out of line after the IFD.
    """
    n = len(entries)
    data_start = start + 2 + 12 * n + 4
    out = struct.pack(endian + 'H', n)
    data = b''
    for tag_id, type_id, count, value in entries:
        raw = _raw_value(value, type_id, endian)
        out += struct.pack(endian + 'HHI', tag_id, type_id, count)
        if len(raw) <= 4:
            out += raw.ljust(4, b'\x00')
        else:
            out += struct.pack(endian + 'I', data_start + len(data))
            data += raw
    out += struct.pack(endian + 'I', next_ifd)
    return out + data


def tiff_header(endian='<', first_ifd=8):
    bo = b'II' if endian == '<' else b'MM'
    return bo + struct.pack(endian + 'HI', 0x2A, first_ifd)


def build_exif(root, endian='<', exif=None, gps=None, interop=None,
               thumbnail=None, ifd1=None):
    """Build an ``Exif\\0\\0`` blob.

    Sub-IFD pointer entries are appended automatically: Exif and GPS to the
    root IFD, Interoperability to the Exif IFD. ``thumbnail`` bytes are
    placed after all directories and referenced from the 1st IFD.
    """
    root = list(root)
    if exif is not None:
        exif = list(exif)
        root.append((EXIF_POINTER, 4, 1, 0))
        if interop is not None:
            exif.append((INTEROP_POINTER, 4, 1, 0))
    if gps is not None:
        root.append((GPS_POINTER, 4, 1, 0))
    if thumbnail is not None and ifd1 is None:
        ifd1 = [(0x0103, 3, 1, 6),
                (0x0201, 4, 1, 0),
                (0x0202, 4, 1, len(thumbnail))]

    blocks = [('root', root), ('exif', exif), ('interop', interop),
              ('gps', gps), ('ifd1', ifd1)]
    blocks = [(name, entries) for name, entries in blocks if entries is not None]

    starts = {}
    offset = 8
    for name, entries in blocks:
        starts[name] = offset
        offset += ifd_size(entries)
    tail = offset

    pointers = {
        EXIF_POINTER: starts.get('exif'),
        GPS_POINTER: starts.get('gps'),
        INTEROP_POINTER: starts.get('interop'),
    }

    def patch(entries):
        patched = []
        for tag_id, type_id, count, value in entries:
            if tag_id in pointers and pointers[tag_id] is not None and value == 0:
                value = pointers[tag_id]
            elif tag_id == 0x0201 and thumbnail is not None and value == 0:
                value = tail
            patched.append((tag_id, type_id, count, value))
        return patched

    blob = tiff_header(endian)
    for name, entries in blocks:
        next_ifd = starts['ifd1'] if name == 'root' and 'ifd1' in starts else 0
        blob += pack_ifd(patch(entries), starts[name], endian, next_ifd)
    if thumbnail is not None:
        blob += thumbnail
    return EXIF_HEADER + blob


def orientation_blob(value, type_id=3, count=1, endian='<', extra=()):
    """EXIF blob whose root IFD holds an orientation entry."""
    entries = list(extra) + [(0x0112, type_id, count, value)]
    return build_exif(entries, endian=endian)


# ---------------------------------------------------------------------------
# Fake codec
# ---------------------------------------------------------------------------

class FakeDecompressSession(DecompressSession):
    """Serves preset pixels; records how rows were requested."""

    def __init__(self, pixels, width, height, components=3, markers=(),
                 colorspace='YCbCr', palette=None):
        self.markers = [MarkerSegment(m, p) for m, p in markers]
        self.width = width
        self.height = height
        self.colorspace = colorspace
        self._pixels = bytes(pixels)
        self._components = components
        self._palette = palette
        self.batches = []
        self.closed = False
        self.configured = None
        self.configure('RGB')

    def configure(self, colorspace, scale=1, dither=None):
        self.configured = (colorspace, scale, dither)
        self.output_colorspace = colorspace
        self.output_width, self.output_height = scaled_size(
            self.width, self.height, scale)
        self.output_components = self._components
        self._row = 0

    def read_scanlines(self, max_rows):
        nrows = min(max_rows, self.output_height - self._row)
        if nrows <= 0:
            return b''
        self.batches.append(nrows)
        stride = self.output_width * self.output_components
        start = self._row * stride
        self._row += nrows
        return self._pixels[start:start + nrows * stride]

    @property
    def palette(self):
        return self._palette

    def close(self):
        self.closed = True


class FakeCompressSession(CompressSession):

    def __init__(self, width, height, colorspace, components, quality):
        self.width = width
        self.height = height
        self.colorspace = colorspace
        self.components = components
        self.quality = quality
        self.markers = []
        self.batches = []
        self.rows = bytearray()

    def write_marker(self, marker, payload):
        self.markers.append(MarkerSegment(marker, bytes(payload)))

    def write_scanlines(self, rows, nrows):
        self.batches.append(nrows)
        self.rows += rows

    def finish(self):
        return b'\xff\xd8' + bytes(self.rows) + b'\xff\xd9'


class FakeCodec(Codec):
    """Codec double: ``open`` returns a session over preset pixels."""

    def __init__(self, **session_args):
        self.session_args = session_args
        self.sessions = []
        self.broken = False

    def open(self, data):
        if self.broken or not data.startswith(b'\xff\xd8'):
            raise DecodeError('not a JPEG file')
        session = FakeDecompressSession(**self.session_args)
        self.sessions.append(session)
        return session

    def start_compress(self, width, height, colorspace, components, quality):
        session = FakeCompressSession(width, height, colorspace, components,
                                      quality)
        self.sessions.append(session)
        return session


FAKE_JPEG = b'\xff\xd8fake\xff\xd9'


@pytest.fixture
def fake_codec():
    """A 3x2 RGB image: pixel i has bytes (i, 10 + i, 20 + i)."""
    pixels = b''.join(bytes([i, 10 + i, 20 + i]) for i in range(6))
    return FakeCodec(pixels=pixels, width=3, height=2, components=3)


# ---------------------------------------------------------------------------
# Pillow-generated JPEGs
# ---------------------------------------------------------------------------

def make_jpeg(width=32, height=16, mode='RGB', color=None, exif=None,
              halves=None, quality=95):
    """Encode a solid (or two-colour) image with Pillow.

    Args:
        halves: Optional (left_color, right_color); splits the image at
            ``width // 2``.
        exif: Optional raw APP1 payload (starting with ``Exif\\0\\0``).
    """
    Image = pytest.importorskip('PIL.Image')
    if color is None:
        color = (128, 128, 128) if mode == 'RGB' else 128
    img = Image.new(mode, (width, height), color)
    if halves is not None:
        left, right = halves
        img.paste(Image.new(mode, (width // 2, height), left), (0, 0))
        img.paste(Image.new(mode, (width - width // 2, height), right),
                  (width // 2, 0))
    out = io.BytesIO()
    options = {'quality': quality}
    if exif is not None:
        options['exif'] = exif
    img.save(out, 'JPEG', **options)
    return out.getvalue()


@pytest.fixture
def jpeg_file(tmp_path):
    """A 32x16 JPEG whose left half is red and right half is blue."""
    path = tmp_path / 'halves.jpg'
    path.write_bytes(make_jpeg(halves=((255, 0, 0), (0, 0, 255))))
    return path


