"""Typed value decoders, one per supported TIFF field type."""

from enum import IntEnum
from typing import Callable, Dict

from jpegraw.errors import UnsupportedTypeError
from jpegraw.exif.cursor import Cursor, DirectoryEntry
from jpegraw.models import Rational


class FieldType(IntEnum):
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    UNDEFINED = 7
    SLONG = 9
    SRATIONAL = 10


# {field_type: (element_size_bytes, struct_format_char)}
FIELD_TYPES: Dict[FieldType, tuple] = {
    FieldType.BYTE: (1, 'B'),
    FieldType.ASCII: (1, 's'),
    FieldType.SHORT: (2, 'H'),
    FieldType.LONG: (4, 'I'),
    FieldType.RATIONAL: (8, 'I'),
    FieldType.UNDEFINED: (1, 's'),
    FieldType.SLONG: (4, 'i'),
    FieldType.SRATIONAL: (8, 'i'),
}

# Whitespace and NUL padding stripped from the end of ASCII values
_ASCII_TRAILER = ' \t\r\n\x0b\x0c\x00'


def value_position(cursor: Cursor, entry: DirectoryEntry, width: int) -> int:
    """Absolute position of an entry's value.

    Values of at most 4 bytes live inline in the entry; larger values are
    stored at an offset relative to the TIFF header.
    """
    if width * entry.count <= 4:
        return entry.value_field
    return cursor.resolve(entry.raw_value)


def _integers(cursor: Cursor, entry: DirectoryEntry, field_type: FieldType):
    if entry.count == 0:
        return None
    width, fmt_char = FIELD_TYPES[field_type]
    position = value_position(cursor, entry, width)
    values = cursor.unpack(f'{entry.count}{fmt_char}', position)
    if entry.count == 1:
        return values[0]
    return list(values)


def _rationals(cursor: Cursor, entry: DirectoryEntry, field_type: FieldType):
    if entry.count == 0:
        return None
    width, fmt_char = FIELD_TYPES[field_type]
    position = value_position(cursor, entry, width)
    flat = cursor.unpack(f'{entry.count * 2}{fmt_char}', position)
    values = []
    for num, denom in zip(flat[0::2], flat[1::2]):
        if num == 0 and denom == 0:
            denom = 1
        values.append(Rational(num, denom))
    if entry.count == 1:
        return values[0]
    return values


def _raw(cursor: Cursor, entry: DirectoryEntry) -> bytes:
    position = value_position(cursor, entry, 1)
    return cursor.read(position, entry.count)


def decode_byte(cursor, entry):
    return _integers(cursor, entry, FieldType.BYTE)


def decode_ascii(cursor, entry):
    if entry.count == 0:
        return None
    text = _raw(cursor, entry).decode('utf-8', errors='replace')
    return text.rstrip(_ASCII_TRAILER)


def decode_short(cursor, entry):
    return _integers(cursor, entry, FieldType.SHORT)


def decode_long(cursor, entry):
    return _integers(cursor, entry, FieldType.LONG)


def decode_rational(cursor, entry):
    return _rationals(cursor, entry, FieldType.RATIONAL)


def decode_undefined(cursor, entry):
    if entry.count == 0:
        return None
    return _raw(cursor, entry)


def decode_slong(cursor, entry):
    return _integers(cursor, entry, FieldType.SLONG)


def decode_srational(cursor, entry):
    return _rationals(cursor, entry, FieldType.SRATIONAL)


DECODERS: Dict[FieldType, Callable] = {
    FieldType.BYTE: decode_byte,
    FieldType.ASCII: decode_ascii,
    FieldType.SHORT: decode_short,
    FieldType.LONG: decode_long,
    FieldType.RATIONAL: decode_rational,
    FieldType.UNDEFINED: decode_undefined,
    FieldType.SLONG: decode_slong,
    FieldType.SRATIONAL: decode_srational,
}

_missing = set(FieldType) - set(DECODERS)
if _missing:
    raise ImportError(f'no decoder for field types {sorted(_missing)}')


def decode_value(cursor: Cursor, entry: DirectoryEntry):
    """Decode one directory entry according to its field type."""
    try:
        field_type = FieldType(entry.type_code)
    except ValueError:
        raise UnsupportedTypeError(entry.type_code, entry.tag_id) from None
    return DECODERS[field_type](cursor, entry)
