"""Tag catalogs for the four EXIF directory kinds.

Each catalog is a ``TagTable``: an immutable, id-sorted sequence of
``(tag_id, name)`` pairs searched with ``bisect``. Pointer tags carry no
name; the IFD reader recognises them before any name lookup.
"""

from bisect import bisect_left
from typing import Iterable, List, Optional, Tuple

# Sub-IFD pointer tags
EXIF_IFD_POINTER_TAG = 0x8769
GPS_IFD_POINTER_TAG = 0x8825
INTEROPERABILITY_IFD_POINTER_TAG = 0xA005

ORIENTATION_TAG = 0x0112
THUMBNAIL_OFFSET_TAG = 0x0201
THUMBNAIL_LENGTH_TAG = 0x0202


def fallback_name(tag_id: int) -> str:
    """Deterministic document key for a tag missing from its catalog."""
    return f'tag_{tag_id:04x}'


class TagTable:
    """Immutable tag-id -> name table, sorted ascending by tag id."""
    __slots__ = ('kind', '_ids', '_names')

    def __init__(self, kind: str, entries: Iterable[Tuple[int, Optional[str]]]):
        entries = tuple(entries)
        ids = tuple(tag_id for tag_id, _ in entries)
        for prev, cur in zip(ids, ids[1:]):
            if cur < prev:
                raise ValueError(
                    f'{kind} tag table not sorted: 0x{cur:04x} after 0x{prev:04x}')
        self.kind = kind
        self._ids = ids
        self._names = tuple(name for _, name in entries)

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self):
        return iter(zip(self._ids, self._names))

    def __contains__(self, tag_id: int) -> bool:
        i = bisect_left(self._ids, tag_id)
        return i < len(self._ids) and self._ids[i] == tag_id

    def lookup(self, tag_id: int) -> Optional[str]:
        """Name for ``tag_id``; None for pointer tags, ``tag_XXXX`` if absent.

        Duplicate ids resolve to the first entry in table order.
        """
        i = bisect_left(self._ids, tag_id)
        if i < len(self._ids) and self._ids[i] == tag_id:
            return self._names[i]
        return fallback_name(tag_id)

    def duplicates(self) -> List[int]:
        """Tag ids that appear more than once (a data-quality issue)."""
        return sorted({a for a, b in zip(self._ids, self._ids[1:]) if a == b})

    def __repr__(self) -> str:
        return f'TagTable({self.kind!r}, {len(self)} tags)'


def lookup(table: TagTable, tag_id: int) -> Optional[str]:
    return table.lookup(tag_id)


# 0th / 1st IFD (TIFF)
TIFF_TAGS = TagTable('tiff', [
    (0x0100, 'image_width'),
    (0x0101, 'image_length'),
    (0x0102, 'bits_per_sample'),
    (0x0103, 'compression'),
    (0x0106, 'photometric_interpretation'),
    (0x010e, 'image_description'),
    (0x010f, 'make'),
    (0x0110, 'model'),
    (0x0111, 'strip_offsets'),
    (0x0112, 'orientation'),
    (0x0115, 'samples_per_pixel'),
    (0x0116, 'rows_per_strip'),
    (0x0117, 'strip_byte_counts'),
    (0x011a, 'x_resolution'),
    (0x011b, 'y_resolution'),
    (0x011c, 'planar_configuration'),
    (0x0128, 'resolution_unit'),
    (0x012d, 'transfer_function'),
    (0x0131, 'software'),
    (0x0132, 'date_time'),
    (0x013b, 'artist'),
    (0x013e, 'white_point'),
    (0x013f, 'primary_chromaticities'),
    (0x0201, 'jpeg_interchange_format'),
    (0x0202, 'jpeg_interchange_format_length'),
    (0x0211, 'ycbcr_coefficients'),
    (0x0212, 'ycbcr_sub_sampling'),
    (0x0213, 'ycbcr_positioning'),
    (0x0214, 'reference_black_white'),
    (0x8298, 'copyright'),
    (EXIF_IFD_POINTER_TAG, None),
    (GPS_IFD_POINTER_TAG, None),
    (0xc4a5, 'print_im'),
])

EXIF_TAGS = TagTable('exif', [
    (0x829a, 'exposure_time'),
    (0x829d, 'f_number'),
    (0x8822, 'exposure_program'),
    (0x8824, 'spectral_sensitivity'),
    (0x8827, 'iso_speed_ratings'),
    (0x8828, 'oecf'),
    (0x882a, 'time_zone_offset'),
    (0x882b, 'self_timer_mode'),
    (0x8830, 'sensitivity_type'),
    (0x8831, 'standard_output_sensitivity'),
    (0x8832, 'recommended_exposure_index'),
    (0x9000, 'exif_version'),
    (0x9003, 'date_time_original'),
    (0x9004, 'date_time_digitized'),
    (0x9010, 'offset_time'),
    (0x9011, 'offset_time_original'),
    (0x9012, 'offset_time_digitized'),
    (0x9101, 'components_configuration'),
    (0x9102, 'compressed_bits_per_pixel'),
    (0x9201, 'shutter_speed_value'),
    (0x9202, 'aperture_value'),
    (0x9203, 'brightness_value'),
    (0x9204, 'exposure_bias_value'),
    (0x9205, 'max_aperture_value'),
    (0x9206, 'subject_distance'),
    (0x9207, 'metering_mode'),
    (0x9208, 'light_source'),
    (0x9209, 'flash'),
    (0x920a, 'focal_length'),
    (0x9214, 'subject_area'),
    (0x927c, 'maker_note'),
    (0x9286, 'user_comment'),
    (0x9290, 'sub_sec_time'),
    (0x9291, 'sub_sec_time_original'),
    (0x9292, 'sub_sec_time_digitized'),
    (0xa000, 'flashpix_version'),
    (0xa001, 'color_space'),
    (0xa002, 'pixel_x_dimension'),
    (0xa003, 'pixel_y_dimension'),
    (0xa004, 'related_sound_file'),
    (INTEROPERABILITY_IFD_POINTER_TAG, None),
    (0xa20b, 'flash_energy'),
    (0xa20c, 'spatial_frequency_response'),
    (0xa20e, 'focal_plane_x_resolution'),
    (0xa20f, 'focal_plane_y_resolution'),
    (0xa210, 'focal_plane_resolution_unit'),
    (0xa214, 'subject_location'),
    (0xa215, 'exposure_index'),
    (0xa217, 'sensing_method'),
    (0xa300, 'file_source'),
    (0xa301, 'scene_type'),
    (0xa302, 'cfa_pattern'),
    (0xa401, 'custom_rendered'),
    (0xa402, 'exposure_mode'),
    (0xa403, 'white_balance'),
    (0xa404, 'digital_zoom_ratio'),
    (0xa405, 'focal_length_in_35mm_film'),
    (0xa406, 'scene_capture_type'),
    (0xa407, 'gain_control'),
    (0xa408, 'contrast'),
    (0xa409, 'saturation'),
    (0xa40a, 'sharpness'),
    (0xa40b, 'device_setting_description'),
    (0xa40c, 'subject_distance_range'),
    (0xa420, 'image_unique_id'),
    (0xa430, 'owner_name'),
    (0xa431, 'serial_number'),
    (0xa432, 'lens_info'),
    (0xa433, 'lens_make'),
    (0xa434, 'lens_model'),
    (0xa435, 'lens_serial_number'),
])

GPS_TAGS = TagTable('gps', [
    (0x0000, 'version_id'),
    (0x0001, 'latitude_ref'),
    (0x0002, 'latitude'),
    (0x0003, 'longitude_ref'),
    (0x0004, 'longitude'),
    (0x0005, 'altitude_ref'),
    (0x0006, 'altitude'),
    (0x0007, 'timestamp'),
    (0x0008, 'satellites'),
    (0x0009, 'status'),
    (0x000a, 'measure_mode'),
    (0x000b, 'dop'),
    (0x000c, 'speed_ref'),
    (0x000d, 'speed'),
    (0x000e, 'track_ref'),
    (0x000f, 'track'),
    (0x0010, 'img_direction_ref'),
    (0x0011, 'img_direction'),
    (0x0012, 'map_datum'),
    (0x0013, 'dest_latitude_ref'),
    (0x0014, 'dest_latitude'),
    (0x0015, 'dest_longitude_ref'),
    (0x0016, 'dest_longitude'),
    (0x0017, 'dest_bearing_ref'),
    (0x0018, 'dest_bearing'),
    (0x0019, 'dest_distance_ref'),
    (0x001a, 'dest_distance'),
    (0x001b, 'processing_method'),
    (0x001c, 'area_information'),
    (0x001d, 'date_stamp'),
    (0x001e, 'differential'),
    (0x001f, 'h_positioning_error'),
])

INTEROPERABILITY_TAGS = TagTable('interoperability', [
    (0x0001, 'interoperability_index'),
    (0x0002, 'interoperability_version'),
    (0x1000, 'related_image_file_format'),
    (0x1001, 'related_image_width'),
    (0x1002, 'related_image_length'),
])

# Pointer tag -> (document key, child table)
SUB_IFD_POINTERS = {
    EXIF_IFD_POINTER_TAG: ('exif', EXIF_TAGS),
    GPS_IFD_POINTER_TAG: ('gps', GPS_TAGS),
    INTEROPERABILITY_IFD_POINTER_TAG: ('interoperability', INTEROPERABILITY_TAGS),
}
