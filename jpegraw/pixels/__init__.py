"""Raw pixel handling: format transcoding, orientation transforms, palettes."""

from jpegraw.pixels.colormap import expand_colormap, pack_colormap  # noqa: F401
from jpegraw.pixels.formats import (  # noqa: F401
    FORMATS,
    UNIT_LINES,
    PixelFormat,
    get_format,
    iter_row_batches,
    swap_cbcr,
)
from jpegraw.pixels.transform import (  # noqa: F401
    apply_orientation,
    orient,
    flip,
    mirror,
    transpose,
)
