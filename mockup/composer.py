from __future__ import annotations

import logging

import numpy as np
from PIL import Image

from .errors import EncodeError
from .io_types import PrintArea, RasterImage

logger = logging.getLogger(__name__)

RESAMPLE_FILTERS = {
    "nearest": Image.Resampling.NEAREST,
    "bilinear": Image.Resampling.BILINEAR,
    "bicubic": Image.Resampling.BICUBIC,
    "lanczos": Image.Resampling.LANCZOS,
}


def resample_filter(name: str) -> Image.Resampling:
    try:
        return RESAMPLE_FILTERS[str(name).lower()]
    except KeyError:
        raise ValueError(f"Unknown resample filter {name!r}; expected one of {', '.join(RESAMPLE_FILTERS)}") from None


def source_over(dst: np.ndarray, src: np.ndarray) -> np.ndarray:
    """
    Porter-Duff source-over of two straight-alpha RGBA uint8 arrays of equal shape.
    Pixels where src alpha is 0 come back as dst byte-for-byte.
    """
    sa = src[..., 3:4].astype(np.float64) / 255
    da = dst[..., 3:4].astype(np.float64) / 255
    out_a = sa + da * (1 - sa)
    with np.errstate(divide="ignore", invalid="ignore"):
        out_rgb = (src[..., :3] * sa + dst[..., :3] * da * (1 - sa)) / out_a
    out_rgb = np.where(out_a > 0, out_rgb, 0)

    out = np.empty_like(dst)
    out[..., :3] = np.clip(np.floor(out_rgb + 0.5), 0, 255).astype(np.uint8)
    out[..., 3:4] = np.clip(np.floor(out_a * 255 + 0.5), 0, 255).astype(np.uint8)
    untouched = src[..., 3] == 0
    out[untouched] = dst[untouched]
    return out


def compose(
    garment: RasterImage,
    print_area: PrintArea,
    design: RasterImage,
    resample: Image.Resampling = Image.Resampling.BILINEAR,
) -> RasterImage:
    """
    Flatten `design`, stretched to the print area, over `garment`.
    The canvas is the garment's size; anything outside it is clipped.
    """
    x, y, w, h = print_area.to_pixels(garment.width, garment.height)
    if w <= 0 or h <= 0 or design.width == 0 or design.height == 0 or design.is_blank:
        return garment

    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + w, garment.width), min(y + h, garment.height)
    if x0 >= x1 or y0 >= y1:
        logger.debug("Print area %s lies outside the %dx%d garment", print_area, garment.width, garment.height)
        return garment

    # Only the on-canvas part of the stretched design is resampled
    sx, sy = design.width / w, design.height / h
    box = (
        (x0 - x) * sx,
        (y0 - y) * sy,
        min((x1 - x) * sx, design.width),
        min((y1 - y) * sy, design.height),
    )
    try:
        scaled = design.to_pil().resize((x1 - x0, y1 - y0), resample, box=box)
    except (MemoryError, ValueError) as exc:
        raise EncodeError(f"Cannot scale design to {w}x{h}: {exc}") from exc
    src = np.asarray(scaled, dtype=np.uint8)

    out = np.array(garment.pixels)
    out[y0:y1, x0:x1] = source_over(out[y0:y1, x0:x1], src)
    return RasterImage(out)
