from __future__ import annotations

from typing import Union

import numpy as np

from .io_types import ColorRGB, RasterImage


def recolor(image: RasterImage, color: Union[ColorRGB, str]) -> RasterImage:
    """
    Tint a keyed garment photo: multiply every RGB channel by the target
    color, then put back the original alpha so the silhouette is exact.
    White is the identity and returns `image` itself.
    """
    if not isinstance(color, ColorRGB):
        color = ColorRGB.parse(color)
    if color.is_white:
        return image

    rgb = image.pixels[..., :3].astype(np.float64)
    tint = np.array(color.as_tuple(), dtype=np.float64)
    out = np.empty_like(image.pixels)
    out[..., :3] = np.floor(rgb * tint / 255 + 0.5).astype(np.uint8)
    out[..., 3] = image.pixels[..., 3]
    return RasterImage(out)
