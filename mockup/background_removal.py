from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, fields, asdict
from typing import Any, Mapping, Optional

import numpy as np

from .io_types import RasterImage

logger = logging.getLogger(__name__)


class PixelClass(enum.IntEnum):
    FOREGROUND = 0
    EDGE = 1
    BACKGROUND = 2


@dataclass(frozen=True)
class ChromaKeyThresholds:
    """
    Tuning for the green-screen key. The values were tuned by eye on the
    catalog photos; treat changes as a look adjustment.
    """

    # background: fully transparent
    green_threshold: float = 100.0
    green_ratio: float = 1.2
    max_red_blue: float = 180.0
    # edge: partially transparent, green spill reduced
    edge_green_min: float = 80.0
    edge_ratio: float = 1.0
    edge_max_red_blue: float = 200.0
    white_floor: float = 200.0
    black_ceiling: float = 40.0
    greenness_scale: float = 2.0
    green_dampening: float = 0.5

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ChromaKeyThresholds":
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown chroma_key settings: %s", ", ".join(sorted(unknown)))
        return cls(**{k: float(v) for k, v in data.items() if k in known})

    @classmethod
    def from_settings(cls, settings) -> "ChromaKeyThresholds":
        # Leaf lookups so CHROMA_KEY_* env vars override individual values
        values = {}
        for f in fields(cls):
            v = settings.get(f"chroma_key.{f.name}")
            if v is not None:
                values[f.name] = v
        return cls.from_mapping(values)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


DEFAULT_THRESHOLDS = ChromaKeyThresholds()


def _channels(image: RasterImage) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    rgb = image.pixels[..., :3].astype(np.float64)
    return rgb[..., 0], rgb[..., 1], rgb[..., 2]


def _masks(r: np.ndarray, g: np.ndarray, b: np.ndarray, t: ChromaKeyThresholds) -> tuple[np.ndarray, np.ndarray]:
    background = (
        (g > t.green_threshold)
        & (g > r * t.green_ratio)
        & (g > b * t.green_ratio)
        & (r < t.max_red_blue)
        & (b < t.max_red_blue)
    )
    near_white = (r > t.white_floor) & (g > t.white_floor) & (b > t.white_floor)
    near_black = (r < t.black_ceiling) & (g < t.black_ceiling) & (b < t.black_ceiling)
    edge = (
        ~background
        & (g > t.edge_green_min)
        & (g >= r * t.edge_ratio)
        & (g >= b * t.edge_ratio)
        & (r < t.edge_max_red_blue)
        & (b < t.edge_max_red_blue)
        & ~near_white
        & ~near_black
    )
    return background, edge


def greenness(r: np.ndarray, g: np.ndarray, b: np.ndarray, t: ChromaKeyThresholds = DEFAULT_THRESHOLDS) -> np.ndarray:
    """0 = no green cast, 1 = pure key green."""
    avg_rb = (r + b) / 2
    ratio = g / (avg_rb + 1)
    return np.clip((ratio - 1) / t.greenness_scale, 0.0, 1.0)


def classify_pixels(image: RasterImage, thresholds: ChromaKeyThresholds = DEFAULT_THRESHOLDS) -> np.ndarray:
    """Per-pixel PixelClass codes, shape (height, width), from RGB only."""
    r, g, b = _channels(image)
    background, edge = _masks(r, g, b, thresholds)
    out = np.full(background.shape, PixelClass.FOREGROUND, dtype=np.uint8)
    out[edge] = PixelClass.EDGE
    out[background] = PixelClass.BACKGROUND
    return out


def remove_background(image: RasterImage, thresholds: ChromaKeyThresholds = DEFAULT_THRESHOLDS) -> RasterImage:
    """
    Key out the green backdrop of a garment photo.
    - background pixels: alpha 0, RGB untouched
    - edge pixels (opaque only): alpha and green channel scaled down by greenness
    - everything else: unchanged
    Edge pixels that already carry partial alpha are skipped so a second
    pass over the output changes nothing.
    """
    r, g, b = _channels(image)
    background, edge = _masks(r, g, b, thresholds)
    edge &= image.pixels[..., 3] == 255

    out = np.array(image.pixels)
    if edge.any():
        gr = greenness(r[edge], g[edge], b[edge], thresholds)
        out[..., 3][edge] = np.floor(255 * (1 - gr) + 0.5).astype(np.uint8)
        out[..., 1][edge] = np.floor(g[edge] * (1 - gr * thresholds.green_dampening) + 0.5).astype(np.uint8)
    out[..., 3][background] = 0
    return RasterImage(out)
