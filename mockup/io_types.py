from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import numpy as np
from PIL import Image

from .errors import InvalidColorError, MockupError


def round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


@dataclass(frozen=True, eq=False)
class RasterImage:
    """
    RGBA image backed by a read-only (height, width, 4) uint8 array.
    Stages never write into an existing RasterImage; they build a new one.
    """

    pixels: np.ndarray = field(repr=False)

    def __post_init__(self) -> None:
        arr = np.asarray(self.pixels)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"expected (height, width, 4) pixels, got shape {arr.shape}")
        if arr.dtype != np.uint8:
            arr = arr.astype(np.uint8)
        if arr.flags.writeable or arr.base is not None:
            arr = arr.copy()
        arr.flags.writeable = False
        object.__setattr__(self, "pixels", arr)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def buffer(self) -> bytes:
        return self.pixels.tobytes()

    @property
    def is_blank(self) -> bool:
        return self.pixels.size == 0 or not bool(self.pixels[..., 3].any())

    def pixel(self, x: int, y: int) -> tuple[int, int, int, int]:
        r, g, b, a = (int(v) for v in self.pixels[y, x])
        return r, g, b, a

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels), mode="RGBA")

    @classmethod
    def from_pil(cls, im: Image.Image) -> "RasterImage":
        if im.mode != "RGBA":
            im = im.convert("RGBA")
        return cls(np.array(im, dtype=np.uint8))

    @classmethod
    def from_buffer(cls, width: int, height: int, buffer: bytes) -> "RasterImage":
        expected = width * height * 4
        if len(buffer) != expected:
            raise ValueError(f"buffer has {len(buffer)} bytes, expected {expected} for {width}x{height} RGBA")
        arr = np.frombuffer(buffer, dtype=np.uint8).reshape(height, width, 4)
        return cls(arr.copy())

    @classmethod
    def blank(cls, width: int, height: int) -> "RasterImage":
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def filled(cls, width: int, height: int, rgba: tuple[int, int, int, int]) -> "RasterImage":
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[...] = rgba
        return cls(arr)


@dataclass(frozen=True)
class PrintArea:
    """Print rectangle in percent of the garment image (0-100, not enforced)."""

    top: float
    left: float
    width: float
    height: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], default: Optional["PrintArea"] = None) -> "PrintArea":
        base = default or DEFAULT_FRONT_PRINT_AREA
        return cls(
            top=float(data.get("top", base.top)),
            left=float(data.get("left", base.left)),
            width=float(data.get("width", base.width)),
            height=float(data.get("height", base.height)),
        )

    def to_dict(self) -> dict[str, float]:
        return {"top": self.top, "left": self.left, "width": self.width, "height": self.height}

    def to_pixels(self, image_width: int, image_height: int) -> tuple[int, int, int, int]:
        # Each edge rounds half-up on its own, so x/y match the documented anchor exactly.
        x = round_half_up(self.left / 100 * image_width)
        y = round_half_up(self.top / 100 * image_height)
        w = round_half_up(self.width / 100 * image_width)
        h = round_half_up(self.height / 100 * image_height)
        return x, y, w, h


DEFAULT_FRONT_PRINT_AREA = PrintArea(top=30.0, left=35.0, width=30.0, height=30.0)
DEFAULT_BACK_PRINT_AREA = PrintArea(top=20.0, left=30.0, width=40.0, height=45.0)


_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


@dataclass(frozen=True)
class ColorRGB:
    red: int
    green: int
    blue: int

    @classmethod
    def parse(cls, value: str) -> "ColorRGB":
        m = _HEX_COLOR.match(value.strip()) if isinstance(value, str) else None
        if not m:
            raise InvalidColorError(f"Invalid color {value!r}: expected 6 hex digits, optionally prefixed with '#'")
        digits = m.group(1)
        return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    @property
    def hex(self) -> str:
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"

    @property
    def is_white(self) -> bool:
        return (self.red, self.green, self.blue) == (255, 255, 255)

    def as_tuple(self) -> tuple[int, int, int]:
        return self.red, self.green, self.blue


WHITE = ColorRGB(255, 255, 255)


class GarmentSide(str, enum.Enum):
    FRONT = "front"
    BACK = "back"


@dataclass(frozen=True)
class GarmentSpec:
    """One catalog entry: a garment type with its photos and print areas."""

    slug: str
    name: str
    image: str
    print_area: PrintArea = DEFAULT_FRONT_PRINT_AREA
    image_back: Optional[str] = None
    print_area_back: PrintArea = DEFAULT_BACK_PRINT_AREA
    colors: tuple[str, ...] = ()

    def image_for(self, side: GarmentSide) -> str:
        if side == GarmentSide.BACK:
            # Catalog entries without a back photo reuse the front one
            return self.image_back or self.image
        return self.image

    def print_area_for(self, side: GarmentSide) -> PrintArea:
        return self.print_area_back if side == GarmentSide.BACK else self.print_area

    @classmethod
    def from_mapping(cls, slug: str, data: Mapping[str, Any]) -> "GarmentSpec":
        image = data.get("image")
        if not image:
            raise ValueError(f"garment {slug!r} has no image")
        front = data.get("printArea") or {}
        back = data.get("printAreaBack") or {}
        return cls(
            slug=slug,
            name=str(data.get("name") or slug),
            image=str(image),
            print_area=PrintArea.from_mapping(front, DEFAULT_FRONT_PRINT_AREA),
            image_back=data.get("imageBack") or None,
            print_area_back=PrintArea.from_mapping(back, DEFAULT_BACK_PRINT_AREA),
            colors=tuple(data.get("colors") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "image": self.image,
            "imageBack": self.image_for(GarmentSide.BACK),
            "printArea": self.print_area.to_dict(),
            "printAreaBack": self.print_area_back.to_dict(),
            "colors": list(self.colors),
        }


@dataclass(frozen=True)
class ImageLoadResult:
    image: Optional[RasterImage] = None
    error: Optional[MockupError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.image is not None

    def unwrap(self) -> RasterImage:
        if self.error is not None:
            raise self.error
        if self.image is None:
            raise MockupError("image load produced no result")
        return self.image
