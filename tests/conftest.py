import io

import numpy as np
import pytest
from PIL import Image

from mockup.cache import GarmentImageCache
from mockup.io_types import RasterImage
from mockup.pipeline import MockupPipeline
from providers.local_catalog import LocalGarmentCatalog

GREEN = (0, 255, 0, 255)
WHITE = (255, 255, 255, 255)


def png_bytes(image: RasterImage) -> bytes:
    buf = io.BytesIO()
    image.to_pil().save(buf, format="PNG")
    return buf.getvalue()


def green_screen_shirt(size: int = 40, inset: int = 10) -> RasterImage:
    """White square 'garment' on a pure key-green backdrop."""
    arr = np.empty((size, size, 4), dtype=np.uint8)
    arr[...] = GREEN
    arr[inset : size - inset, inset : size - inset] = WHITE
    return RasterImage(arr)


@pytest.fixture
def shirt_image() -> RasterImage:
    return green_screen_shirt()


@pytest.fixture
def garment_dir(tmp_path, shirt_image):
    root = tmp_path / "garments"
    root.mkdir()
    (root / "tshirt.png").write_bytes(png_bytes(shirt_image))
    (root / "broken.png").write_bytes(b"not an image at all")
    return root


@pytest.fixture
def catalog(garment_dir) -> LocalGarmentCatalog:
    return LocalGarmentCatalog(
        garments={
            "tshirt": {
                "name": "T-shirt",
                "image": "tshirt.png",
                "printArea": {"top": 25, "left": 25, "width": 50, "height": 50},
            },
            "polo": {"name": "Polo", "image": "tshirt.png", "imageBack": "missing_back.png"},
            "ghost": {"name": "Ghost", "image": "missing.png"},
            "broken": {"name": "Broken", "image": "broken.png"},
        },
        root=str(garment_dir),
    )


@pytest.fixture
def pipeline(catalog) -> MockupPipeline:
    return MockupPipeline(catalog, cache=GarmentImageCache())


@pytest.fixture
def blue_design() -> RasterImage:
    return RasterImage.filled(10, 10, (0, 0, 255, 255))


@pytest.fixture
def to_png():
    return png_bytes


@pytest.fixture
def from_png():
    def _decode(data: bytes) -> RasterImage:
        with Image.open(io.BytesIO(data)) as im:
            return RasterImage.from_pil(im)

    return _decode
