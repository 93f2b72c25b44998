import numpy as np
import pytest

from mockup.errors import DecodeError, InvalidColorError
from mockup.io_types import (
    ColorRGB,
    DEFAULT_BACK_PRINT_AREA,
    DEFAULT_FRONT_PRINT_AREA,
    GarmentSide,
    GarmentSpec,
    ImageLoadResult,
    PrintArea,
    RasterImage,
)


def test_buffer_length_matches_dimensions():
    img = RasterImage.blank(7, 3)
    assert (img.width, img.height) == (7, 3)
    assert len(img.buffer) == 7 * 3 * 4
    assert img.is_blank


def test_from_buffer_validates_length():
    img = RasterImage.from_buffer(2, 1, bytes([1, 2, 3, 4, 5, 6, 7, 8]))
    assert img.pixel(1, 0) == (5, 6, 7, 8)
    with pytest.raises(ValueError):
        RasterImage.from_buffer(2, 2, b"\x00" * 8)


def test_pixels_are_read_only():
    src = np.zeros((2, 2, 4), dtype=np.uint8)
    img = RasterImage(src)
    with pytest.raises(ValueError):
        img.pixels[0, 0, 0] = 9
    src[0, 0, 0] = 9
    assert img.pixel(0, 0) == (0, 0, 0, 0)


def test_pil_roundtrip_converts_to_rgba():
    from PIL import Image

    im = Image.new("RGB", (3, 2), (10, 20, 30))
    img = RasterImage.from_pil(im)
    assert img.pixel(2, 1) == (10, 20, 30, 255)
    assert img.to_pil().mode == "RGBA"


def test_rejects_wrong_shape():
    with pytest.raises(ValueError):
        RasterImage(np.zeros((2, 2, 3), dtype=np.uint8))


def test_print_area_rounds_half_up():
    area = PrintArea(top=12.5, left=37.5, width=50, height=25)
    # 7.5 -> 8 and 2.5 -> 3 (not banker's rounding)
    assert area.to_pixels(20, 20) == (8, 3, 10, 5)


def test_print_area_allows_out_of_range():
    assert PrintArea(top=-10, left=90, width=50, height=150).to_pixels(100, 100) == (90, -10, 50, 150)


def test_color_parse():
    assert ColorRGB.parse("#C0392B") == ColorRGB(192, 57, 43)
    assert ColorRGB.parse("c0392b").hex == "#c0392b"
    assert ColorRGB.parse(" #ffffff ").is_white
    with pytest.raises(InvalidColorError):
        ColorRGB.parse("#c0392")


def test_garment_spec_defaults():
    spec = GarmentSpec.from_mapping("tank", {"image": "tank.png"})
    assert spec.name == "tank"
    assert spec.image_for(GarmentSide.BACK) == "tank.png"
    assert spec.print_area_for(GarmentSide.FRONT) == DEFAULT_FRONT_PRINT_AREA
    assert spec.print_area_for(GarmentSide.BACK) == DEFAULT_BACK_PRINT_AREA


def test_garment_spec_from_catalog_json():
    spec = GarmentSpec.from_mapping(
        "hoodie",
        {
            "name": "Hoodie",
            "image": "/uploads/hoodie.png",
            "imageBack": "/uploads/hoodie_back.png",
            "printArea": {"top": "32", "left": 34, "width": 32, "height": 28},
            "colors": ["#ffffff", "#111111"],
        },
    )
    assert spec.image_for(GarmentSide.BACK) == "/uploads/hoodie_back.png"
    assert spec.print_area == PrintArea(32.0, 34.0, 32.0, 28.0)
    assert spec.to_dict()["printAreaBack"] == DEFAULT_BACK_PRINT_AREA.to_dict()
    with pytest.raises(ValueError):
        GarmentSpec.from_mapping("nothing", {"name": "No image"})


def test_load_result_unwrap():
    img = RasterImage.blank(1, 1)
    assert ImageLoadResult(image=img).unwrap() is img
    failed = ImageLoadResult(error=DecodeError("bad"))
    assert not failed.ok
    with pytest.raises(DecodeError):
        failed.unwrap()
