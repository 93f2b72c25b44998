from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

from .errors import DecodeError, EncodeError
from .io_types import RasterImage


def decode_image(data: bytes) -> RasterImage:
    """
    Decode PNG/JPEG/WebP/... bytes into an RGBA RasterImage.
    Raises DecodeError for empty, truncated or unsupported data.
    """
    if not data:
        raise DecodeError("Empty image data")
    try:
        with Image.open(io.BytesIO(data)) as im:
            im.load()
            return RasterImage.from_pil(im)
    except UnidentifiedImageError as exc:
        raise DecodeError("Data is not a recognised image format") from exc
    except (OSError, ValueError, SyntaxError, EOFError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Failed to decode image: {exc}") from exc


def encode_png(image: RasterImage) -> bytes:
    if image.width == 0 or image.height == 0:
        raise EncodeError(f"Cannot encode a {image.width}x{image.height} image")
    buf = io.BytesIO()
    try:
        image.to_pil().save(buf, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodeError(f"PNG encoding failed: {exc}") from exc
    return buf.getvalue()
