from __future__ import annotations

from mockup.codec import decode_image
from mockup.errors import LoadError
from mockup.io_types import RasterImage


class BytesDesignSource:
    """Design layer already rendered by the editor (e.g. an uploaded PNG)."""

    def __init__(self, data: bytes) -> None:
        self.data = data

    def render(self) -> RasterImage:
        return decode_image(self.data)


class FileDesignSource:
    def __init__(self, path: str) -> None:
        self.path = path

    def render(self) -> RasterImage:
        try:
            with open(self.path, "rb") as f:
                data = f.read()
        except OSError as exc:
            raise LoadError(f"Cannot read design {self.path}: {exc}") from exc
        return decode_image(data)
