from __future__ import annotations

from typing import Mapping, Protocol

from mockup.io_types import GarmentSpec, RasterImage


class GarmentCatalog(Protocol):
    def list_garments(self) -> Mapping[str, GarmentSpec]: ...

    def get_garment(self, slug: str) -> GarmentSpec: ...

    def fetch_image(self, location: str) -> bytes: ...


class DesignSource(Protocol):
    def render(self) -> RasterImage: ...
