from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

from mockup.errors import LoadError, UnknownGarmentError
from mockup.io_types import GarmentSpec

logger = logging.getLogger(__name__)


class LocalGarmentCatalog:
    """
    Garment catalog defined in the YAML config, photos on local disk.
    Relative image paths resolve against `root`.
    """

    def __init__(self, garments: Optional[Mapping[str, Mapping[str, Any]]] = None, root: str = ".") -> None:
        self.root = root
        self._garments: dict[str, GarmentSpec] = {}
        for slug, data in (garments or {}).items():
            self._garments[slug] = GarmentSpec.from_mapping(slug, data)

    @classmethod
    def from_settings(cls, settings) -> "LocalGarmentCatalog":
        return cls(
            garments=settings.get("garments", {}) or {},
            root=str(settings.get("catalog.root", "storage/garments")),
        )

    def list_garments(self) -> Mapping[str, GarmentSpec]:
        return dict(self._garments)

    def get_garment(self, slug: str) -> GarmentSpec:
        try:
            return self._garments[slug]
        except KeyError:
            raise UnknownGarmentError(f"Unknown garment: {slug}") from None

    def resolve(self, location: str) -> str:
        if os.path.isabs(location):
            return location
        return os.path.join(self.root, location.lstrip("/"))

    def fetch_image(self, location: str) -> bytes:
        path = self.resolve(location)
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as exc:
            raise LoadError(f"Cannot read garment image {path}: {exc}") from exc
