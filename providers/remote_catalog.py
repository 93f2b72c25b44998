from __future__ import annotations

import logging
import os
import threading
from typing import Mapping, Optional
from urllib.parse import urljoin

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from mockup.errors import LoadError, UnknownGarmentError
from mockup.io_types import GarmentSpec

logger = logging.getLogger(__name__)


class CatalogServerError(Exception):
    pass


class RemoteGarmentCatalog:
    """
    Garment catalog served by the storefront API (`GET /garments`).
    Transport errors and 5xx responses are retried here; the mockup
    pipeline itself never retries.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session: Optional[requests.Session] = None) -> None:
        self.base_url = (base_url or os.environ.get("CATALOG_BASE_URL", "")).rstrip("/")
        if not self.base_url:
            raise LoadError("CATALOG_BASE_URL not configured")
        self.timeout = float(timeout if timeout is not None else os.environ.get("CATALOG_TIMEOUT", "15"))
        self.session = session or requests.Session()
        self._lock = threading.Lock()
        self._garments: Optional[dict[str, GarmentSpec]] = None

    @classmethod
    def from_settings(cls, settings) -> "RemoteGarmentCatalog":
        timeout = settings.get("catalog.timeout")
        return cls(
            base_url=settings.get("catalog.base_url"),
            timeout=float(timeout) if timeout is not None else None,
        )

    @retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout, CatalogServerError)),
    )
    def _get(self, url: str) -> requests.Response:
        r = self.session.get(url, timeout=self.timeout)
        if r.status_code >= 500:
            raise CatalogServerError(f"{url} -> {r.status_code}")
        return r

    def _fetch(self, url: str) -> requests.Response:
        try:
            r = self._get(url)
        except (requests.RequestException, CatalogServerError) as exc:
            raise LoadError(f"Catalog request failed: {url}: {exc}") from exc
        if r.status_code >= 400:
            raise LoadError(f"Catalog request failed: {url} -> {r.status_code}")
        return r

    def refresh(self) -> dict[str, GarmentSpec]:
        r = self._fetch(f"{self.base_url}/garments")
        try:
            payload = r.json()
        except ValueError as exc:
            raise LoadError("Catalog returned invalid JSON") from exc
        if not isinstance(payload, dict) or not payload.get("success"):
            message = payload.get("message") if isinstance(payload, dict) else None
            raise LoadError(f"Catalog listing failed: {message or 'unexpected response'}")
        garments = {}
        for slug, data in (payload.get("data") or {}).items():
            try:
                garments[slug] = GarmentSpec.from_mapping(slug, data)
            except ValueError as e:
                logger.warning("Skipping catalog entry %s: %s", slug, e)
        with self._lock:
            self._garments = garments
        return dict(garments)

    def list_garments(self) -> Mapping[str, GarmentSpec]:
        with self._lock:
            cached = self._garments
        if cached is None:
            return self.refresh()
        return dict(cached)

    def get_garment(self, slug: str) -> GarmentSpec:
        garments = self.list_garments()
        if slug not in garments:
            raise UnknownGarmentError(f"Unknown garment: {slug}")
        return garments[slug]

    def fetch_image(self, location: str) -> bytes:
        url = urljoin(self.base_url + "/", location)
        return self._fetch(url).content
