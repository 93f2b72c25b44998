from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass
from typing import Optional, Union

from PIL import Image

from .background_removal import ChromaKeyThresholds, DEFAULT_THRESHOLDS, remove_background
from .cache import GarmentImageCache
from .codec import decode_image, encode_png
from .composer import compose, resample_filter
from .errors import DecodeError, LoadError, MockupError, UnknownGarmentError
from .io_types import ColorRGB, GarmentSide, GarmentSpec, ImageLoadResult, RasterImage
from .recolor import recolor
from providers.base import DesignSource, GarmentCatalog

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    data: bytes
    filename: str
    mockup: bool
    error: Optional[str] = None


def _timestamp(now: Optional[dt.datetime] = None) -> str:
    return (now or dt.datetime.now()).strftime("%Y%m%d_%H%M")


def _side(side: Union[GarmentSide, str]) -> GarmentSide:
    try:
        return GarmentSide(side)
    except ValueError:
        raise ValueError(f"Unknown garment side {side!r}; expected 'front' or 'back'") from None


def _color(color: Union[ColorRGB, str]) -> ColorRGB:
    return color if isinstance(color, ColorRGB) else ColorRGB.parse(color)


class MockupPipeline:
    """
    Garment photo -> key out backdrop -> recolor -> place design.
    Pixel work runs in worker threads; keyed garments are memoised in `cache`.
    """

    def __init__(
        self,
        catalog: GarmentCatalog,
        cache: Optional[GarmentImageCache] = None,
        thresholds: ChromaKeyThresholds = DEFAULT_THRESHOLDS,
        resample: Image.Resampling = Image.Resampling.BILINEAR,
    ) -> None:
        self.catalog = catalog
        self.cache = cache if cache is not None else GarmentImageCache()
        self.thresholds = thresholds
        self.resample = resample

    @classmethod
    def from_settings(cls, settings, catalog: Optional[GarmentCatalog] = None, cache: Optional[GarmentImageCache] = None) -> "MockupPipeline":
        if catalog is None:
            backend = str(settings.get("catalog.backend", "local")).lower()
            if backend == "remote":
                from providers.remote_catalog import RemoteGarmentCatalog

                catalog = RemoteGarmentCatalog.from_settings(settings)
            else:
                from providers.local_catalog import LocalGarmentCatalog

                catalog = LocalGarmentCatalog.from_settings(settings)
        return cls(
            catalog,
            cache=cache,
            thresholds=ChromaKeyThresholds.from_settings(settings),
            resample=resample_filter(settings.get("composer.resample", "bilinear")),
        )

    # ---- loading ----
    def _load_sync(self, location: str) -> ImageLoadResult:
        try:
            return ImageLoadResult(image=decode_image(self.catalog.fetch_image(location)))
        except (LoadError, DecodeError) as e:
            return ImageLoadResult(error=e)

    def _keyed_sync(self, location: str) -> RasterImage:
        image = self._load_sync(location).unwrap()
        return remove_background(image, self.thresholds)

    def garment(self, slug: str) -> GarmentSpec:
        return self.catalog.get_garment(slug)

    async def load_garment(self, slug: str, side: Union[GarmentSide, str] = GarmentSide.FRONT) -> ImageLoadResult:
        """Fetch and decode the raw garment photo; failures come back in the result."""
        location = self.garment(slug).image_for(_side(side))
        return await asyncio.to_thread(self._load_sync, location)

    # ---- stages ----
    async def garment_image(self, slug: str, side: Union[GarmentSide, str] = GarmentSide.FRONT) -> RasterImage:
        location = self.garment(slug).image_for(_side(side))
        return await asyncio.to_thread(self.cache.get_or_compute, location, lambda: self._keyed_sync(location))

    async def garment_preview(self, slug: str, side: Union[GarmentSide, str], color: Union[ColorRGB, str]) -> RasterImage:
        target = _color(color)
        keyed = await self.garment_image(slug, side)
        if target.is_white:
            return keyed
        return await asyncio.to_thread(recolor, keyed, target)

    async def render_mockup(
        self,
        slug: str,
        side: Union[GarmentSide, str],
        color: Union[ColorRGB, str],
        design: RasterImage,
    ) -> RasterImage:
        side = _side(side)
        area = self.garment(slug).print_area_for(side)
        garment = await self.garment_preview(slug, side, color)
        return await asyncio.to_thread(compose, garment, area, design, self.resample)

    async def preload_all(self) -> dict[str, MockupError]:
        """Key out every catalog photo up front. Returns failures by image location."""
        locations: list[tuple[str, GarmentSide]] = []
        seen = set()
        for slug, spec in self.catalog.list_garments().items():
            for side in GarmentSide:
                location = spec.image_for(side)
                if location not in seen:
                    seen.add(location)
                    locations.append((slug, side))

        results = await asyncio.gather(
            *(self.garment_image(slug, side) for slug, side in locations),
            return_exceptions=True,
        )
        failures: dict[str, MockupError] = {}
        for (slug, side), res in zip(locations, results):
            if isinstance(res, MockupError):
                location = self.garment(slug).image_for(side)
                logger.warning(
                    "Background removal failed for %s (%s/%s): %s",
                    location,
                    slug,
                    side.value,
                    res,
                    extra={"garment": slug, "side": side.value, "location": location, "stage": "preload"},
                )
                failures[location] = res
            elif isinstance(res, BaseException):
                raise res
        logger.info("Preloaded %d garment images (%d failed)", len(locations) - len(failures), len(failures))
        return failures

    async def export_png(
        self,
        slug: str,
        side: Union[GarmentSide, str],
        color: Union[ColorRGB, str],
        design: Union[RasterImage, DesignSource],
        now: Optional[dt.datetime] = None,
    ) -> ExportResult:
        """
        Mockup PNG for download. If any garment stage fails the design layer
        is exported alone so the user still gets their artwork.
        """
        target = _color(color)
        side = _side(side)
        design_img = design if isinstance(design, RasterImage) else await asyncio.to_thread(design.render)
        stamp = _timestamp(now)
        try:
            # A catalog that cannot be reached is a stage failure; an unknown slug is not
            mockup = await self.render_mockup(slug, side, target, design_img)
            data = await asyncio.to_thread(encode_png, mockup)
            return ExportResult(data=data, filename=f"print-{slug}-{stamp}.png", mockup=True)
        except UnknownGarmentError:
            raise
        except MockupError as e:
            logger.warning(
                "Mockup export failed for %s/%s, exporting design only: %s",
                slug,
                side.value,
                e,
                extra={"garment": slug, "side": side.value, "stage": "export"},
            )
            data = await asyncio.to_thread(encode_png, design_img)
            return ExportResult(data=data, filename=f"design-{stamp}.png", mockup=False, error=str(e))
