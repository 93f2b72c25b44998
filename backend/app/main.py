import asyncio
import logging
import os
import uuid
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, Response
from prometheus_client import REGISTRY, make_asgi_app as make_prom_app

from mockup.codec import decode_image, encode_png
from mockup.errors import DecodeError, EncodeError, InvalidColorError, LoadError, MockupError, UnknownGarmentError
from mockup.pipeline import MockupPipeline
from .config import settings
from .logging_config import setup_logging
from .metrics import GarmentCacheCollector, mockup_failures, mockup_fallbacks, mockups_rendered, previews_rendered
from .models import GarmentListResponse, MockupCreateResponse
from .storage import Storage
from .validators import enforce_max_upload_size

logger = logging.getLogger(__name__)

app = FastAPI(title="Garment Mockup API", version="0.1.0")

origins = os.environ.get("CORS_ORIGINS", "*")
origin_list = [o.strip() for o in origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.mount("/metrics", make_prom_app())

_pipeline: Optional[MockupPipeline] = None


def get_pipeline() -> MockupPipeline:
    global _pipeline
    if _pipeline is None:
        _pipeline = MockupPipeline.from_settings(settings)
    return _pipeline


REGISTRY.register(GarmentCacheCollector(lambda: _pipeline.cache if _pipeline is not None else None))


def _http_error(exc: Exception, stage: str) -> HTTPException:
    mockup_failures.labels(stage=stage).inc()
    if isinstance(exc, UnknownGarmentError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidColorError, ValueError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, DecodeError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, LoadError):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, EncodeError):
        return HTTPException(status_code=500, detail=str(exc))
    return HTTPException(status_code=500, detail="Mockup pipeline error")


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/v1/config")
def get_config(pipeline: MockupPipeline = Depends(get_pipeline)) -> dict:
    return {
        "chroma_key": pipeline.thresholds.to_dict(),
        "resample": pipeline.resample.name.lower(),
        "catalog_backend": str(settings.get("catalog.backend", "local")),
        "cached_images": len(pipeline.cache),
    }


@app.get("/v1/garments", response_model=GarmentListResponse)
def list_garments(pipeline: MockupPipeline = Depends(get_pipeline)):
    try:
        garments = pipeline.catalog.list_garments()
    except MockupError as e:
        raise _http_error(e, "catalog")
    return {"success": True, "data": {slug: spec.to_dict() for slug, spec in garments.items()}}


@app.get("/v1/garments/{slug}/{side}/image")
async def garment_image(slug: str, side: str, color: str = "#ffffff", pipeline: MockupPipeline = Depends(get_pipeline)):
    try:
        preview = await pipeline.garment_preview(slug, side, color)
        data = await asyncio.to_thread(encode_png, preview)
    except (MockupError, ValueError) as e:
        raise _http_error(e, "preview")
    previews_rendered.inc()
    return Response(content=data, media_type="image/png", headers={"Cache-Control": "public, max-age=3600"})


@app.post("/v1/mockups", response_model=MockupCreateResponse)
async def create_mockup(
    garment: str = Form(...),
    side: str = Form("front"),
    color: str = Form("#ffffff"),
    design: UploadFile = File(...),
    pipeline: MockupPipeline = Depends(get_pipeline),
    _lim=Depends(enforce_max_upload_size),
):
    try:
        design_img = await asyncio.to_thread(decode_image, await design.read())
        result = await pipeline.export_png(garment, side, color, design_img)
    except (MockupError, ValueError) as e:
        raise _http_error(e, "export")

    if result.mockup:
        mockups_rendered.inc()
    else:
        mockup_fallbacks.inc()
    stored_name = f"{uuid.uuid4().hex[:8]}_{result.filename}"
    path = await asyncio.to_thread(Storage.save_result_bytes, result.data, stored_name)
    logger.info(
        "Saved %s export %s",
        "mockup" if result.mockup else "design-only",
        path,
        extra={"garment": garment, "side": side, "stage": "export", "result": stored_name},
    )
    return MockupCreateResponse(filename=stored_name, mockup=result.mockup, result_path=path, error=result.error)


@app.get("/v1/results/{filename}")
def get_result(filename: str):
    path = Storage.result_path(filename)
    if not path:
        raise HTTPException(status_code=404, detail="Result not found")
    return FileResponse(path, media_type="image/png", filename=filename)


@app.on_event("startup")
async def _startup():
    setup_logging()
    Storage.ensure_dirs()
    if os.environ.get("PRELOAD_GARMENTS", "0") == "1":
        try:
            await get_pipeline().preload_all()
        except MockupError as e:
            logger.warning("Garment preload skipped: %s", e)
