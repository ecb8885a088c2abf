"""FastAPI backend for QCAR photo checks and claim reports."""

from __future__ import annotations

import io
import json
import logging
import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from qcar.models import PHOTO_GUIDES, ClaimReportInput, RenderedReport, pair_photos_with_guides
from qcar.plugins import BlurDetector
from qcar.report import ClaimReportComposer
from qcar.storage import FileStorage
from qcar.utils.config import Config
from qcar.utils.errors import ClaimsProcessingError, ErrorType
from qcar.utils.logging import setup_logging

load_dotenv()

APP_TITLE = "QCAR - Accident Claim Reports"
CONFIG_PATH = os.getenv("QCAR_CONFIG", "config.yaml")

logger = logging.getLogger(__name__)


@dataclass
class StoredUpload:
    """In-memory representation of an uploaded file."""

    filename: str
    content_type: str
    data: bytes
    size: int


@dataclass
class Services:
    """Long-lived components shared by request handlers."""

    config: Config
    detector: BlurDetector
    composer: ClaimReportComposer
    storage: FileStorage


@lru_cache(maxsize=1)
def get_services() -> Services:
    config = Config.load(CONFIG_PATH) if os.path.exists(CONFIG_PATH) else Config.default()
    setup_logging(config.logging.level, config.logging.format, config.logging.file or None)
    return Services(
        config=config,
        detector=BlurDetector(config.sharpness),
        composer=ClaimReportComposer(config.report),
        storage=FileStorage(config.storage.reports_dir, config.storage.photos_dir),
    )


app = FastAPI(title=APP_TITLE)


_STATUS_BY_ERROR = {
    ErrorType.REPORT_NOT_FOUND: 404,
    ErrorType.INVALID_CLAIM_ID: 400,
    ErrorType.CONFIG_MISSING: 500,
    ErrorType.CONFIG_INVALID: 500,
    ErrorType.STORAGE_WRITE_FAILED: 500,
    ErrorType.REPORT_RENDER_FAILED: 500,
}


@app.exception_handler(ClaimsProcessingError)
async def claims_error_handler(request: Request, exc: ClaimsProcessingError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(exc.context.error_type, 400)
    logger.error(f"{request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()})


async def _read_upload(file: UploadFile, max_file_size_mb: int) -> StoredUpload:
    data = await file.read()
    size = len(data)
    name = file.filename or "upload"
    if size == 0:
        raise HTTPException(status_code=400, detail=f"{name} is empty.")
    if size > max_file_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=413,
            detail=f"{name} exceeds the per-file limit of {max_file_size_mb} MB.",
        )
    return StoredUpload(
        filename=name,
        content_type=file.content_type or "application/octet-stream",
        data=data,
        size=size,
    )


def _parse_claim(payload: Dict[str, Any], uploads: Optional[List[StoredUpload]] = None) -> ClaimReportInput:
    try:
        photos = pair_photos_with_guides([(u.filename, u.data) for u in uploads or []])
        return ClaimReportInput.from_dict(payload, photos=photos)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid claim payload: {e}")


async def _generate(services: Services, claim: ClaimReportInput) -> RenderedReport:
    if claim.claim_id:
        services.storage.check_claim_id(claim.claim_id)
    report = await services.composer.compose(claim)
    services.storage.save_report(report)
    for position, photo in enumerate(claim.photos, start=1):
        services.storage.save_photo(report.claim_id, position, photo.filename, photo.image_bytes)
    return report


def _pdf_response(report: RenderedReport) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(report.content),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{report.filename}"',
            "X-Claim-Id": report.claim_id,
            "X-Report-Warnings": str(len(report.warnings)),
        },
    )


@app.get("/healthz")
async def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/photo-guides")
async def photo_guides() -> List[Dict[str, Any]]:
    return [asdict(guide) for guide in PHOTO_GUIDES]


@app.post("/api/photos/analyze")
async def analyze_photo(
    file: UploadFile = File(...),
    photo_id: int = Form(0),
    services: Services = Depends(get_services),
) -> JSONResponse:
    upload = await _read_upload(file, services.config.server.max_file_size_mb)
    result = await services.detector.analyze_image(upload.data, photo_id)
    payload = result.to_dict()
    payload["photoId"] = photo_id
    return JSONResponse(payload)


@app.post("/api/claims/report")
async def create_report(
    request: Request,
    services: Services = Depends(get_services),
) -> StreamingResponse:
    try:
        payload = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON.")
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object.")

    report = await _generate(services, _parse_claim(payload))
    return _pdf_response(report)


@app.post("/api/claims/report-with-photos")
async def create_report_with_photos(
    payload: str = Form(...),
    photos: List[UploadFile] = File(default=[]),
    services: Services = Depends(get_services),
) -> StreamingResponse:
    limits = services.config.server
    if len(photos) > limits.max_photos:
        raise HTTPException(
            status_code=400,
            detail=f"Too many photos. Max {limits.max_photos} allowed.",
        )

    try:
        data = json.loads(payload)
    except ValueError:
        raise HTTPException(status_code=400, detail="payload must be JSON.")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="payload must be a JSON object.")

    uploads = [await _read_upload(photo, limits.max_file_size_mb) for photo in photos]
    report = await _generate(services, _parse_claim(data, uploads))
    return _pdf_response(report)


@app.get("/api/claims/{claim_id}/report")
async def download_report(
    claim_id: str,
    services: Services = Depends(get_services),
) -> StreamingResponse:
    filename, content = services.storage.load_report(claim_id)
    return StreamingResponse(
        io.BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/api/claims")
async def list_reports(services: Services = Depends(get_services)) -> Dict[str, List[str]]:
    return {"claims": services.storage.list_reports()}
