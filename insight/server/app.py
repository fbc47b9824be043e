"""FastAPI server: upload analysis, metadata, hashes, reports, history and settings."""
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .. import __version__
from ..config import Config, load_config
from ..core.analyzer import run_analysis
from ..core.characteristics import analyze_characteristics
from ..core.hashing import compute_hashes, hamming_distance, similarity
from ..core.image_utils import (
    ImageDecodeError,
    color_histogram,
    extract_dominant_colors,
    get_image_stats,
    quality_metrics,
)
from ..core.metadata import extract_metadata
from ..core.models import AnalysisResult, HistoryItem, ImageHashes, MetadataResult
from ..core.validation import UploadValidationError, validate_batch, validate_upload
from ..report.export import default_filename, export_csv, export_history_csv, export_json
from ..report.pdf import generate_report
from ..storage.history import HistoryStore
from ..storage.settings import AppSettings, SettingsStore
from .schemas import (
    BatchItem,
    BatchResponse,
    CompareResponse,
    HealthResponse,
    HistorySaveRequest,
    HistorySaveResponse,
    NotesUpdate,
    ReportRequest,
    SettingsUpdate,
)

logger = logging.getLogger(__name__)


def _failure(message: str, error: Exception) -> HTTPException:
    logger.exception("%s", message)
    return HTTPException(500, detail={"error": message, "details": str(error)})


async def _read_upload(file: Optional[UploadFile]) -> tuple[bytes, str]:
    """Read and validate an uploaded file. Returns (bytes, content type)."""
    if file is None:
        raise UploadValidationError("No file provided")
    data = await file.read()
    content_type = validate_upload(file.filename, file.content_type, len(data))
    return data, content_type


def _request_settings(request: Request, settings_json: Optional[str]) -> AppSettings:
    """Stored settings, overlaid with the optional per-request JSON settings."""
    settings = request.app.state.settings.load()
    if not settings_json:
        return settings
    try:
        overrides = json.loads(settings_json)
        merged = settings.to_dict()
        merged.update(overrides)
        return AppSettings.from_dict(merged)
    except (ValueError, TypeError, AttributeError) as e:
        logger.info("Ignoring invalid settings field: %s", e)
        return settings


def _report_parts(body: ReportRequest) -> tuple[AnalysisResult, MetadataResult, Optional[ImageHashes]]:
    try:
        result = AnalysisResult.from_dict(body.analysis_result)
        metadata = MetadataResult.from_dict(body.metadata)
        hashes = ImageHashes.from_dict(body.hashes) if body.hashes else None
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(400, detail=f"Invalid analysis payload: {e}")
    return result, metadata, hashes


def _batch_item(
    name: str,
    data: bytes,
    content_type: str,
    settings: AppSettings,
    config: Config,
) -> BatchItem:
    """Analyze one batch upload; failures are reported on the item."""
    try:
        result = run_analysis(data, name, content_type, settings, config)
        metadata = extract_metadata(data)
    except Exception as e:
        logger.warning("Batch item %s failed: %s", name, e)
        return BatchItem(file_name=name, file_size=len(data), success=False, error=str(e))
    return BatchItem(
        file_name=name,
        file_size=len(data),
        success=True,
        analysis=result.to_dict(),
        metadata=metadata.to_dict(),
    )


def _image_report(data: bytes, content_type: str) -> dict:
    return {
        "stats": get_image_stats(data, content_type),
        "characteristics": analyze_characteristics(data).to_dict(),
        "quality": quality_metrics(data),
        "dominant_colors": extract_dominant_colors(data, 10),
        "histogram": color_histogram(data),
    }


def _attachment(content: bytes | str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the FastAPI application. Storage is opened in the lifespan."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        cfg = config or load_config()
        app.state.config = cfg
        app.state.history = HistoryStore(cfg.db_path, max_items=cfg.max_history_items)
        app.state.settings = SettingsStore(cfg.db_path)
        logger.info("Database: %s", cfg.db_path)
        logger.info(
            "Sightengine credentials %s",
            "configured" if cfg.has_sightengine_credentials else "not configured",
        )
        yield

    app = FastAPI(
        title="Image Insight",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(UploadValidationError)
    async def validation_error_handler(request: Request, exc: UploadValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    # -----------------------------------------------------------------------
    # Analysis routes
    # -----------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=__version__)

    @app.post("/api/analyze")
    async def analyze(
        request: Request,
        file: Optional[UploadFile] = File(None),
        settings: Optional[str] = Form(None),
    ):
        data, content_type = await _read_upload(file)
        app_settings = _request_settings(request, settings)
        try:
            result = await run_in_threadpool(
                run_analysis, data, file.filename or "upload", content_type,
                app_settings, request.app.state.config,
            )
        except Exception as e:
            raise _failure("Failed to analyze image", e)
        return result.to_dict()

    @app.post("/api/batch", response_model=BatchResponse)
    async def batch(
        request: Request,
        files: Optional[list[UploadFile]] = File(None),
        settings: Optional[str] = Form(None),
    ):
        uploads = [(f, await f.read()) for f in files or []]
        content_types = validate_batch(
            [(f.filename, f.content_type, len(data)) for f, data in uploads]
        )
        app_settings = _request_settings(request, settings)

        results = [
            await run_in_threadpool(
                _batch_item, upload.filename or "upload", data, content_type,
                app_settings, request.app.state.config,
            )
            for (upload, data), content_type in zip(uploads, content_types)
        ]

        successful = sum(1 for r in results if r.success)
        return BatchResponse(
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=results,
        )

    @app.post("/api/hash")
    async def hash_image(file: Optional[UploadFile] = File(None)):
        data, _ = await _read_upload(file)
        try:
            hashes = await run_in_threadpool(compute_hashes, data)
        except Exception as e:
            raise _failure("Failed to calculate hashes", e)
        return hashes.to_dict()

    @app.post("/api/metadata")
    async def metadata(file: Optional[UploadFile] = File(None)):
        data, _ = await _read_upload(file)
        result = await run_in_threadpool(extract_metadata, data)
        return result.to_dict()

    @app.post("/api/stats")
    async def stats(file: Optional[UploadFile] = File(None)):
        """Image statistics, quality metrics and color analysis."""
        data, content_type = await _read_upload(file)
        try:
            return await run_in_threadpool(_image_report, data, content_type)
        except ImageDecodeError as e:
            raise HTTPException(400, detail=str(e))
        except Exception as e:
            raise _failure("Failed to compute image statistics", e)

    @app.post("/api/compare", response_model=CompareResponse)
    async def compare(
        first: Optional[UploadFile] = File(None),
        second: Optional[UploadFile] = File(None),
    ):
        data_a, _ = await _read_upload(first)
        data_b, _ = await _read_upload(second)
        hashes_a = await run_in_threadpool(compute_hashes, data_a)
        hashes_b = await run_in_threadpool(compute_hashes, data_b)

        distance = score = None
        if hashes_a.perceptual and hashes_b.perceptual:
            distance = hamming_distance(hashes_a.perceptual, hashes_b.perceptual)
            score = similarity(hashes_a.perceptual, hashes_b.perceptual)

        return CompareResponse(
            first=hashes_a.to_dict(),
            second=hashes_b.to_dict(),
            identical=hashes_a.sha256 == hashes_b.sha256,
            hamming_distance=distance,
            similarity=score,
        )

    # -----------------------------------------------------------------------
    # Reports and export
    # -----------------------------------------------------------------------

    @app.post("/api/report")
    async def report(body: ReportRequest):
        result, metadata, hashes = _report_parts(body)
        try:
            pdf_bytes = await run_in_threadpool(
                generate_report, result, metadata, hashes, body.file_name,
            )
        except Exception as e:
            raise _failure("Failed to generate report", e)
        return _attachment(pdf_bytes, "application/pdf", default_filename("report", "pdf"))

    @app.post("/api/export/{fmt}")
    async def export(fmt: str, body: ReportRequest):
        result, metadata, hashes = _report_parts(body)
        if fmt == "json":
            return _attachment(
                export_json(result, metadata, hashes), "application/json",
                default_filename("analysis", "json"),
            )
        if fmt == "csv":
            return _attachment(
                export_csv(result, metadata), "text/csv; charset=utf-8",
                default_filename("analysis", "csv"),
            )
        raise HTTPException(400, detail=f"Unsupported export format: {fmt}")

    # -----------------------------------------------------------------------
    # History
    # -----------------------------------------------------------------------

    @app.get("/api/history")
    async def list_history(request: Request):
        return [item.to_dict() for item in request.app.state.history.list_all()]

    @app.post("/api/history", response_model=HistorySaveResponse)
    async def save_history(request: Request, body: HistorySaveRequest):
        try:
            item = HistoryItem.from_dict(body.model_dump())
        except (KeyError, TypeError, ValueError) as e:
            raise HTTPException(400, detail=f"Invalid history entry: {e}")
        return HistorySaveResponse(id=request.app.state.history.save(item))

    @app.delete("/api/history")
    async def clear_history(request: Request):
        return {"deleted": request.app.state.history.clear()}

    @app.get("/api/history/export")
    async def export_history(request: Request, format: str = Query("json")):
        store = request.app.state.history
        if format == "json":
            return _attachment(
                store.export_json(), "application/json", default_filename("history", "json"),
            )
        if format == "csv":
            return _attachment(
                export_history_csv(store.list_all()), "text/csv; charset=utf-8",
                default_filename("history", "csv"),
            )
        raise HTTPException(400, detail=f"Unsupported export format: {format}")

    @app.get("/api/history/{item_id}")
    async def get_history_item(request: Request, item_id: str):
        item = request.app.state.history.get(item_id)
        if item is None:
            raise HTTPException(404, detail=f"History item not found: {item_id}")
        return item.to_dict()

    @app.delete("/api/history/{item_id}")
    async def delete_history_item(request: Request, item_id: str):
        if not request.app.state.history.delete(item_id):
            raise HTTPException(404, detail=f"History item not found: {item_id}")
        return {"deleted": item_id}

    @app.patch("/api/history/{item_id}/notes")
    async def update_history_notes(request: Request, item_id: str, body: NotesUpdate):
        if not request.app.state.history.update_notes(item_id, body.notes):
            raise HTTPException(404, detail=f"History item not found: {item_id}")
        return {"id": item_id, "notes": body.notes}

    # -----------------------------------------------------------------------
    # Settings
    # -----------------------------------------------------------------------

    @app.get("/api/settings")
    async def get_settings(request: Request):
        return request.app.state.settings.load().public_dict()

    @app.put("/api/settings")
    async def update_settings(request: Request, body: SettingsUpdate):
        changes = body.model_dump(exclude_none=True)
        try:
            settings = request.app.state.settings.update(changes)
        except ValueError as e:
            raise HTTPException(400, detail=str(e))
        return settings.public_dict()

    @app.delete("/api/settings")
    async def reset_settings(request: Request):
        return request.app.state.settings.reset().public_dict()

    return app


app = create_app()
