"""
Estimate endpoints: Upload photos (+ overlays) → Assemble → Model → Store.
Includes a dry-run variant that stops before the model call.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from app.api.schemas import EstimateDebugResponse, EstimateResponse, OverlayDiagnostics
from app.config import Settings, get_settings
from app.errors import EstimatorError, InferenceError
from app.services.intake import build_estimation_request
from app.services.orchestrator import EstimationPipeline, get_estimation_pipeline
from app.services.overlay_stats import analyze_overlay
from app.services.prompt_assembler import build_prompt_document
from app.services.security import require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["pipeline"], dependencies=[Depends(require_session)])


@router.post("/estimate", response_model=EstimateResponse)
async def create_estimate(
    photos: list[UploadFile] = File(default=[]),
    overlays: list[UploadFile] = File(default=[]),
    job_type: Optional[str] = Form(None),
    dumpster_size: Optional[str] = Form(None),
    agent_label: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
    pipeline: EstimationPipeline = Depends(get_estimation_pipeline),
):
    """
    Estimate hauling volume from 1-12 photos. overlays[i], when sent,
    annotates photos[i]. A result that could not be saved still returns 200
    with a null id.
    """
    request = await build_estimation_request(
        settings,
        photos,
        overlays,
        job_type=job_type,
        dumpster_size=dumpster_size,
        agent_label=agent_label,
        notes=notes,
    )

    try:
        outcome = await pipeline.run(request)
    except EstimatorError:
        raise
    except Exception as e:
        logger.exception("Estimate pipeline failed")
        raise InferenceError(str(e) or "Server error") from e

    return EstimateResponse(
        id=outcome.id,
        created_at=outcome.created_at,
        result=outcome.interpretation.text,
        confidence=outcome.interpretation.confidence.value if outcome.interpretation.confidence else None,
    )


@router.post("/estimate/debug", response_model=EstimateDebugResponse)
async def debug_estimate(
    photos: list[UploadFile] = File(default=[]),
    overlays: list[UploadFile] = File(default=[]),
    job_type: Optional[str] = Form(None),
    dumpster_size: Optional[str] = Form(None),
    agent_label: Optional[str] = Form(None),
    notes: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
):
    """
    Runs intake and prompt assembly without calling the model or saving.
    Reports the segment order and how much green/red markup each overlay has.
    """
    request = await build_estimation_request(
        settings,
        photos,
        overlays,
        job_type=job_type,
        dumpster_size=dumpster_size,
        agent_label=agent_label,
        notes=notes,
    )
    document = build_prompt_document(request)

    diagnostics = []
    for pair in request.pairs:
        if pair.overlay is None:
            continue
        stats = analyze_overlay(pair.overlay)
        diagnostics.append(OverlayDiagnostics(
            photo_index=pair.index,
            filename=pair.overlay.filename,
            media_type=pair.overlay.media_type,
            size=pair.overlay.size,
            counts=None if "error" in stats else stats,
            error=stats.get("error"),
        ))

    return EstimateDebugResponse(
        job_type=request.job_type.value,
        photo_count=request.photo_count,
        overlay_count=request.overlay_count,
        segments=document.outline(),
        overlays=diagnostics,
    )
