"""
Upload intake: turns the raw multipart form of POST /api/estimate into a
validated EstimationRequest.

Overlays are matched to photos by position only. overlays[i] annotates
photos[i]; a missing or zero-byte overlay part leaves that photo without one
and never shifts the pairing of later photos.
"""
import logging
from typing import Sequence

from fastapi import UploadFile

from app.config import Settings
from app.errors import ValidationError
from app.models.domain import EstimationRequest, ImageBlob, JobType, PhotoPair
from app.services.security import read_image_upload

logger = logging.getLogger(__name__)

AGENT_LABEL_MAX_CHARS = 80
NOTES_MAX_CHARS = 4000


def parse_job_type(raw: str | None) -> JobType:
    value = (raw or "").strip().upper() or JobType.STANDARD.value
    try:
        return JobType(value)
    except ValueError:
        raise ValidationError(f"Unknown job type: {value}", field="job_type")


def parse_dumpster_size(raw: str | None) -> float | None:
    """Empty or UNKNOWN means no size; anything else must be a positive number."""
    value = (raw or "").strip()
    if not value or value.upper() == "UNKNOWN":
        return None
    try:
        size = float(value)
    except ValueError:
        raise ValidationError(f"Invalid dumpster size: {value}", field="dumpster_size")
    if not size > 0 or size == float("inf"):
        raise ValidationError(f"Invalid dumpster size: {value}", field="dumpster_size")
    return size


def clean_text(raw: str | None, max_chars: int) -> str | None:
    """Trim, truncate, and collapse empty input to None."""
    value = (raw or "").strip()[:max_chars]
    return value or None


def pair_photos(photos: Sequence[ImageBlob], overlays: Sequence[ImageBlob | None]) -> list[PhotoPair]:
    if len(overlays) > len(photos):
        raise ValidationError(
            f"Received {len(overlays)} overlays for {len(photos)} photos",
            field="overlays",
        )
    pairs = []
    for index, photo in enumerate(photos):
        overlay = overlays[index] if index < len(overlays) else None
        pairs.append(PhotoPair(index=index, photo=photo, overlay=overlay))
    return pairs


async def build_estimation_request(
    settings: Settings,
    photos: Sequence[UploadFile],
    overlays: Sequence[UploadFile],
    job_type: str | None = None,
    dumpster_size: str | None = None,
    agent_label: str | None = None,
    notes: str | None = None,
) -> EstimationRequest:
    if not photos:
        raise ValidationError("Please upload at least 1 photo", field="photos")
    if len(photos) > settings.max_files:
        raise ValidationError(f"Too many photos (max {settings.max_files})", field="photos")
    if len(overlays) > settings.max_files:
        raise ValidationError(f"Too many overlays (max {settings.max_files})", field="overlays")

    parsed_job_type = parse_job_type(job_type)
    parsed_size = parse_dumpster_size(dumpster_size)

    photo_blobs = []
    for upload in photos:
        blob = await read_image_upload(upload, settings.max_file_bytes)
        if not blob.data:
            raise ValidationError(f"Photo is empty: {upload.filename or 'upload'}", field="photos")
        photo_blobs.append(blob)

    overlay_blobs: list[ImageBlob | None] = []
    for upload in overlays:
        blob = await read_image_upload(upload, settings.max_file_bytes, field="overlays")
        overlay_blobs.append(blob if blob.data else None)

    request = EstimationRequest(
        job_type=parsed_job_type,
        dumpster_size=parsed_size,
        agent_label=clean_text(agent_label, AGENT_LABEL_MAX_CHARS),
        notes=clean_text(notes, NOTES_MAX_CHARS),
        pairs=pair_photos(photo_blobs, overlay_blobs),
    )
    logger.info(
        f"Estimate request: job_type={request.job_type.value} "
        f"photos={request.photo_count} overlays={request.overlay_count}"
    )
    return request
