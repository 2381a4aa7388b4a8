from datetime import datetime
from typing import Optional, Union
from pydantic import BaseModel, StrictInt, StrictStr

from app.models.domain import EstimateRecord, EstimateSummary


class LoginRequest(BaseModel):
    pin: Optional[Union[StrictStr, StrictInt]] = None


class OkResponse(BaseModel):
    ok: bool = True


class EstimateResponse(OkResponse):
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    result: str
    confidence: Optional[str] = None


class HistoryResponse(OkResponse):
    rows: list[EstimateSummary]


class EstimateDetailResponse(OkResponse):
    row: EstimateRecord


class OverlayDiagnostics(BaseModel):
    photo_index: int
    filename: Optional[str] = None
    media_type: str
    size: int
    counts: Optional[dict] = None
    error: Optional[str] = None


class EstimateDebugResponse(OkResponse):
    job_type: str
    photo_count: int
    overlay_count: int
    segments: list[str]
    overlays: list[OverlayDiagnostics]
