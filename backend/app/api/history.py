from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.schemas import EstimateDetailResponse, HistoryResponse
from app.config import Settings, get_settings
from app.services.history import HistoryReader, get_history_reader
from app.services.security import require_session

router = APIRouter(prefix="/api", tags=["history"], dependencies=[Depends(require_session)])


@router.get("/history", response_model=HistoryResponse)
async def list_history(
    limit: Optional[int] = Query(None),
    reader: HistoryReader = Depends(get_history_reader),
    settings: Settings = Depends(get_settings),
):
    """Most recent estimates first, with a short preview of each result."""
    rows = await reader.list(limit if limit is not None else settings.history_default_limit)
    return HistoryResponse(rows=rows)


@router.get("/estimate/{estimate_id}", response_model=EstimateDetailResponse)
async def get_estimate(estimate_id: int, reader: HistoryReader = Depends(get_history_reader)):
    row = await reader.get(estimate_id)
    return EstimateDetailResponse(row=row)
