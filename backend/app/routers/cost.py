"""Analysis cost estimate endpoint."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from backend.app.models.schemas import CostRequest, CostResponse
from backend.app.services.cost_calculator import calculate_cost, convert_to_krw, cost_message

router = APIRouter(prefix="/api/cost", tags=["cost"])


@router.post("/estimate", response_model=CostResponse)
def estimate_cost(request: CostRequest):
    try:
        cost = calculate_cost(request.duration, request.file_type, request.quality)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return CostResponse(
        **cost.to_dict(),
        total_cost_krw=convert_to_krw(cost.total_cost),
        message=cost_message(cost, int(request.duration)),
    )
