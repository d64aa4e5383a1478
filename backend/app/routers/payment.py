"""Mock payment endpoint. No payment provider is contacted."""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter

from backend.app.models.schemas import PaymentRequest, PaymentResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.post("", response_model=PaymentResponse)
def create_payment(request: PaymentRequest):
    payment_id = f"pay_{uuid.uuid4().hex[:16]}"
    logger.info(
        f"Mock payment {payment_id}: {request.amount} {request.currency} "
        f"via {request.payment_method} for {request.file_name or '-'}"
    )
    return PaymentResponse(success=True, payment_id=payment_id, message="결제가 완료되었습니다.")
