"""Payment router - Paystack transaction initialize and verify"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_tenant_context
from ...database import get_db
from ...tenancy import TenantContext
from .schemas import (
    PaymentInitializeRequest,
    PaymentInitializeResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


@router.post("/initialize", response_model=PaymentInitializeResponse)
async def initialize_payment(
    data: PaymentInitializeRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    service: PaymentService = Depends(get_payment_service),
):
    """Start a Paystack transaction for an appointment deposit"""
    return await service.initialize(ctx, data)


@router.post("/verify", response_model=PaymentVerifyResponse)
async def verify_payment(
    data: PaymentVerifyRequest,
    service: PaymentService = Depends(get_payment_service),
):
    """Verify a transaction after the Paystack redirect (public: the outcome comes from Paystack)"""
    return await service.verify(data.reference)
