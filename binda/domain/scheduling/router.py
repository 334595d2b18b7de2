"""Scheduling router - slot availability, slot locks and lock cleanup"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...auth import get_optional_tenant_context
from ...config import CRON_SECRET, SERVICE_ROLE_KEY
from ...database import get_db
from ...rate_limiter import slot_lock_rate_limit
from ...tenancy import TenantContext
from .schemas import LockRequest, LockResponse, SlotResponse, UnlockRequest
from .service import SchedulingService, lock_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Scheduling"])


def get_scheduling_service(db: Session = Depends(get_db)) -> SchedulingService:
    """Dependency injection for SchedulingService"""
    return SchedulingService(db)


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Accept ``Bearer <CRON_SECRET>`` (or the service-role key) from the scheduler"""
    token = (authorization or "").removeprefix("Bearer ").strip()
    secrets = [s for s in (CRON_SECRET, SERVICE_ROLE_KEY) if s]

    if not secrets:
        logger.error("❌ CRON_SECRET not configured; refusing cron request")
        raise HTTPException(status_code=401, detail="Unauthorized")

    if not token or not any(hmac.compare_digest(token, s) for s in secrets):
        logger.warning("⚠️ Cron request with invalid secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


# ============================================================================
# AVAILABILITY
# ============================================================================


@router.get("/slots", response_model=list[SlotResponse])
async def get_slots(
    date: Optional[str] = Query(None),
    service_id: Optional[str] = Query(None, alias="serviceId"),
    staff_id: Optional[str] = Query(None, alias="staffId"),
    ctx: Optional[TenantContext] = Depends(get_optional_tenant_context),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Available slots for a service on a tenant-local date (YYYY-MM-DD)"""
    return service.get_slots(date, service_id, staff_id, ctx=ctx)


# ============================================================================
# SLOT LOCKS
# ============================================================================


@router.post("/slots/lock", response_model=LockResponse)
async def lock_slot(
    data: LockRequest,
    _: None = Depends(slot_lock_rate_limit),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Hold a slot for the booking session until the lock expires"""
    return lock_to_dict(service.acquire_lock(data))


@router.post("/slots/unlock")
async def unlock_slot(
    data: UnlockRequest,
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Release a held slot; only the owning session can release it"""
    return service.release_lock(data)


@router.get("/cron/cleanup-locks")
async def cleanup_locks(
    _: None = Depends(verify_cron_secret),
    service: SchedulingService = Depends(get_scheduling_service),
):
    """Purge expired slot locks across all tenants (called by the scheduler)"""
    try:
        deleted = service.cleanup_expired_locks()
    except SQLAlchemyError as e:
        logger.error(f"❌ Expired lock cleanup failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to clean up locks") from e
    return {"success": True, "deleted": deleted}
