"""Scheduling service - slot listing and the slot lock manager"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import SLOT_LOCK_TTL_MINUTES
from ...models import SlotLock
from ...security_middleware import bypass_rls, set_rls_context
from ...tenancy import TenantContext
from ...utils.timezone import isoformat_utc, parse_instant
from .availability import generate_slots
from .repository import SchedulingRepository
from .schemas import LockRequest, UnlockRequest

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE = "Slot is no longer available"


def lock_to_dict(lock: SlotLock) -> dict:
    return {
        "id": lock.id,
        "tenant_id": lock.tenant_id,
        "session_id": lock.session_id,
        "staff_id": lock.staff_id,
        "service_id": lock.service_id,
        "start_time": isoformat_utc(lock.start_time),
        "end_time": isoformat_utc(lock.end_time),
        "expires_at": isoformat_utc(lock.expires_at),
    }


class SchedulingService:
    """Service layer for availability and slot locks"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SchedulingRepository()

    # ============================================================================
    # AVAILABILITY
    # ============================================================================

    def get_slots(
        self,
        date_str: Optional[str],
        service_id: Optional[str],
        staff_id: Optional[str] = None,
        ctx: Optional[TenantContext] = None,
        now: Optional[datetime] = None,
    ) -> list[dict]:
        """
        Available slots for a service on a tenant-local date.

        Slots are always computed for the tenant that owns the service. A signed-in
        user of another tenant browsing a public booking page gets the same view as an
        anonymous visitor.
        """
        if not date_str or not service_id:
            raise HTTPException(status_code=400, detail="Missing date or serviceId")

        try:
            on_date = date.fromisoformat(date_str)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid date") from e

        found = self.repo.get_bookable_service(self.db, service_id)
        if not found:
            raise HTTPException(status_code=404, detail="Service not found")
        service, tenant = found

        if ctx is not None and ctx.tenant_id != tenant.id:
            logger.debug(f"User {ctx.user_id} of tenant {ctx.tenant_id} viewing public slots of {tenant.id}")
            # Read as an anonymous visitor would
            set_rls_context(self.db, None)

        return generate_slots(self.db, tenant.id, service, on_date, tenant.timezone, staff_id, now=now)

    # ============================================================================
    # SLOT LOCKS
    # ============================================================================

    def acquire_lock(self, data: LockRequest, now: Optional[datetime] = None) -> SlotLock:
        """
        Reserve a slot for a booking session.

        Serialized per staff member: the staff row is locked, expired locks for that
        staff member are purged, conflicts are checked, then the lock is inserted, all
        in one transaction. The Postgres exclusion constraint rejects anything that
        slips through, which is reported as the same 409.
        """
        if not data.serviceId or not data.staffId or not data.startTime or not data.sessionId:
            raise HTTPException(status_code=400, detail="Missing required fields")

        try:
            start = parse_instant(data.startTime)
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Invalid start time") from e

        found = self.repo.get_bookable_service(self.db, data.serviceId)
        if not found:
            raise HTTPException(status_code=404, detail="Service not found")
        service, tenant = found

        if not self.repo.get_eligible_staff_ids(self.db, tenant.id, service.id, data.staffId):
            raise HTTPException(status_code=404, detail="Staff not found")

        effective_start = start - timedelta(minutes=service.buffer_before_minutes or 0)
        effective_end = start + timedelta(
            minutes=service.duration_minutes + (service.buffer_after_minutes or 0)
        )
        now = now or datetime.now(timezone.utc)

        try:
            self.repo.lock_staff_row(self.db, data.staffId)
            self.repo.purge_expired_locks(self.db, now, staff_id=data.staffId)
            # A session holds at most one lock per staff member
            self.repo.delete_session_locks(self.db, data.staffId, data.sessionId)

            if self.repo.has_conflict(self.db, data.staffId, effective_start, effective_end, now):
                self.db.rollback()
                raise HTTPException(status_code=409, detail=SLOT_UNAVAILABLE)

            lock = self.repo.add_lock(
                self.db,
                tenant_id=tenant.id,
                session_id=data.sessionId,
                staff_id=data.staffId,
                service_id=service.id,
                start_time=effective_start,
                end_time=effective_end,
                expires_at=now + timedelta(minutes=SLOT_LOCK_TTL_MINUTES),
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Lock rejected by exclusion constraint for staff {data.staffId}: {e.orig}")
            raise HTTPException(status_code=409, detail=SLOT_UNAVAILABLE) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Lock creation failed for staff {data.staffId}: {e}")
            raise HTTPException(status_code=500, detail="Failed to lock slot") from e

        self.db.refresh(lock)
        logger.info(
            f"🔒 Slot locked for staff {lock.staff_id} "
            f"{isoformat_utc(lock.start_time)}-{isoformat_utc(lock.end_time)} (session {lock.session_id})"
        )
        return lock

    def release_lock(self, data: UnlockRequest) -> dict:
        """Release a lock owned by the session; releasing a missing lock is a no-op"""
        if not data.lockId or not data.sessionId:
            raise HTTPException(status_code=400, detail="Missing lockId or sessionId")

        try:
            deleted = self.repo.delete_lock(self.db, data.lockId, data.sessionId)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Unlock failed for lock {data.lockId}: {e}")
            raise HTTPException(status_code=500, detail="Failed to release lock") from e

        if deleted:
            logger.info(f"🔓 Lock {data.lockId} released")
        return {"success": True}

    def cleanup_expired_locks(self, now: Optional[datetime] = None) -> int:
        """Delete expired locks across all tenants (system job)"""
        now = now or datetime.now(timezone.utc)
        try:
            bypass_rls(self.db)
            deleted = self.repo.purge_expired_locks(self.db, now)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        if deleted:
            logger.info(f"🧹 Removed {deleted} expired slot locks")
        return deleted
