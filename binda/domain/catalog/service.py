"""Catalog service - Business logic for services, staff and schedules"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...models import Service, Staff, StaffTimeOff, StaffWorkingHours, TenantTimeOff
from ...policy import MANAGE_SERVICES, MANAGE_STAFF, authorize
from ...tenancy import TenantContext
from ...utils.sanitization import clean_text_input
from ...utils.timezone import parse_instant
from .repository import CatalogRepository
from .schemas import (
    ServiceCreate,
    ServiceUpdate,
    StaffCreate,
    StaffUpdate,
    TimeOffCreate,
    WorkingHoursEntry,
)

logger = logging.getLogger(__name__)


def _clean(value: Optional[str], max_length: int = 500) -> Optional[str]:
    try:
        return clean_text_input(value, max_length=max_length)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _parse_from(from_time: Optional[str]):
    if not from_time:
        return None
    try:
        return parse_instant(from_time)
    except ValueError as e:
        raise HTTPException(status_code=400, detail="Invalid from parameter") from e


class CatalogService:
    """Service layer for catalog business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CatalogRepository()

    # ============================================================================
    # PUBLIC BOOKING FLOW
    # ============================================================================

    def get_public_services(self, tenant_id: Optional[str]) -> list[Service]:
        if not tenant_id:
            raise HTTPException(status_code=400, detail="Missing tenantId")
        try:
            return self.repo.list_services(self.db, tenant_id, active_only=True)
        except SQLAlchemyError as e:
            logger.error(f"❌ Public services query failed for tenant {tenant_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch services") from e

    def get_public_staff(self, service_id: Optional[str]) -> list[Staff]:
        if not service_id:
            raise HTTPException(status_code=400, detail="Missing serviceId")
        try:
            return self.repo.get_service_staff(self.db, service_id, active_only=True)
        except SQLAlchemyError as e:
            logger.error(f"❌ Public staff query failed for service {service_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch staff") from e

    # ============================================================================
    # SERVICES
    # ============================================================================

    def list_services(self, ctx: TenantContext) -> list[Service]:
        return self.repo.list_services(self.db, ctx.tenant_id)

    def get_service(self, ctx: TenantContext, service_id: str) -> Service:
        service = self.repo.get_service(self.db, ctx, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        return service

    def create_service(self, ctx: TenantContext, data: ServiceCreate) -> Service:
        authorize(ctx, MANAGE_SERVICES, ctx.tenant_id)
        service = self.repo.create_service(
            self.db,
            ctx,
            name=data.name,
            description=_clean(data.description, max_length=2000),
            duration_minutes=data.duration_minutes,
            buffer_before_minutes=data.buffer_before_minutes,
            buffer_after_minutes=data.buffer_after_minutes,
            price=data.price,
            is_active=data.is_active,
        )
        logger.info(f"✅ Service {service.id} created for tenant {ctx.tenant_id}")
        return service

    def update_service(self, ctx: TenantContext, service_id: str, data: ServiceUpdate) -> Service:
        authorize(ctx, MANAGE_SERVICES, ctx.tenant_id)
        service = self.get_service(ctx, service_id)

        if data.assignedStaffIds is not None:
            self._replace_assignment(ctx, service, data.assignedStaffIds)

        return self.repo.update_service(
            self.db,
            service,
            name=data.name.strip() if data.name else None,
            description=_clean(data.description, max_length=2000),
            duration_minutes=data.duration_minutes,
            buffer_before_minutes=data.buffer_before_minutes,
            buffer_after_minutes=data.buffer_after_minutes,
            price=data.price,
            is_active=data.is_active,
        )

    def deactivate_service(self, ctx: TenantContext, service_id: str) -> dict:
        """Services are deactivated, not deleted; past appointments still reference them"""
        authorize(ctx, MANAGE_SERVICES, ctx.tenant_id)
        service = self.get_service(ctx, service_id)
        self.repo.update_service(self.db, service, is_active=False)
        return {"success": True}

    def get_service_staff(self, ctx: TenantContext, service_id: str) -> list[Staff]:
        service = self.get_service(ctx, service_id)
        return self.repo.get_service_staff(self.db, service.id)

    def set_service_staff(self, ctx: TenantContext, service_id: str, staff_ids: list[str]) -> list[Staff]:
        authorize(ctx, MANAGE_SERVICES, ctx.tenant_id)
        service = self.get_service(ctx, service_id)
        self._replace_assignment(ctx, service, staff_ids)
        return self.repo.get_service_staff(self.db, service.id)

    def _replace_assignment(self, ctx: TenantContext, service: Service, staff_ids: list[str]) -> None:
        unique_ids = list(dict.fromkeys(staff_ids))
        if unique_ids and self.repo.count_staff(self.db, ctx.tenant_id, unique_ids) != len(unique_ids):
            raise HTTPException(status_code=400, detail="Unknown staff member in assignment")
        self.repo.replace_service_staff(self.db, service.id, unique_ids)

    # ============================================================================
    # STAFF
    # ============================================================================

    def list_staff(self, ctx: TenantContext) -> list[Staff]:
        return self.repo.list_staff(self.db, ctx.tenant_id)

    def get_staff(self, ctx: TenantContext, staff_id: str) -> Staff:
        staff = self.repo.get_staff(self.db, ctx, staff_id)
        if not staff:
            raise HTTPException(status_code=404, detail="Staff not found")
        return staff

    def create_staff(self, ctx: TenantContext, data: StaffCreate) -> Staff:
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        staff = self.repo.create_staff(
            self.db, ctx, name=data.name, email=data.email, phone=data.phone, is_active=data.is_active
        )
        logger.info(f"✅ Staff {staff.id} created for tenant {ctx.tenant_id}")
        return staff

    def update_staff(self, ctx: TenantContext, staff_id: str, data: StaffUpdate) -> Staff:
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        staff = self.get_staff(ctx, staff_id)
        return self.repo.update_staff(
            self.db,
            staff,
            name=data.name.strip() if data.name else None,
            email=data.email,
            phone=data.phone,
            is_active=data.is_active,
        )

    def deactivate_staff(self, ctx: TenantContext, staff_id: str) -> dict:
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        staff = self.get_staff(ctx, staff_id)
        self.repo.update_staff(self.db, staff, is_active=False)
        return {"success": True}

    # ============================================================================
    # WORKING HOURS / TIME OFF
    # ============================================================================

    def get_working_hours(self, ctx: TenantContext, staff_id: str) -> list[StaffWorkingHours]:
        staff = self.get_staff(ctx, staff_id)
        return self.repo.get_working_hours(self.db, staff.id)

    def replace_working_hours(
        self, ctx: TenantContext, staff_id: str, hours: list[WorkingHoursEntry]
    ) -> dict:
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        staff = self.get_staff(ctx, staff_id)
        try:
            self.repo.replace_working_hours(self.db, staff.id, [h.model_dump() for h in hours])
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Failed to save working hours for staff {staff.id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update schedule") from e
        return {"success": True}

    def list_time_off(
        self, ctx: TenantContext, staff_id: str, from_time: Optional[str] = None
    ) -> list[StaffTimeOff]:
        staff = self.get_staff(ctx, staff_id)
        return self.repo.list_time_off(self.db, staff.id, _parse_from(from_time))

    def create_time_off(self, ctx: TenantContext, staff_id: str, data: TimeOffCreate) -> StaffTimeOff:
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        staff = self.get_staff(ctx, staff_id)
        return self.repo.create_time_off(
            self.db,
            staff.id,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=_clean(data.reason),
        )

    def delete_time_off(self, ctx: TenantContext, staff_id: str, time_off_id: Optional[str]) -> dict:
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        if not time_off_id:
            raise HTTPException(status_code=400, detail="Missing timeOffId")
        staff = self.get_staff(ctx, staff_id)
        self.repo.delete_time_off(self.db, staff.id, time_off_id)
        return {"success": True}

    # ============================================================================
    # BUSINESS CLOSURES
    # ============================================================================

    def list_closures(self, ctx: TenantContext, from_time: Optional[str] = None) -> list[TenantTimeOff]:
        """Closures of the caller's business, optionally only those still running at ``from``"""
        return self.repo.list_closures(self.db, ctx.tenant_id, _parse_from(from_time))

    def create_closure(self, ctx: TenantContext, data: TimeOffCreate) -> TenantTimeOff:
        """Close the whole business; no staff member can be booked inside the window"""
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        closure = self.repo.create_closure(
            self.db,
            ctx,
            start_time=data.start_time,
            end_time=data.end_time,
            reason=_clean(data.reason),
        )
        logger.info(f"🚧 Closure {closure.id} added for tenant {ctx.tenant_id}")
        return closure

    def delete_closure(self, ctx: TenantContext, closure_id: Optional[str]) -> dict:
        authorize(ctx, MANAGE_STAFF, ctx.tenant_id)
        if not closure_id:
            raise HTTPException(status_code=400, detail="Missing id")
        self.repo.delete_closure(self.db, ctx.tenant_id, closure_id)
        return {"success": True}
