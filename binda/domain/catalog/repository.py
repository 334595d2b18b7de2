"""Catalog repository - Database operations for services, staff and schedules"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Service, ServiceStaff, Staff, StaffTimeOff, StaffWorkingHours, TenantTimeOff
from ...tenancy import TenantContext

# Mon-Fri 09:00-17:00 for newly created staff
DEFAULT_WORKING_DAYS = (1, 2, 3, 4, 5)
DEFAULT_START_TIME = "09:00"
DEFAULT_END_TIME = "17:00"


class CatalogRepository:
    """Repository for catalog database operations; every query is tenant-scoped"""

    # ------------------------------------------------------------------ services

    @staticmethod
    def list_services(db: Session, tenant_id: str, active_only: bool = False) -> list[Service]:
        query = db.query(Service).filter(Service.tenant_id == tenant_id)
        if active_only:
            query = query.filter(Service.is_active.is_(True))
        return query.order_by(Service.name).all()

    @staticmethod
    def get_service(db: Session, ctx: TenantContext, service_id: str) -> Optional[Service]:
        return (
            db.query(Service)
            .filter(Service.id == service_id, Service.tenant_id == ctx.tenant_id)
            .first()
        )

    @staticmethod
    def create_service(db: Session, ctx: TenantContext, **data) -> Service:
        service = Service(tenant_id=ctx.tenant_id, **data)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    @staticmethod
    def update_service(db: Session, service: Service, **updates) -> Service:
        for key, value in updates.items():
            if value is not None and hasattr(service, key):
                setattr(service, key, value)
        db.commit()
        db.refresh(service)
        return service

    # ------------------------------------------------------------ assignments

    @staticmethod
    def get_service_staff(db: Session, service_id: str, active_only: bool = False) -> list[Staff]:
        query = (
            db.query(Staff)
            .join(ServiceStaff, ServiceStaff.staff_id == Staff.id)
            .filter(ServiceStaff.service_id == service_id)
        )
        if active_only:
            query = query.filter(Staff.is_active.is_(True))
        return query.order_by(Staff.name).all()

    @staticmethod
    def is_staff_assigned(db: Session, service_id: str, staff_id: str) -> bool:
        return (
            db.query(ServiceStaff)
            .filter(ServiceStaff.service_id == service_id, ServiceStaff.staff_id == staff_id)
            .first()
            is not None
        )

    @staticmethod
    def replace_service_staff(db: Session, service_id: str, staff_ids: list[str]) -> None:
        """Replace the full assignment set in one transaction"""
        db.query(ServiceStaff).filter(ServiceStaff.service_id == service_id).delete(
            synchronize_session=False
        )
        for staff_id in dict.fromkeys(staff_ids):
            db.add(ServiceStaff(service_id=service_id, staff_id=staff_id))
        db.commit()

    # ------------------------------------------------------------------- staff

    @staticmethod
    def list_staff(db: Session, tenant_id: str) -> list[Staff]:
        return db.query(Staff).filter(Staff.tenant_id == tenant_id).order_by(Staff.name).all()

    @staticmethod
    def get_staff(db: Session, ctx: TenantContext, staff_id: str) -> Optional[Staff]:
        return db.query(Staff).filter(Staff.id == staff_id, Staff.tenant_id == ctx.tenant_id).first()

    @staticmethod
    def count_staff(db: Session, tenant_id: str, staff_ids: list[str]) -> int:
        return (
            db.query(Staff)
            .filter(Staff.tenant_id == tenant_id, Staff.id.in_(staff_ids))
            .count()
        )

    @staticmethod
    def create_staff(db: Session, ctx: TenantContext, **data) -> Staff:
        """Create a staff member with the default weekly schedule"""
        staff = Staff(tenant_id=ctx.tenant_id, **data)
        staff.working_hours = [
            StaffWorkingHours(
                day_of_week=day, start_time=DEFAULT_START_TIME, end_time=DEFAULT_END_TIME
            )
            for day in DEFAULT_WORKING_DAYS
        ]
        db.add(staff)
        db.commit()
        db.refresh(staff)
        return staff

    @staticmethod
    def update_staff(db: Session, staff: Staff, **updates) -> Staff:
        for key, value in updates.items():
            if value is not None and hasattr(staff, key):
                setattr(staff, key, value)
        db.commit()
        db.refresh(staff)
        return staff

    # ----------------------------------------------------------- working hours

    @staticmethod
    def get_working_hours(db: Session, staff_id: str) -> list[StaffWorkingHours]:
        return (
            db.query(StaffWorkingHours)
            .filter(StaffWorkingHours.staff_id == staff_id)
            .order_by(StaffWorkingHours.day_of_week, StaffWorkingHours.start_time)
            .all()
        )

    @staticmethod
    def replace_working_hours(db: Session, staff_id: str, hours: list[dict]) -> None:
        """Delete-then-insert the weekly schedule in one transaction"""
        db.query(StaffWorkingHours).filter(StaffWorkingHours.staff_id == staff_id).delete(
            synchronize_session=False
        )
        for entry in hours:
            db.add(StaffWorkingHours(staff_id=staff_id, **entry))
        db.commit()

    # ---------------------------------------------------------------- time off

    @staticmethod
    def list_time_off(
        db: Session, staff_id: str, from_time: Optional[datetime] = None
    ) -> list[StaffTimeOff]:
        query = db.query(StaffTimeOff).filter(StaffTimeOff.staff_id == staff_id)
        if from_time is not None:
            query = query.filter(StaffTimeOff.end_time >= from_time)
        return query.order_by(StaffTimeOff.start_time).all()

    @staticmethod
    def create_time_off(db: Session, staff_id: str, **data) -> StaffTimeOff:
        entry = StaffTimeOff(staff_id=staff_id, **data)
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def delete_time_off(db: Session, staff_id: str, time_off_id: str) -> int:
        deleted = (
            db.query(StaffTimeOff)
            .filter(StaffTimeOff.id == time_off_id, StaffTimeOff.staff_id == staff_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted

    # ---------------------------------------------------------------- closures

    @staticmethod
    def list_closures(
        db: Session, tenant_id: str, from_time: Optional[datetime] = None
    ) -> list[TenantTimeOff]:
        query = db.query(TenantTimeOff).filter(TenantTimeOff.tenant_id == tenant_id)
        if from_time is not None:
            query = query.filter(TenantTimeOff.end_time >= from_time)
        return query.order_by(TenantTimeOff.start_time).all()

    @staticmethod
    def create_closure(db: Session, ctx: TenantContext, **data) -> TenantTimeOff:
        closure = TenantTimeOff(tenant_id=ctx.tenant_id, **data)
        db.add(closure)
        db.commit()
        db.refresh(closure)
        return closure

    @staticmethod
    def delete_closure(db: Session, tenant_id: str, closure_id: str) -> int:
        deleted = (
            db.query(TenantTimeOff)
            .filter(TenantTimeOff.id == closure_id, TenantTimeOff.tenant_id == tenant_id)
            .delete(synchronize_session=False)
        )
        db.commit()
        return deleted
