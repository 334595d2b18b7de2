"""Scheduling repository - conflict queries, staff serialization and slot lock storage"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...models import (
    Appointment,
    Service,
    ServiceStaff,
    SlotLock,
    Staff,
    StaffTimeOff,
    StaffWorkingHours,
    Tenant,
    TenantTimeOff,
)


def _staff_tenant_id(staff_id: str):
    return select(Staff.tenant_id).where(Staff.id == staff_id).scalar_subquery()


class SchedulingRepository:
    """Repository for scheduling database operations"""

    @staticmethod
    def get_bookable_service(db: Session, service_id: str) -> Optional[tuple[Service, Tenant]]:
        """An active service of an active tenant, with that tenant"""
        row = (
            db.query(Service, Tenant)
            .join(Tenant, Tenant.id == Service.tenant_id)
            .filter(
                Service.id == service_id,
                Service.is_active.is_(True),
                Tenant.status == "active",
            )
            .first()
        )
        return (row[0], row[1]) if row else None

    @staticmethod
    def get_eligible_staff_ids(
        db: Session, tenant_id: str, service_id: str, staff_id: Optional[str] = None
    ) -> list[str]:
        """Active staff of the tenant assigned to the service (optionally just one of them)"""
        query = (
            db.query(Staff.id)
            .join(ServiceStaff, ServiceStaff.staff_id == Staff.id)
            .filter(
                ServiceStaff.service_id == service_id,
                Staff.tenant_id == tenant_id,
                Staff.is_active.is_(True),
            )
        )
        if staff_id:
            query = query.filter(Staff.id == staff_id)
        return [row[0] for row in query.order_by(Staff.id).all()]

    @staticmethod
    def get_working_hours_for_day(db: Session, staff_id: str, day_of_week: int) -> list[StaffWorkingHours]:
        return (
            db.query(StaffWorkingHours)
            .filter(
                StaffWorkingHours.staff_id == staff_id,
                StaffWorkingHours.day_of_week == day_of_week,
            )
            .order_by(StaffWorkingHours.start_time)
            .all()
        )

    @staticmethod
    def lock_staff_row(db: Session, staff_id: str) -> Optional[Staff]:
        """
        Serialize lock acquisition and booking per staff member.

        Holds a row lock on the staff record until the surrounding transaction ends
        (no-op on SQLite, which serializes writers anyway).
        """
        return db.query(Staff).filter(Staff.id == staff_id).with_for_update().first()

    @staticmethod
    def get_day_blocks(
        db: Session, staff_id: str, range_start: datetime, range_end: datetime, now: datetime
    ) -> list[tuple[datetime, datetime]]:
        """
        Every interval overlapping [range_start, range_end) during which the staff member
        is busy or the business is closed
        """
        appointments = (
            db.query(Appointment.start_time, Appointment.end_time)
            .filter(
                Appointment.staff_id == staff_id,
                Appointment.status != "cancelled",
                Appointment.start_time < range_end,
                Appointment.end_time > range_start,
            )
            .all()
        )
        time_off = (
            db.query(StaffTimeOff.start_time, StaffTimeOff.end_time)
            .filter(
                StaffTimeOff.staff_id == staff_id,
                StaffTimeOff.start_time < range_end,
                StaffTimeOff.end_time > range_start,
            )
            .all()
        )
        closures = (
            db.query(TenantTimeOff.start_time, TenantTimeOff.end_time)
            .filter(
                TenantTimeOff.tenant_id == _staff_tenant_id(staff_id),
                TenantTimeOff.start_time < range_end,
                TenantTimeOff.end_time > range_start,
            )
            .all()
        )
        locks = (
            db.query(SlotLock.start_time, SlotLock.end_time)
            .filter(
                SlotLock.staff_id == staff_id,
                SlotLock.expires_at > now,
                SlotLock.start_time < range_end,
                SlotLock.end_time > range_start,
            )
            .all()
        )
        return [(start, end) for start, end in [*appointments, *time_off, *closures, *locks]]

    @staticmethod
    def has_conflict(
        db: Session,
        staff_id: str,
        start: datetime,
        end: datetime,
        now: datetime,
        ignore_session_id: Optional[str] = None,
    ) -> bool:
        """
        Whether [start, end) overlaps a non-cancelled appointment, staff time off, a
        business closure or an unexpired lock. Locks held by ``ignore_session_id``
        do not count.
        """
        appointment = (
            db.query(Appointment.id)
            .filter(
                Appointment.staff_id == staff_id,
                Appointment.status != "cancelled",
                Appointment.start_time < end,
                Appointment.end_time > start,
            )
            .first()
        )
        if appointment:
            return True

        time_off = (
            db.query(StaffTimeOff.id)
            .filter(
                StaffTimeOff.staff_id == staff_id,
                StaffTimeOff.start_time < end,
                StaffTimeOff.end_time > start,
            )
            .first()
        )
        if time_off:
            return True

        closure = (
            db.query(TenantTimeOff.id)
            .filter(
                TenantTimeOff.tenant_id == _staff_tenant_id(staff_id),
                TenantTimeOff.start_time < end,
                TenantTimeOff.end_time > start,
            )
            .first()
        )
        if closure:
            return True

        lock_query = db.query(SlotLock.id).filter(
            SlotLock.staff_id == staff_id,
            SlotLock.expires_at > now,
            SlotLock.start_time < end,
            SlotLock.end_time > start,
        )
        if ignore_session_id:
            lock_query = lock_query.filter(SlotLock.session_id != ignore_session_id)
        return lock_query.first() is not None

    # ------------------------------------------------------------------ locks

    @staticmethod
    def purge_expired_locks(db: Session, now: datetime, staff_id: Optional[str] = None) -> int:
        """Delete expired locks (for one staff member, or all). Caller commits."""
        query = db.query(SlotLock).filter(SlotLock.expires_at <= now)
        if staff_id:
            query = query.filter(SlotLock.staff_id == staff_id)
        return query.delete(synchronize_session=False)

    @staticmethod
    def delete_session_locks(db: Session, staff_id: str, session_id: str) -> int:
        """Drop a session's earlier locks on a staff member before it re-locks. Caller commits."""
        return (
            db.query(SlotLock)
            .filter(SlotLock.staff_id == staff_id, SlotLock.session_id == session_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def add_lock(db: Session, **lock_data) -> SlotLock:
        lock = SlotLock(**lock_data)
        db.add(lock)
        db.flush()
        return lock

    @staticmethod
    def delete_lock(db: Session, lock_id: str, session_id: str) -> int:
        """Delete only when both the lock id and the owning session match. Caller commits."""
        return (
            db.query(SlotLock)
            .filter(SlotLock.id == lock_id, SlotLock.session_id == session_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def consume_session_lock(
        db: Session, session_id: str, staff_id: str, start: datetime, end: datetime
    ) -> int:
        """Delete the session's lock covering [start, end) for the staff member. Caller commits."""
        return (
            db.query(SlotLock)
            .filter(
                SlotLock.session_id == session_id,
                SlotLock.staff_id == staff_id,
                SlotLock.start_time < end,
                SlotLock.end_time > start,
            )
            .delete(synchronize_session=False)
        )
