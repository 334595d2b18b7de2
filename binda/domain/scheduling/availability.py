"""Slot availability - bookable start times for a service on one tenant-local date"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from ...config import SLOT_INTERVAL_MINUTES
from ...models import Service
from ...utils.timezone import ensure_utc, get_zone, isoformat_utc, parse_time_on_date
from .repository import SchedulingRepository

logger = logging.getLogger(__name__)


def _overlaps(start: datetime, end: datetime, blocks: list[tuple[datetime, datetime]]) -> bool:
    return any(block_start < end and block_end > start for block_start, block_end in blocks)


def generate_slots(
    db: Session,
    tenant_id: str,
    service: Service,
    on_date: date,
    tz: str,
    staff_id: Optional[str] = None,
    now: Optional[datetime] = None,
    interval_minutes: int = SLOT_INTERVAL_MINUTES,
) -> list[dict]:
    """
    Union of every eligible staff member's free start times on ``on_date``.

    For each staff member and each working interval of the tenant-local weekday, a
    cursor walks from the interval start in ``interval_minutes`` steps. A candidate is
    kept when its effective interval (buffers included) lies inside the working
    interval and overlaps no block. Slots are sorted by start and carry the ids of the
    staff members who can take them.
    """
    repo = SchedulingRepository()
    now = now or datetime.now(timezone.utc)
    zone = get_zone(tz)

    duration = timedelta(minutes=service.duration_minutes)
    buffer_before = timedelta(minutes=service.buffer_before_minutes or 0)
    buffer_after = timedelta(minutes=service.buffer_after_minutes or 0)
    step = timedelta(minutes=interval_minutes)

    # 0 = Sunday ... 6 = Saturday
    day_of_week = on_date.isoweekday() % 7

    available: dict[datetime, set[str]] = {}

    for sid in repo.get_eligible_staff_ids(db, tenant_id, service.id, staff_id):
        intervals = []
        for hours in repo.get_working_hours_for_day(db, sid, day_of_week):
            shift_start = ensure_utc(parse_time_on_date(hours.start_time, on_date, tz))
            shift_end = ensure_utc(parse_time_on_date(hours.end_time, on_date, tz))
            if shift_start < shift_end:
                intervals.append((shift_start, shift_end))

        if not intervals:
            continue

        blocks = [
            (ensure_utc(start), ensure_utc(end))
            for start, end in repo.get_day_blocks(
                db,
                sid,
                min(start for start, _ in intervals),
                max(end for _, end in intervals),
                now,
            )
        ]

        for shift_start, shift_end in intervals:
            cursor = shift_start
            while cursor + duration <= shift_end:
                effective_start = cursor - buffer_before
                effective_end = cursor + duration + buffer_after

                if (
                    effective_start >= shift_start
                    and effective_end <= shift_end
                    and not _overlaps(effective_start, effective_end, blocks)
                ):
                    available.setdefault(cursor, set()).add(sid)

                cursor += step

    slots = []
    for start in sorted(available):
        end = start + duration
        slots.append(
            {
                "start": isoformat_utc(start),
                "end": isoformat_utc(end),
                "localStart": start.astimezone(zone).isoformat(),
                "localEnd": end.astimezone(zone).isoformat(),
                "staffIds": sorted(available[start]),
                "available": True,
            }
        )

    logger.debug(f"Generated {len(slots)} slots for service {service.id} on {on_date}")
    return slots
