"""Scheduling domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel


class SlotResponse(BaseModel):
    """One bookable start time; start/end are UTC, localStart/localEnd tenant-local"""

    start: str
    end: str
    localStart: str
    localEnd: str
    staffIds: list[str]
    available: bool = True


class LockRequest(BaseModel):
    """Fields are checked by the lock service so missing ones yield a single 400"""

    serviceId: Optional[str] = None
    staffId: Optional[str] = None
    startTime: Optional[str] = None
    sessionId: Optional[str] = None


class LockResponse(BaseModel):
    id: str
    tenant_id: str
    session_id: str
    staff_id: str
    service_id: str
    start_time: str
    end_time: str
    expires_at: str


class UnlockRequest(BaseModel):
    lockId: Optional[str] = None
    sessionId: Optional[str] = None
