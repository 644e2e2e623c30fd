from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from enum import Enum

from timekeeper.utils.clock import ensure_aware_utc


class ApprovalStatusEnum(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# ---------- TIMER REQUESTS ----------
class TimerStart(BaseModel):
    task_id: int
    note: Optional[str] = None
    utc_offset_minutes: Optional[int] = Field(default=None, ge=-720, le=840)


class ManualTimeLogCreate(BaseModel):
    task_id: int
    start_time: datetime
    end_time: datetime
    note: Optional[str] = None
    utc_offset_minutes: Optional[int] = Field(default=None, ge=-720, le=840)


class TimeLogReject(BaseModel):
    reason: str


# ---------- OUT ----------
class TimeLogOut(BaseModel):
    id: int
    task_id: int
    task_title: Optional[str] = None
    user_id: int
    user_name: Optional[str] = None
    project_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_total_seconds: int
    paused_duration_seconds: int
    effective_duration_seconds: int
    is_paused: bool
    is_manual: bool
    note: Optional[str] = None
    status: ApprovalStatusEnum
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator("start_time", "end_time", "reviewed_at")
    @classmethod
    def as_utc(cls, value: Optional[datetime]):
        # SQLite hands timestamps back without tzinfo; they are stored as UTC
        if value is None:
            return value
        return ensure_aware_utc(value)


class ActiveTimerOut(TimeLogOut):
    """Open log plus durations computed by the server at `server_time`."""
    current_duration_seconds: int
    current_effective_duration_seconds: int
    server_time: datetime


class LongRunningTimersResponse(BaseModel):
    threshold_hours: float
    count: int
    data: List[ActiveTimerOut]
