import datetime as dt
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from timekeeper.schemas.time_log import ApprovalStatusEnum, TimeLogOut


class TimesheetView(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class TaskStatusEnum(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class TimesheetFilters(BaseModel):
    user_id: Optional[int] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    task_status: Optional[TaskStatusEnum] = None
    approval_status: Optional[ApprovalStatusEnum] = None
    view: Optional[TimesheetView] = None
    date: Optional[dt.date] = None
    week_start: Optional[dt.date] = None
    week_end: Optional[dt.date] = None
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None


class TimesheetSummary(BaseModel):
    total_logs: int
    total_duration_seconds: int
    total_hours: float
    duration_by_status: Dict[str, int]


class TimesheetResponse(BaseModel):
    data: List[TimeLogOut]
    summary: TimesheetSummary
