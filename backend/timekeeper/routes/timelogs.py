from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timekeeper.core.dependencies import get_current_approver, get_current_user, is_approver
from timekeeper.core.errors import NotFoundError
from timekeeper.core.validation import require_task_exists
from timekeeper.database.session import get_db
from timekeeper.models.user import User
from timekeeper.schemas.time_log import ManualTimeLogCreate, TimeLogOut, TimeLogReject
from timekeeper.schemas.timer_event import TimerEventOut
from timekeeper.schemas.timesheet import TimesheetFilters, TimesheetResponse
from timekeeper.services.approval_service import approve_time_log, reject_time_log
from timekeeper.services.event_service import list_events
from timekeeper.services.ledger_service import get_time_log
from timekeeper.services.timer_service import record_manual_time
from timekeeper.services.timesheet_service import query_timesheet

router = APIRouter(prefix="/timelogs", tags=["Time Logs"])


# =====================================
# MANUAL ENTRY
# =====================================
@router.post("/manual", response_model=TimeLogOut)
def create_manual_entry(
    payload: ManualTimeLogCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return record_manual_time(
        current_user.id,
        payload.task_id,
        payload.start_time,
        payload.end_time,
        db,
        note=payload.note,
        utc_offset_minutes=payload.utc_offset_minutes,
    )


# =====================================
# ACTIVITY FEED
# =====================================
@router.get("/events", response_model=List[TimerEventOut])
def get_events(
    user_id: Optional[int] = Query(default=None),
    time_log_id: Optional[int] = Query(default=None),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not is_approver(current_user):
        user_id = current_user.id
    return list_events(db, user_id=user_id, time_log_id=time_log_id, limit=limit)


# =====================================
# TIME PER TASK
# =====================================
@router.get("/task/{task_id}", response_model=TimesheetResponse)
def get_task_time_logs(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    require_task_exists(db, task_id)
    filters = TimesheetFilters(task_id=task_id)
    if not is_approver(current_user):
        filters.user_id = current_user.id
    return query_timesheet(db, filters)


# =====================================
# SINGLE LOG
# =====================================
@router.get("/{log_id}", response_model=TimeLogOut)
def get_log(
    log_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    log = get_time_log(log_id, db)
    if log.user_id != current_user.id and not is_approver(current_user):
        raise NotFoundError("Time log not found")
    return log


# =====================================
# APPROVE / REJECT (Approvers)
# =====================================
@router.post("/{log_id}/approve", response_model=TimeLogOut)
def approve(
    log_id: int,
    db: Session = Depends(get_db),
    approver: User = Depends(get_current_approver)
):
    return approve_time_log(log_id, approver.id, db)


@router.post("/{log_id}/reject", response_model=TimeLogOut)
def reject(
    log_id: int,
    payload: TimeLogReject,
    db: Session = Depends(get_db),
    approver: User = Depends(get_current_approver)
):
    return reject_time_log(log_id, approver.id, payload.reason, db)
