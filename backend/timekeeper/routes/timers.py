from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from timekeeper.config import settings
from timekeeper.core.dependencies import get_current_approver, get_current_user
from timekeeper.database.session import get_db
from timekeeper.models.user import User
from timekeeper.schemas.time_log import (
    ActiveTimerOut, LongRunningTimersResponse, TimeLogOut, TimerStart
)
from timekeeper.services.timer_service import (
    get_active_timer,
    list_long_running_timers,
    pause_timer,
    resume_timer,
    start_timer,
    stop_timer,
)

router = APIRouter(prefix="/timers", tags=["Timers"])


# =====================================
# START TIMER
# =====================================
@router.post("/start", response_model=TimeLogOut)
def start(
    payload: TimerStart,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return start_timer(
        current_user.id,
        payload.task_id,
        db,
        note=payload.note,
        utc_offset_minutes=payload.utc_offset_minutes,
    )


# =====================================
# GET ACTIVE TIMER
# =====================================
@router.get("/active", response_model=Optional[ActiveTimerOut])
def active(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Authoritative snapshot the client seeds its display counter from."""
    return get_active_timer(current_user.id, db)


# =====================================
# LONG RUNNING TIMERS (Approvers)
# =====================================
@router.get("/long-running", response_model=LongRunningTimersResponse)
def long_running(
    threshold_hours: Optional[float] = Query(default=None, gt=0),
    db: Session = Depends(get_db),
    approver: User = Depends(get_current_approver)
):
    threshold = threshold_hours if threshold_hours is not None else settings.LONG_RUNNING_TIMER_HOURS
    timers = list_long_running_timers(db, threshold_hours=threshold)
    return {"threshold_hours": threshold, "count": len(timers), "data": timers}


# =====================================
# PAUSE / RESUME / STOP
# =====================================
@router.post("/{timer_id}/pause", response_model=TimeLogOut)
def pause(
    timer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return pause_timer(current_user.id, timer_id, db)


@router.post("/{timer_id}/resume", response_model=TimeLogOut)
def resume(
    timer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return resume_timer(current_user.id, timer_id, db)


@router.post("/{timer_id}/stop", response_model=TimeLogOut)
def stop(
    timer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return stop_timer(current_user.id, timer_id, db)
