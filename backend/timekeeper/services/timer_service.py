import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from timekeeper.config import settings
from timekeeper.core.errors import ConflictError, StateError, ValidationError
from timekeeper.core.locks import timer_locks
from timekeeper.core.validation import require_task_exists, require_user_exists
from timekeeper.models.time_log import TimeLog
from timekeeper.models.timer_event import TimerEventType
from timekeeper.schemas.time_log import ActiveTimerOut, TimeLogOut
from timekeeper.services.event_service import emit_event, publish_events
from timekeeper.services.ledger_service import (
    create_time_log,
    get_open_log_for_task,
    get_open_log_for_user,
    get_owned_time_log,
    list_open_logs,
)
from timekeeper.services.task_state import set_task_in_progress_if_todo
from timekeeper.utils.clock import elapsed_seconds, ensure_aware_utc, utcnow

logger = logging.getLogger(__name__)


def _resolve_now(now: datetime | None) -> datetime:
    return ensure_aware_utc(now) if now else utcnow()


# -------------------------
# Live duration math
# -------------------------

def live_total_seconds(log: TimeLog, now: datetime) -> int:
    """Wall-clock seconds since start, paused spans included."""
    total = log.duration_total_seconds or 0
    if log.is_open:
        total += elapsed_seconds(log.last_transition_time, now)
    return total


def live_effective_seconds(log: TimeLog, now: datetime) -> int:
    if not log.is_open or log.is_paused:
        # a pending pause span counts toward both totals, so it cancels out
        return log.effective_duration_seconds
    return max(live_total_seconds(log, now) - (log.paused_duration_seconds or 0), 0)


def timer_snapshot(log: TimeLog, now: datetime) -> ActiveTimerOut:
    payload = TimeLogOut.model_validate(log).model_dump()
    payload["current_duration_seconds"] = live_total_seconds(log, now)
    payload["current_effective_duration_seconds"] = live_effective_seconds(log, now)
    payload["server_time"] = now
    return ActiveTimerOut(**payload)


def _require_open(log: TimeLog) -> None:
    if not log.is_open:
        raise StateError("Timer is already stopped")


# -------------------------
# Timer transitions
# -------------------------

def start_timer(
    user_id: int,
    task_id: int,
    db: Session,
    note: Optional[str] = None,
    utc_offset_minutes: Optional[int] = None,
    now: datetime | None = None
) -> TimeLog:
    with timer_locks.hold(user_id):
        now = _resolve_now(now)
        require_user_exists(db, user_id)
        task = require_task_exists(db, task_id)

        running = get_open_log_for_user(user_id, db)
        if running:
            logger.warning("User %s tried to start task %s while log %s is open", user_id, task_id, running.id)
            raise ConflictError(
                f"A timer is already running on task {running.task_id}. Stop it before starting another."
            )

        busy = get_open_log_for_task(task_id, db)
        if busy:
            logger.warning("Task %s already has open log %s (user %s)", task_id, busy.id, busy.user_id)
            raise ConflictError("Another timer is already active on this task")

        if utc_offset_minutes is None:
            utc_offset_minutes = settings.DEFAULT_UTC_OFFSET_MINUTES

        log = create_time_log(
            db,
            task=task,
            user_id=user_id,
            start_time=now,
            utc_offset_minutes=utc_offset_minutes,
            note=note,
        )
        set_task_in_progress_if_todo(task, db)
        event = emit_event(db, event_type=TimerEventType.TIMER_STARTED, log=log, actor_id=user_id)
        db.commit()
        db.refresh(log)

    logger.info("Timer %s started by user %s on task %s", log.id, user_id, task_id)
    publish_events(db, [event])
    return log


def pause_timer(user_id: int, log_id: int, db: Session, now: datetime | None = None) -> TimeLog:
    with timer_locks.hold(user_id):
        now = _resolve_now(now)
        log = get_owned_time_log(log_id, user_id, db, for_update=True)
        _require_open(log)
        if log.is_paused:
            raise StateError("Timer is already paused")

        log.duration_total_seconds = (log.duration_total_seconds or 0) + elapsed_seconds(log.last_transition_time, now)
        log.is_paused = True
        log.last_transition_time = now

        event = emit_event(db, event_type=TimerEventType.TIMER_PAUSED, log=log, actor_id=user_id)
        db.commit()
        db.refresh(log)

    logger.info("Timer %s paused at %ss", log.id, log.duration_total_seconds)
    publish_events(db, [event])
    return log


def resume_timer(user_id: int, log_id: int, db: Session, now: datetime | None = None) -> TimeLog:
    with timer_locks.hold(user_id):
        now = _resolve_now(now)
        log = get_owned_time_log(log_id, user_id, db, for_update=True)
        _require_open(log)
        if not log.is_paused:
            raise StateError("Timer is not paused")

        span = elapsed_seconds(log.last_transition_time, now)
        log.paused_duration_seconds = (log.paused_duration_seconds or 0) + span
        log.duration_total_seconds = (log.duration_total_seconds or 0) + span
        log.is_paused = False
        log.last_transition_time = now

        if log.task:
            set_task_in_progress_if_todo(log.task, db)
        event = emit_event(db, event_type=TimerEventType.TIMER_RESUMED, log=log, actor_id=user_id)
        db.commit()
        db.refresh(log)

    logger.info("Timer %s resumed after %ss paused", log.id, span)
    publish_events(db, [event])
    return log


def stop_timer(user_id: int, log_id: int, db: Session, now: datetime | None = None) -> TimeLog:
    with timer_locks.hold(user_id):
        now = _resolve_now(now)
        log = get_owned_time_log(log_id, user_id, db, for_update=True)
        _require_open(log)

        span = elapsed_seconds(log.last_transition_time, now)
        log.duration_total_seconds = (log.duration_total_seconds or 0) + span
        if log.is_paused:
            log.paused_duration_seconds = (log.paused_duration_seconds or 0) + span
        log.is_paused = False
        log.end_time = now
        log.last_transition_time = now

        event = emit_event(db, event_type=TimerEventType.TIMER_STOPPED, log=log, actor_id=user_id)
        db.commit()
        db.refresh(log)

    logger.info(
        "Timer %s stopped: total=%ss paused=%ss",
        log.id, log.duration_total_seconds, log.paused_duration_seconds
    )
    publish_events(db, [event])
    return log


def get_active_timer(user_id: int, db: Session, now: datetime | None = None) -> Optional[ActiveTimerOut]:
    now = _resolve_now(now)
    log = get_open_log_for_user(user_id, db)
    if not log:
        return None
    return timer_snapshot(log, now)


# -------------------------
# Manual entries
# -------------------------

def record_manual_time(
    user_id: int,
    task_id: int,
    start_time: datetime,
    end_time: datetime,
    db: Session,
    note: Optional[str] = None,
    utc_offset_minutes: Optional[int] = None
) -> TimeLog:
    start_time = ensure_aware_utc(start_time)
    end_time = ensure_aware_utc(end_time)
    if end_time <= start_time:
        raise ValidationError("End time must be after start time")

    require_user_exists(db, user_id)
    task = require_task_exists(db, task_id)

    if utc_offset_minutes is None:
        utc_offset_minutes = settings.DEFAULT_UTC_OFFSET_MINUTES

    log = create_time_log(
        db,
        task=task,
        user_id=user_id,
        start_time=start_time,
        end_time=end_time,
        duration_total_seconds=elapsed_seconds(start_time, end_time),
        utc_offset_minutes=utc_offset_minutes,
        note=note,
        is_manual=True,
    )
    event = emit_event(db, event_type=TimerEventType.MANUAL_ENTRY, log=log, actor_id=user_id)
    db.commit()
    db.refresh(log)

    logger.info("Manual log %s recorded for user %s: %ss", log.id, user_id, log.duration_total_seconds)
    publish_events(db, [event])
    return log


def list_long_running_timers(
    db: Session,
    threshold_hours: float | None = None,
    now: datetime | None = None
) -> List[ActiveTimerOut]:
    """Open timers past the threshold. Reported only; nothing is auto-stopped."""
    now = _resolve_now(now)
    if threshold_hours is None:
        threshold_hours = settings.LONG_RUNNING_TIMER_HOURS
    threshold_seconds = int(threshold_hours * 3600)

    snapshots = [timer_snapshot(log, now) for log in list_open_logs(db)]
    long_running = [s for s in snapshots if s.current_effective_duration_seconds > threshold_seconds]
    return sorted(long_running, key=lambda s: s.current_effective_duration_seconds, reverse=True)
