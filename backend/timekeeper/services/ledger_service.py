import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from timekeeper.core.errors import ConflictError, NotFoundError
from timekeeper.models.task import Task
from timekeeper.models.time_log import ApprovalStatus, TimeLog
from timekeeper.utils.clock import ensure_aware_utc

logger = logging.getLogger(__name__)


def create_time_log(
    db: Session,
    *,
    task: Task,
    user_id: int,
    start_time: datetime,
    utc_offset_minutes: int,
    note: Optional[str] = None,
    end_time: Optional[datetime] = None,
    duration_total_seconds: int = 0,
    is_manual: bool = False
) -> TimeLog:
    start_time = ensure_aware_utc(start_time)
    log = TimeLog(
        task_id=task.id,
        user_id=user_id,
        project_id=task.project_id,
        start_time=start_time,
        end_time=ensure_aware_utc(end_time) if end_time else None,
        duration_total_seconds=duration_total_seconds,
        paused_duration_seconds=0,
        is_paused=False,
        is_manual=is_manual,
        last_transition_time=ensure_aware_utc(end_time) if end_time else start_time,
        utc_offset_minutes=utc_offset_minutes,
        note=note,
        status=ApprovalStatus.PENDING.value,
    )
    db.add(log)
    try:
        db.flush()
    except IntegrityError:
        # concurrent start from another process won the open-timer index
        db.rollback()
        logger.warning("Open-timer constraint violated for user %s on task %s", user_id, task.id)
        raise ConflictError("A timer is already active for this user or task")
    return log


def get_time_log(log_id: int, db: Session, for_update: bool = False) -> TimeLog:
    query = db.query(TimeLog).filter(TimeLog.id == log_id)
    if for_update:
        query = query.with_for_update()
    log = query.first()
    if not log:
        raise NotFoundError("Time log not found")
    return log


def get_owned_time_log(log_id: int, user_id: int, db: Session, for_update: bool = False) -> TimeLog:
    log = get_time_log(log_id, db, for_update=for_update)
    # other users' logs are reported as missing
    if log.user_id != user_id:
        raise NotFoundError("Time log not found")
    return log


def get_open_log_for_user(user_id: int, db: Session) -> Optional[TimeLog]:
    return db.query(TimeLog).filter(
        TimeLog.user_id == user_id,
        TimeLog.end_time == None
    ).first()


def get_open_log_for_task(task_id: int, db: Session) -> Optional[TimeLog]:
    return db.query(TimeLog).filter(
        TimeLog.task_id == task_id,
        TimeLog.end_time == None
    ).first()


def list_open_logs(db: Session) -> List[TimeLog]:
    return db.query(TimeLog).filter(TimeLog.end_time == None).all()


def query_time_logs(
    db: Session,
    *,
    user_id: Optional[int] = None,
    project_id: Optional[int] = None,
    task_id: Optional[int] = None,
    task_status: Optional[str] = None,
    approval_status: Optional[str] = None,
    start_from: Optional[datetime] = None,
    start_until: Optional[datetime] = None
) -> List[TimeLog]:
    """Filter rows; `start_from` is inclusive and `start_until` exclusive."""
    query = db.query(TimeLog)
    if user_id is not None:
        query = query.filter(TimeLog.user_id == user_id)
    if project_id is not None:
        query = query.filter(TimeLog.project_id == project_id)
    if task_id is not None:
        query = query.filter(TimeLog.task_id == task_id)
    if task_status:
        query = query.join(Task, Task.id == TimeLog.task_id).filter(Task.status == task_status)
    if approval_status:
        query = query.filter(TimeLog.status == approval_status)
    if start_from is not None:
        query = query.filter(TimeLog.start_time >= ensure_aware_utc(start_from))
    if start_until is not None:
        query = query.filter(TimeLog.start_time < ensure_aware_utc(start_until))
    return query.order_by(TimeLog.start_time.desc(), TimeLog.id.desc()).all()

