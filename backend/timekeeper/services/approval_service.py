import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from timekeeper.core.errors import StateError
from timekeeper.core.validation import require_non_empty_text
from timekeeper.models.time_log import ApprovalStatus, TimeLog
from timekeeper.models.timer_event import TimerEventType
from timekeeper.services.event_service import emit_event, publish_events
from timekeeper.services.ledger_service import get_time_log
from timekeeper.utils.clock import ensure_aware_utc, utcnow

logger = logging.getLogger(__name__)


def _ensure_decidable(log: TimeLog, action: str) -> None:
    if log.is_open:
        raise StateError(f"Cannot {action} an open timer")
    if log.status != ApprovalStatus.PENDING.value:
        raise StateError(f"Time log is already {log.status}")


def _decide(
    log: TimeLog,
    reviewer_id: int,
    db: Session,
    *,
    action: str,
    new_status: ApprovalStatus,
    event_type: TimerEventType,
    reason: Optional[str] = None,
    now: datetime | None = None
) -> TimeLog:
    log_id = log.id
    _ensure_decidable(log, action)

    reviewed_at = ensure_aware_utc(now) if now else utcnow()

    # compare-and-set: only one concurrent decision can match `pending`
    updated = db.query(TimeLog).filter(
        TimeLog.id == log_id,
        TimeLog.status == ApprovalStatus.PENDING.value,
        TimeLog.end_time != None
    ).update(
        {
            "status": new_status.value,
            "rejection_reason": reason,
            "reviewed_by": reviewer_id,
            "reviewed_at": reviewed_at,
        },
        synchronize_session=False
    )
    if updated != 1:
        db.rollback()
        log = get_time_log(log_id, db)
        logger.warning("Lost approval race on time log %s (now %s)", log_id, log.status)
        _ensure_decidable(log, action)
        raise StateError("Time log was modified concurrently, please retry")

    event = emit_event(db, event_type=event_type, log=log, actor_id=reviewer_id)
    db.commit()
    db.refresh(log)

    logger.info("Time log %s %s by user %s", log.id, log.status, reviewer_id)
    publish_events(db, [event])
    return log


def approve_time_log(log_id: int, reviewer_id: int, db: Session, now: datetime | None = None) -> TimeLog:
    return _decide(
        get_time_log(log_id, db),
        reviewer_id,
        db,
        action="approve",
        new_status=ApprovalStatus.APPROVED,
        event_type=TimerEventType.LOG_APPROVED,
        now=now,
    )


def reject_time_log(
    log_id: int,
    reviewer_id: int,
    reason: str,
    db: Session,
    now: datetime | None = None
) -> TimeLog:
    log = get_time_log(log_id, db)
    reason = require_non_empty_text(reason, "Rejection reason")
    return _decide(
        log,
        reviewer_id,
        db,
        action="reject",
        new_status=ApprovalStatus.REJECTED,
        event_type=TimerEventType.LOG_REJECTED,
        reason=reason,
        now=now,
    )
