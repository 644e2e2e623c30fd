from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from timekeeper.core.timer_ws_manager import timer_ws_manager
from timekeeper.models.time_log import TimeLog
from timekeeper.models.timer_event import TimerEvent, TimerEventType


def event_to_payload(event: TimerEvent) -> dict:
    return {
        "type": "timer_event",
        "event": {
            "id": event.id,
            "event_type": event.event_type,
            "time_log_id": event.time_log_id,
            "user_id": event.user_id,
            "task_id": event.task_id,
            "actor_id": event.actor_id,
            "created_at": event.created_at.isoformat() if event.created_at else None,
        },
    }


def emit_event(
    db: Session,
    *,
    event_type: TimerEventType,
    log: TimeLog,
    actor_id: Optional[int] = None
) -> TimerEvent:
    """Stage an event in the caller's transaction; publish it once committed."""
    event = TimerEvent(
        event_type=event_type.value,
        time_log_id=log.id,
        user_id=log.user_id,
        task_id=log.task_id,
        actor_id=actor_id,
    )
    db.add(event)
    return event


def publish_events(db: Session, events: Iterable[TimerEvent]) -> None:
    for event in events:
        db.refresh(event)
        timer_ws_manager.notify_threadsafe(event.user_id, event_to_payload(event))


def list_events(
    db: Session,
    *,
    user_id: Optional[int] = None,
    time_log_id: Optional[int] = None,
    limit: int = 50
) -> List[TimerEvent]:
    query = db.query(TimerEvent)
    if user_id is not None:
        query = query.filter(TimerEvent.user_id == user_id)
    if time_log_id is not None:
        query = query.filter(TimerEvent.time_log_id == time_log_id)
    return query.order_by(TimerEvent.created_at.desc(), TimerEvent.id.desc()).limit(limit).all()
