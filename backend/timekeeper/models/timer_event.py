import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func

from timekeeper.database.base import Base


class TimerEventType(str, enum.Enum):
    TIMER_STARTED = "timer_started"
    TIMER_PAUSED = "timer_paused"
    TIMER_RESUMED = "timer_resumed"
    TIMER_STOPPED = "timer_stopped"
    MANUAL_ENTRY = "manual_entry"
    LOG_APPROVED = "log_approved"
    LOG_REJECTED = "log_rejected"


class TimerEvent(Base):
    __tablename__ = "timer_events"

    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String(50), nullable=False)
    time_log_id = Column(Integer, ForeignKey("time_logs.id", ondelete="CASCADE"), nullable=False, index=True)
    # owner of the time log, i.e. who gets notified
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
