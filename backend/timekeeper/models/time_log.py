import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from timekeeper.database.base import Base


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TimeLog(Base):
    __tablename__ = "time_logs"

    id = Column(Integer, primary_key=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)

    duration_total_seconds = Column(Integer, default=0, nullable=False)
    paused_duration_seconds = Column(Integer, default=0, nullable=False)
    is_paused = Column(Boolean, default=False, nullable=False)
    is_manual = Column(Boolean, default=False, nullable=False)

    # start, or the most recent pause / resume
    last_transition_time = Column(DateTime(timezone=True), nullable=False)
    utc_offset_minutes = Column(Integer, default=0, nullable=False)

    note = Column(Text, nullable=True)

    status = Column(String(20), default=ApprovalStatus.PENDING.value, nullable=False, index=True)
    rejection_reason = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    task = relationship("Task", back_populates="time_logs")
    user = relationship("User", foreign_keys=[user_id])
    reviewer = relationship("User", foreign_keys=[reviewed_by])

    __table_args__ = (
        # one open timer per user, and per task
        Index(
            "uq_time_logs_open_user",
            "user_id",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
            postgresql_where=text("end_time IS NULL"),
        ),
        Index(
            "uq_time_logs_open_task",
            "task_id",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
            postgresql_where=text("end_time IS NULL"),
        ),
    )

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def effective_duration_seconds(self) -> int:
        return max((self.duration_total_seconds or 0) - (self.paused_duration_seconds or 0), 0)

    @property
    def task_title(self):
        return self.task.title if self.task else None

    @property
    def user_name(self):
        return self.user.name if self.user else None
