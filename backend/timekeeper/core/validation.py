from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from timekeeper.core.errors import NotFoundError, ValidationError
from timekeeper.models.project import Project
from timekeeper.models.task import Task
from timekeeper.models.user import User


def require_non_empty_text(value: Any, field_name: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    return text


def require_user_exists(db: Session, user_id: int, detail: str = "User not found") -> User:
    user = db.query(User).filter(
        User.id == user_id,
        User.is_active == True,  # noqa: E712
    ).first()
    if not user:
        raise NotFoundError(detail)
    return user


def require_task_exists(db: Session, task_id: int, detail: str = "Task not found") -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFoundError(detail)
    if not db.query(Project.id).filter(Project.id == task.project_id).first():
        raise NotFoundError("Project not found")
    return task
