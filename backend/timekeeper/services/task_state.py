from sqlalchemy.orm import Session

from timekeeper.models.task import Task, TaskStatus


def set_task_in_progress_if_todo(task: Task, db: Session) -> bool:
    """Only `todo` is promoted; `review` and `done` stay under task-management control."""
    if task.status != TaskStatus.TODO.value:
        return False
    task.status = TaskStatus.IN_PROGRESS.value
    db.add(task)
    return True
