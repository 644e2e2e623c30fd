from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class TimerEventOut(BaseModel):
    id: int
    event_type: str
    time_log_id: int
    user_id: int
    task_id: int
    actor_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
