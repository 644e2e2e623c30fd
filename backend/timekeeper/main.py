import logging

from fastapi import Depends, FastAPI, WebSocket, WebSocketDisconnect, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from timekeeper.config import settings
from timekeeper.database.base import Base
from timekeeper.database.session import engine, get_db
from timekeeper.models.user import User
from timekeeper.models.project import Project  # noqa: F401
from timekeeper.models.task import Task  # noqa: F401
from timekeeper.models.time_log import TimeLog  # noqa: F401
from timekeeper.models.timer_event import TimerEvent  # noqa: F401
from timekeeper.core.errors import TimeTrackingError
from timekeeper.core.security import user_id_from_token
from timekeeper.core.timer_ws_manager import timer_ws_manager
from timekeeper.routes import timers, timelogs, timesheet

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Timekeeper")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:8000",
        "http://localhost:8000",
    ],
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def create_tables():
    Base.metadata.create_all(bind=engine)


def _format_validation_messages(exc: RequestValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        loc = [str(v) for v in err.get("loc", []) if str(v) not in {"body", "query", "path"}]
        field = ".".join(loc) if loc else "field"
        err_type = str(err.get("type", ""))
        message = str(err.get("msg", "Invalid value"))

        if err_type in {"missing", "value_error.missing"}:
            messages.append(f"{field} is required")
        elif "string_too_short" in err_type:
            messages.append(f"{field} cannot be empty")
        elif field:
            messages.append(f"{field}: {message}")
        else:
            messages.append(message)

    # Preserve order while de-duplicating.
    return list(dict.fromkeys(messages))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = _format_validation_messages(exc)
    detail = messages[0] if len(messages) == 1 else "Validation failed"
    return JSONResponse(
        status_code=422,
        content={
            "detail": detail,
            "errors": messages,
        },
    )


@app.exception_handler(TimeTrackingError)
async def time_tracking_exception_handler(request: Request, exc: TimeTrackingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error": exc.code,
        },
    )


app.include_router(timers.router)
app.include_router(timelogs.router)
app.include_router(timesheet.router)


@app.websocket("/ws/timers/{user_id}")
async def timers_ws(websocket: WebSocket, user_id: int, db: Session = Depends(get_db)):
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4401, reason="Missing token")
        return

    token_user_id = user_id_from_token(token)
    if token_user_id is None:
        await websocket.close(code=4401, reason="Invalid token")
        return

    if token_user_id != user_id:
        await websocket.close(code=4403, reason="Forbidden")
        return

    user = db.query(User).filter(User.id == user_id, User.is_active == True).first()  # noqa: E712
    if not user:
        await websocket.close(code=4401, reason="User not found")
        return

    await timer_ws_manager.connect(user_id, websocket)
    logger.info("Timer socket connected for user %s", user_id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        timer_ws_manager.disconnect(user_id, websocket)
