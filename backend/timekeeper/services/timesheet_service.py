from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.orm import Session

from timekeeper.config import settings
from timekeeper.core.errors import ValidationError
from timekeeper.models.time_log import ApprovalStatus
from timekeeper.schemas.time_log import TimeLogOut
from timekeeper.schemas.timesheet import TimesheetFilters, TimesheetView
from timekeeper.services.ledger_service import query_time_logs
from timekeeper.services.timer_service import live_effective_seconds
from timekeeper.utils.clock import ensure_aware_utc, local_date, utcnow

# widest offsets a log may carry, used to pre-filter in SQL before the exact local-day check
MAX_AHEAD_OF_UTC = timedelta(minutes=840)
MAX_BEHIND_UTC = timedelta(minutes=720)


def resolve_date_window(filters: TimesheetFilters, today: date) -> tuple[date | None, date | None]:
    """
    Returns the inclusive (first_day, last_day) range selected by the filters:
        - daily (or a bare date): the given date, today by default
        - weekly (or a bare week bound): week_start..week_end, a seven day week by default
        - otherwise: start_date / end_date, either may be open
    """
    view = filters.view
    if view is None:
        # a bare date or week bound picks its view
        if filters.date:
            view = TimesheetView.DAILY
        elif filters.week_start or filters.week_end:
            view = TimesheetView.WEEKLY

    if view == TimesheetView.DAILY:
        day = filters.date or today
        return day, day

    if view == TimesheetView.WEEKLY:
        week_start = filters.week_start or (today - timedelta(days=today.weekday()))
        week_end = filters.week_end or (week_start + timedelta(days=6))
        if week_end < week_start:
            raise ValidationError("week_end must not be before week_start")
        return week_start, week_end

    if filters.start_date and filters.end_date and filters.end_date < filters.start_date:
        raise ValidationError("end_date must not be before start_date")
    return filters.start_date, filters.end_date


def summarize(items: list[dict]) -> dict:
    by_status = {status.value: 0 for status in ApprovalStatus}
    for item in items:
        status = getattr(item["status"], "value", item["status"])
        by_status[status] = by_status.get(status, 0) + item["effective_duration_seconds"]

    total_seconds = sum(item["effective_duration_seconds"] for item in items)
    return {
        "total_logs": len(items),
        "total_duration_seconds": total_seconds,
        "total_hours": round(total_seconds / 3600, 2),
        "duration_by_status": by_status,
    }


def query_timesheet(db: Session, filters: TimesheetFilters, now: datetime | None = None) -> dict:
    now = ensure_aware_utc(now) if now else utcnow()
    today = local_date(now, settings.DEFAULT_UTC_OFFSET_MINUTES)
    first_day, last_day = resolve_date_window(filters, today)

    start_from = None
    start_until = None
    if first_day:
        start_from = datetime.combine(first_day, time.min, tzinfo=timezone.utc) - MAX_AHEAD_OF_UTC
    if last_day:
        start_until = datetime.combine(last_day + timedelta(days=1), time.min, tzinfo=timezone.utc) + MAX_BEHIND_UTC

    logs = query_time_logs(
        db,
        user_id=filters.user_id,
        project_id=filters.project_id,
        task_id=filters.task_id,
        task_status=filters.task_status.value if filters.task_status else None,
        approval_status=filters.approval_status.value if filters.approval_status else None,
        start_from=start_from,
        start_until=start_until,
    )

    items = []
    for log in logs:
        # the log's own calendar day, not the viewer's
        day = local_date(log.start_time, log.utc_offset_minutes)
        if first_day and day < first_day:
            continue
        if last_day and day > last_day:
            continue

        payload = TimeLogOut.model_validate(log).model_dump()
        payload["effective_duration_seconds"] = live_effective_seconds(log, now)
        items.append(payload)

    return {"data": items, "summary": summarize(items)}
