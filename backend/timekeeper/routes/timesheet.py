from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from timekeeper.core.dependencies import get_current_user, is_approver
from timekeeper.database.session import get_db
from timekeeper.models.user import User
from timekeeper.schemas.timesheet import TimesheetFilters, TimesheetResponse
from timekeeper.services.timesheet_service import query_timesheet

router = APIRouter(prefix="/timesheet", tags=["Timesheet"])


# =====================================
# TIMESHEET (daily / weekly / range)
# =====================================
@router.get("", response_model=TimesheetResponse)
def get_timesheet(
    filters: TimesheetFilters = Depends(),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    # employees only ever see their own time
    if not is_approver(current_user):
        filters.user_id = current_user.id
    return query_timesheet(db, filters)
