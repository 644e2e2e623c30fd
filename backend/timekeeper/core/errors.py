from fastapi import HTTPException, status


class TimeTrackingError(HTTPException):
    """Base for engine errors; raised from services and rendered by the app's handler."""

    code = "time_tracking_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class ConflictError(TimeTrackingError):
    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(TimeTrackingError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class StateError(TimeTrackingError):
    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(TimeTrackingError):
    code = "validation_error"
    status_code = 422
