"""Domain errors raised by services and mapped to HTTP responses in app.main."""
from fastapi import status


class AppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AppError):
    """Empty or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class SelfFollowError(ValidationError):
    default_detail = "Cannot follow yourself"


class ConflictError(AppError):
    """Unique field (username, email) already taken."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Already exists"
