from __future__ import annotations


class AppError(Exception):
    """Base error for a failed user action. Never fatal to the process."""

    status_code: int = 400
    public_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class ValidationError(AppError):
    """Bad user input: missing ratings or too-short review text."""

    status_code = 422
    public_message = "Invalid input"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class AuthRequiredError(AppError):
    status_code = 401
    public_message = "Sign in required"


class NetworkError(AppError):
    """A call to the places search service or the review store failed."""

    status_code = 502
    public_message = "Service temporarily unavailable"
