"""
gateway/errors.py

Business-rule failures raised by the alert service.
Infrastructure errors (SQLAlchemyError and friends) are not wrapped.
"""


class AlertingError(Exception):
    """Base class for explicit, non-retryable alerting failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(AlertingError):
    """Target user or alert does not exist."""

    status_code = 404


class AccessDeniedError(AlertingError):
    """Requester may not perform the operation on this alert."""

    status_code = 403
