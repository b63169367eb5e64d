"""Error taxonomy shared by clients, services and the HTTP layer.

Every error knows the HTTP status it maps to and how to render itself as the
JSON body ``{"error": ..., "message" | "details": ...}``.
"""

import traceback
from typing import Any


class AppError(Exception):
    """Base class for all errors raised on purpose by the service."""

    status_code: int = 500
    error: str = "Internal Server Error"
    # 4xx errors carry a user-facing "message", 5xx errors a diagnostic "details"
    body_field: str = "details"

    def __init__(self, message: str, details: Any = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Render the error as a JSON-serialisable response body.

        Args:
            include_trace (bool): Attach the formatted stack trace under "stack".

        Returns:
            dict: The response body.
        """
        body: dict[str, Any] = {"error": self.error, self.body_field: self.message}
        if self.details is not None and self.body_field != "details":
            body["details"] = self.details
        if include_trace:
            body["stack"] = "".join(traceback.format_exception(type(self), self, self.__traceback__))
        return body


class ValidationError(AppError):
    """The caller sent a missing, malformed or oversized input."""

    status_code = 400
    error = "Bad Request"
    body_field = "message"


class AuthError(AppError):
    """No credential was supplied."""

    status_code = 401
    error = "Unauthorized"
    body_field = "message"


class ForbiddenError(AuthError):
    """A credential was supplied but it is not in the configured allow-set."""

    status_code = 403
    error = "Forbidden"


class UpstreamError(AppError):
    """A call to the embedding, vector store or LLM service failed."""

    error = "Upstream service failure"

    def __init__(self, service: str, message: str, details: Any = None):
        self.service = service
        super().__init__(f"{service}: {message}", details=details)


class InternalError(AppError):
    """Unexpected failure inside the service itself."""
