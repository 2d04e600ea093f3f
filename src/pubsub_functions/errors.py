"""Error taxonomy shared by the publish gateway and the subscriber handlers.

Publish-side errors carry an HTTP status and terminate the request. Consume-side
errors (:class:`DecodeError`, :class:`BusinessRejection`) are logged and absorbed
by the handler that produced them.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class FunctionError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = int(status_code)

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.message}


class MethodNotAllowedError(FunctionError):
    status_code = 405

    def __init__(self, method: str | None = None):
        super().__init__("Method not allowed")
        self.method = method


class ValidationError(FunctionError):
    """A publish request is missing a required field or carries a malformed one."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class SubmissionError(FunctionError):
    """The external publish call failed. Never retried here."""

    status_code = 500

    def __init__(self, topic: str, cause: BaseException | None = None):
        super().__init__("Failed to publish message")
        self.topic = topic
        self.cause = cause

    def detail(self) -> str:
        return f"{type(self.cause).__name__}: {self.cause}" if self.cause else "unknown error"


class DeliveryError(FunctionError):
    """A push delivery could not be routed to any handler."""

    status_code = 400


class DecodeError(FunctionError):
    """A delivered payload could not be decoded into the expected shape."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class BusinessRejection(FunctionError):
    """An order was rejected because required fields are missing."""

    def __init__(self, missing: List[str], payload: Any = None):
        super().__init__(f"missing required fields: {', '.join(missing)}")
        self.missing = list(missing)
        self.payload = payload
