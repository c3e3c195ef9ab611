"""HookError — base exception class and the ingestion error taxonomy."""

from __future__ import annotations


class HookError(Exception):
    """Base error for all webhook engine operations.

    Attributes:
        message: Human-readable error description.
        status_code: Suggested HTTP status code.
        code: Machine-readable error code string.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int = 500,
        code: str = "hook-error",
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict[str, str]:
        """Render the error as the ``error`` member of a response envelope."""
        return {"code": self.code, "message": self.message}


class MalformedPayloadError(HookError):
    """The request body is not parseable JSON."""

    def __init__(self, message: str = "request body is not valid JSON") -> None:
        super().__init__(message, status_code=400, code="malformed-payload")


class MissingRequiredMappingError(HookError):
    """A required system field (email) did not resolve to a value."""

    def __init__(self, message: str = "email field is not mapped or resolved empty") -> None:
        super().__init__(message, status_code=422, code="missing-required-mapping")


class UnknownPlanOrStatusError(HookError):
    """A configured plan id or status value is not (or no longer) valid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=422, code="unknown-plan-or-status")


class TransientPersistenceError(HookError):
    """The user/account store failed while committing a payload."""

    def __init__(self, message: str = "user/account store is unavailable") -> None:
        super().__init__(message, status_code=503, code="transient-persistence-failure")
