"""
Exception hierarchy shared by the controller, the cache and the API client.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class HPAAnnotatorError(Exception):
    """Base class for all errors raised by hpa-annotator."""


class KeyFormatError(HPAAnnotatorError, ValueError):
    """A resource key (``namespace/name``) could not be built or parsed."""


class CacheSyncError(HPAAnnotatorError):
    """The resource cache did not complete its initial sync."""


class ApiError(HPAAnnotatorError):
    """A backend API call failed."""

    status = 500
    reason = "InternalError"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "status": self.status,
            "reason": self.reason,
            "error": self.message,
            "details": dict(self.details),
        }


class NotFoundError(ApiError):
    status = 404
    reason = "NotFound"


class ConflictError(ApiError):
    """Optimistic-concurrency failure: the caller's resource version is stale."""

    status = 409
    reason = "Conflict"


class AlreadyExistsError(ApiError):
    status = 409
    reason = "AlreadyExists"


class ExpiredError(ApiError):
    """The requested watch resource version is older than the server's event log."""

    status = 410
    reason = "Expired"


_REASONS = {
    NotFoundError.reason: NotFoundError,
    ConflictError.reason: ConflictError,
    AlreadyExistsError.reason: AlreadyExistsError,
    ExpiredError.reason: ExpiredError,
}


def is_not_found(err: BaseException | None) -> bool:
    return isinstance(err, NotFoundError)


def api_error_from_dict(payload: Dict[str, Any]) -> ApiError:
    """Rebuild an :class:`ApiError` from the dict form returned by the API server."""
    cls = _REASONS.get(str(payload.get("reason", "")), ApiError)
    return cls(str(payload.get("error", "unknown error")), details=payload.get("details") or {})
