"""
Spine - Custom exceptions for error handling.
"""

from dataclasses import dataclass, field
from typing import Any, Optional


class SpineError(Exception):
    """Base exception for all Spine errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response


class TransportError(SpineError):
    """Raised when a request never produced an HTTP response.

    The underlying transport exception is available as ``cause`` and is also
    chained as ``__cause__``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.cause = cause


@dataclass
class ErrorObject:
    """A single entry of a JSON:API ``errors`` array."""

    status: Optional[str] = None
    code: Optional[str] = None
    title: Optional[str] = None
    detail: Optional[str] = None
    source: dict[str, Any] = field(default_factory=dict)
    meta: dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ErrorObject":
        status = data.get("status")
        return cls(
            status=str(status) if status is not None else None,
            code=data.get("code"),
            title=data.get("title"),
            detail=data.get("detail"),
            source=data.get("source") or {},
            meta=data.get("meta") or {},
            id=data.get("id"),
        )


class DomainError(SpineError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        errors: Optional[list[ErrorObject]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors = errors or []


class BadRequestError(DomainError):
    """Raised for a 400 response."""

    pass


class AuthenticationError(DomainError):
    """Raised for a 401 response."""

    pass


class ForbiddenError(DomainError):
    """Raised for a 403 response."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    pass


class ConflictError(DomainError):
    """Raised for a 409 response, e.g. a client-generated ID already in use."""

    pass


class ValidationError(DomainError):
    """Raised when the server rejects a document as unprocessable (422)."""

    pass


class ServerError(DomainError):
    """Raised for 5xx responses."""

    pass


class PreconditionError(SpineError):
    """Raised when an operation is invoked on state that cannot support it."""

    pass


class UnaddressableResourceError(PreconditionError):
    """Raised when a resource has neither a self link nor an ID."""

    pass


class ResourceNotFoundError(PreconditionError, NotFoundError):
    """Raised when a fetch by ID returns an empty collection."""

    pass


class SerializerError(SpineError):
    """Raised when a document cannot be encoded or decoded."""

    pass


class EmptyResponseError(SpineError):
    """Raised when a successful fetch response carries no body."""

    pass
