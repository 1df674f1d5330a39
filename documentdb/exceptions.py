"""
DocumentDB client exceptions.

Exception classes raised by the request execution core and the
high-level API, matching Azure Cosmos DB REST status codes and
error codes.
"""

from typing import Any, Dict, Optional


class DocumentDBError(Exception):
    """Base exception for DocumentDB client errors.

    Attributes:
        message: Error message
        error_code: Azure Cosmos DB error code
    """

    def __init__(self, message: str, error_code: str = "InternalServerError"):
        """Initialize DocumentDB error.

        Args:
            message: Error message
            error_code: Azure error code
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class TransportError(DocumentDBError):
    """Network or connection failure. Never retried."""

    def __init__(self, message: str, method: str = "", url: str = ""):
        super().__init__(message, "ServiceUnreachable")
        self.method = method
        self.url = url


class RetriableServerError(DocumentDBError):
    """Throttled (429) or unavailable (503) response.

    Used as an internal signal by the executor. Once the retry budget is
    spent the response is surfaced as a ``RequestError`` instead.
    """

    def __init__(self, status_code: int, retry_count: int = 0):
        super().__init__(
            f"Retriable response {status_code} (retry {retry_count})",
            "TooManyRequests" if status_code == 429 else "ServiceUnavailable",
        )
        self.status_code = status_code
        self.retry_count = retry_count


class PreconditionFailedError(DocumentDBError):
    """Precondition failed error (ETag mismatch)."""

    status_code = 412

    def __init__(self, message: str = "Precondition failed", etag: str = ""):
        """Initialize precondition failed error.

        Args:
            message: Error message
            etag: ETag sent in the If-Match header, if any
        """
        super().__init__(message, "PreconditionFailed")
        self.etag = etag


class RequestError(DocumentDBError):
    """Non-success response decoded from the server's JSON error body.

    Attributes:
        status_code: HTTP status code of the response
        code: Server error code (e.g. ``Conflict``, ``BadRequest``)
        body: Decoded error body, or the raw text when it was not JSON
    """

    def __init__(
        self,
        status_code: int,
        code: str = "",
        message: str = "",
        body: Optional[Any] = None,
    ):
        super().__init__(message or f"Request failed with status {status_code}", code or "Unknown")
        self.status_code = status_code
        self.code = code
        self.body = body

    @classmethod
    def from_payload(cls, status_code: int, payload: Any) -> "RequestError":
        """Build an error from a decoded (possibly partial) error body."""
        if isinstance(payload, dict):
            return cls(
                status_code,
                code=str(payload.get("code", "") or ""),
                message=str(payload.get("message", "") or ""),
                body=payload,
            )
        text = payload if isinstance(payload, str) else ""
        return cls(status_code, message=text, body=payload)

    @property
    def is_conflict(self) -> bool:
        return self.code == "Conflict"

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status_code, "code": self.code, "message": self.message}

    def __str__(self) -> str:
        if self.code:
            return f"{self.status_code} {self.code}: {self.message}"
        return f"{self.status_code}: {self.message}"


class NotFoundError(DocumentDBError):
    """Resource lookup by id returned no results."""

    def __init__(self, message: str = "not found", resource_id: str = ""):
        """Initialize not found error.

        Args:
            message: Error message
            resource_id: Identifier that was looked up
        """
        super().__init__(message, "NotFound")
        self.resource_id = resource_id


class CancellationError(DocumentDBError):
    """The caller's cancellation token fired while the call was waiting."""

    def __init__(self, message: str = "operation cancelled", retry_count: int = 0):
        super().__init__(message, "Cancelled")
        self.retry_count = retry_count


class DecodeError(DocumentDBError):
    """Response body did not match the expected shape."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message, "DecodeError")
        self.status_code = status_code


def is_exists(error: BaseException) -> bool:
    """Return True when ``error`` reports an existing resource (409 Conflict)."""
    return isinstance(error, RequestError) and error.is_conflict
