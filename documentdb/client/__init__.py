"""Request execution core for the DocumentDB REST API."""

from .backoff import BackoffPolicy
from .cancellation import CancellationToken
from .request import ResourceRequest, stringify
from .executor import ExecutionResult, Executor, RequestContext
from .http_client import Client

__all__ = [
    "BackoffPolicy",
    "CancellationToken",
    "ResourceRequest",
    "stringify",
    "ExecutionResult",
    "Executor",
    "RequestContext",
    "Client",
]
