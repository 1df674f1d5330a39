"""
DocumentDB - async client for the Azure Cosmos DB SQL (DocumentDB) REST API.
"""

__version__ = "0.1.0"

from .exceptions import (
    CancellationError,
    DecodeError,
    DocumentDBError,
    NotFoundError,
    PreconditionFailedError,
    RequestError,
    TransportError,
    is_exists,
)
from .models import (
    Collection,
    Database,
    Document,
    IndexingPolicy,
    Query,
    QueryParam,
    StoredProcedure,
    UserDefinedFunction,
    id_query,
)
from .client import CancellationToken, Client, ExecutionResult, RequestContext
from .core import ClientConfig, ConfigManager, setup_logging
from .auth import AuthError, InvalidMasterKeyError
from .documentdb import CollectionProxy, DatabaseProxy, DocumentDB, StoredProcedureProxy

__all__ = [
    "__version__",
    "AuthError",
    "CancellationError",
    "CancellationToken",
    "Client",
    "ClientConfig",
    "Collection",
    "CollectionProxy",
    "ConfigManager",
    "Database",
    "DatabaseProxy",
    "DecodeError",
    "Document",
    "DocumentDB",
    "DocumentDBError",
    "ExecutionResult",
    "IndexingPolicy",
    "InvalidMasterKeyError",
    "NotFoundError",
    "PreconditionFailedError",
    "Query",
    "QueryParam",
    "RequestContext",
    "RequestError",
    "StoredProcedure",
    "StoredProcedureProxy",
    "TransportError",
    "UserDefinedFunction",
    "id_query",
    "is_exists",
    "setup_logging",
]
