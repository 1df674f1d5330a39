"""
DocumentDB Authentication Module.

Computes master key signatures for Azure Cosmos DB SQL API requests.
"""

from documentdb.auth.exceptions import (
    AuthError,
    InvalidMasterKeyError,
)
from documentdb.auth.masterkey import (
    build_authorization_header,
    build_string_to_sign,
    compute_signature,
    decode_master_key,
    format_date,
)

__all__ = [
    # Exceptions
    "AuthError",
    "InvalidMasterKeyError",
    # Master key auth
    "build_authorization_header",
    "build_string_to_sign",
    "compute_signature",
    "decode_master_key",
    "format_date",
]
