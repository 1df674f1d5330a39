"""
Authentication exceptions for the DocumentDB client.
"""

from documentdb.exceptions import DocumentDBError


class AuthError(DocumentDBError):
    """Base exception for authentication errors."""

    def __init__(self, message: str, error_code: str = "Unauthorized"):
        super().__init__(message, error_code)


class InvalidMasterKeyError(AuthError):
    """Raised when the master key is empty or not valid base64."""

    def __init__(self, message: str = "Master key is not valid base64"):
        super().__init__(message, "InvalidMasterKey")
