"""Application error taxonomy."""
from core.domain import ErrorCode


class DocumentServiceError(Exception):
    """Raised when a document operation fails with a specific error code"""

    status_code = 500

    def __init__(self, message: str, error_code: ErrorCode):
        self.message = message
        self.error_code = error_code
        super().__init__(message)

    def __str__(self):
        # Format used for logging
        return f"[{self.error_code.value}] {self.message}"


class ValidationError(DocumentServiceError):
    """Bad file type, oversized file, unusable extracted text, bad filter."""
    status_code = 400


class NotFoundError(DocumentServiceError):
    """Lookup or delete of a record that does not exist."""
    status_code = 404

    def __init__(self, message: str = "Document not found", error_code: ErrorCode = ErrorCode.NOT_FOUND):
        super().__init__(message, error_code)


class PersistenceError(DocumentServiceError):
    """Storage read/write failure. Never retried here."""
    status_code = 500

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.PERSISTENCE_FAILED):
        super().__init__(message, error_code)


class GatewayError(Exception):
    """
    Failure of an external LLM call.

    Only raised inside the gateways; they absorb it and return
    degraded values, so it never reaches callers.
    """


class AuthenticationError(DocumentServiceError):
    """Missing or unknown access token."""
    status_code = 401

    def __init__(self, message: str = "Invalid or missing access token", error_code: ErrorCode = ErrorCode.UNAUTHORIZED):
        super().__init__(message, error_code)
