"""CatBridge error handling.

Exception taxonomy shared by the bridge core, the host state store and the
collaborator implementations.
"""

from .exceptions import (
    ArithmeticError,
    AuthorizationError,
    CatBridgeError,
    CollaboratorError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    PayloadError,
    ReplayError,
    StorageError,
    TrustError,
    ValidationError,
    create_validation_error,
)

__all__ = [
    "CatBridgeError",
    "ValidationError",
    "TrustError",
    "ReplayError",
    "PayloadError",
    "ArithmeticError",
    "AuthorizationError",
    "CollaboratorError",
    "ConfigurationError",
    "StorageError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "create_validation_error",
]
