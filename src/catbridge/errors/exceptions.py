"""Exception hierarchy for CatBridge.

Every failure inside a bridge transition is raised as one of these types and
aborts the surrounding unit of work. Nothing is committed partially.
"""

import time
import traceback
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories."""

    VALIDATION = "validation"
    TRUST = "trust"
    REPLAY = "replay"
    PAYLOAD = "payload"
    ARITHMETIC = "arithmetic"
    AUTHORIZATION = "authorization"
    COLLABORATOR = "collaborator"
    CONFIGURATION = "configuration"
    STORAGE = "storage"
    SYSTEM = "system"


@dataclass
class ErrorContext:
    """Context information for an error."""

    timestamp: float = field(default_factory=time.time)
    component: Optional[str] = None
    operation: Optional[str] = None
    chain_id: Optional[int] = None
    sequence: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert context to dictionary."""
        return {
            "timestamp": self.timestamp,
            "component": self.component,
            "operation": self.operation,
            "chain_id": self.chain_id,
            "sequence": self.sequence,
            "metadata": self.metadata,
        }


class CatBridgeError(Exception):
    """Base exception for all CatBridge errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        context: Optional[ErrorContext] = None,
        cause: Optional[Exception] = None,
        retryable: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context or ErrorContext()
        self.cause = cause
        self.retryable = retryable
        self.metadata = metadata or {}
        self.timestamp = time.time()
        self.traceback = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "severity": self.severity.value,
            "category": self.category.value,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
            "retryable": self.retryable,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.severity != ErrorSeverity.MEDIUM:
            parts.append(f"Severity: {self.severity.value}")

        if self.retryable:
            parts.append("Retryable: Yes")

        return " | ".join(parts)


class ValidationError(CatBridgeError):
    """Bad chain id, zero address, destination mismatch or similar input fault."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        expected: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        self.field = field
        self.value = value
        self.expected = expected

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
                "expected": str(self.expected) if self.expected is not None else None,
            }
        )
        return data


class TrustError(CatBridgeError):
    """Inbound message from an unregistered or mismatched emitter."""

    def __init__(
        self,
        message: str,
        emitter_chain: Optional[int] = None,
        emitter_address: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.TRUST,
            severity=ErrorSeverity.HIGH,
            retryable=True,
            **kwargs,
        )
        self.emitter_chain = emitter_chain
        self.emitter_address = emitter_address

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "emitter_chain": self.emitter_chain,
                "emitter_address": self.emitter_address,
            }
        )
        return data


class ReplayError(CatBridgeError):
    """Attempted reuse of an already claimed (chain, sequence) slot."""

    def __init__(
        self,
        message: str,
        emitter_chain: Optional[int] = None,
        sequence: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.REPLAY,
            severity=ErrorSeverity.HIGH,
            retryable=False,
            **kwargs,
        )
        self.emitter_chain = emitter_chain
        self.sequence = sequence

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"emitter_chain": self.emitter_chain, "sequence": self.sequence})
        return data


class PayloadError(CatBridgeError):
    """Wrong or malformed message variant."""

    def __init__(
        self,
        message: str,
        tag: Optional[int] = None,
        length: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.PAYLOAD, **kwargs)
        self.tag = tag
        self.length = length

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"tag": self.tag, "length": self.length})
        return data


class ArithmeticError(CatBridgeError):
    """Overflow or underflow in amount scaling or a native-width down-cast."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        value: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.ARITHMETIC,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.operation = operation
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "operation": self.operation,
                "value": str(self.value) if self.value is not None else None,
            }
        )
        return data


class AuthorizationError(CatBridgeError):
    """Non-owner attempting an administrative operation."""

    def __init__(
        self,
        message: str,
        caller: Optional[str] = None,
        required: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(
            message,
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.HIGH,
            **kwargs,
        )
        self.caller = caller
        self.required = required

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"caller": self.caller, "required": self.required})
        return data


class CollaboratorError(CatBridgeError):
    """Failure propagated from the token ledger or the messaging protocol."""

    def __init__(
        self,
        message: str,
        collaborator: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        kwargs.setdefault("retryable", True)
        super().__init__(message, category=ErrorCategory.COLLABORATOR, **kwargs)
        self.collaborator = collaborator
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"collaborator": self.collaborator, "operation": self.operation})
        return data


class ConfigurationError(CatBridgeError):
    """Configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(
            {
                "config_key": self.config_key,
                "config_value": str(self.config_value)
                if self.config_value is not None
                else None,
            }
        )
        return data


class StorageError(CatBridgeError):
    """Storage error."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.STORAGE, **kwargs)
        self.key = key
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"key": self.key, "operation": self.operation})
        return data


def create_validation_error(
    field: str, value: Any, expected: Any, message: Optional[str] = None
) -> ValidationError:
    """Create a validation error."""
    if message is None:
        message = f"Invalid value for field '{field}': expected {expected}, got {value}"

    return ValidationError(message=message, field=field, value=value, expected=expected)
