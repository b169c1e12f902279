"""Tests for the CatBridge exception taxonomy."""

import pytest

from catbridge.errors import (
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
from catbridge.storage import AccountExistsError


class TestCatBridgeError:
    """Test the base error."""

    def test_defaults(self):
        """Test default attributes."""
        error = CatBridgeError("Something failed")
        assert error.message == "Something failed"
        assert error.severity is ErrorSeverity.MEDIUM
        assert error.category is ErrorCategory.SYSTEM
        assert not error.retryable
        assert isinstance(error.context, ErrorContext)

    def test_str(self):
        """Test the string form lists code, severity and retryability."""
        error = CatBridgeError(
            "Boom", error_code="E1", severity=ErrorSeverity.HIGH, retryable=True
        )
        assert str(error) == "CatBridgeError: Boom | Code: E1 | Severity: high | Retryable: Yes"

    def test_to_dict(self):
        """Test dictionary conversion with context and cause."""
        cause = KeyError("k")
        error = CatBridgeError(
            "Boom",
            context=ErrorContext(component="engine", chain_id=2, sequence=5),
            cause=cause,
        )
        data = error.to_dict()
        assert data["type"] == "CatBridgeError"
        assert data["context"]["component"] == "engine"
        assert data["context"]["chain_id"] == 2
        assert data["context"]["sequence"] == 5
        assert data["cause"] == str(cause)


class TestSubclasses:
    """Test the taxonomy."""

    @pytest.mark.parametrize(
        "error, category",
        [
            (ValidationError("x"), ErrorCategory.VALIDATION),
            (TrustError("x"), ErrorCategory.TRUST),
            (ReplayError("x"), ErrorCategory.REPLAY),
            (PayloadError("x"), ErrorCategory.PAYLOAD),
            (ArithmeticError("x"), ErrorCategory.ARITHMETIC),
            (AuthorizationError("x"), ErrorCategory.AUTHORIZATION),
            (CollaboratorError("x"), ErrorCategory.COLLABORATOR),
            (ConfigurationError("x"), ErrorCategory.CONFIGURATION),
            (StorageError("x"), ErrorCategory.STORAGE),
        ],
    )
    def test_categories(self, error, category):
        """Test that every error carries its category and the common base."""
        assert error.category is category
        assert isinstance(error, CatBridgeError)

    def test_retryability(self):
        """Test which failures a caller may retry."""
        assert TrustError("x").retryable
        assert CollaboratorError("x").retryable
        assert not CollaboratorError("x", retryable=False).retryable
        assert not ReplayError("x").retryable

    def test_trust_error_fields(self):
        """Test emitter details on trust errors."""
        error = TrustError("bad", emitter_chain=2, emitter_address="ab")
        data = error.to_dict()
        assert data["emitter_chain"] == 2
        assert data["emitter_address"] == "ab"
        assert error.severity is ErrorSeverity.HIGH

    def test_arithmetic_error_is_not_builtin(self):
        """Test that the bridge's arithmetic error is its own type."""
        import builtins

        assert not issubclass(ArithmeticError, builtins.ArithmeticError)

    def test_account_exists_is_storage_error(self):
        """Test the store's own error types."""
        assert issubclass(AccountExistsError, StorageError)


class TestCreateValidationError:
    """Test the validation error helper."""

    def test_default_message(self):
        """Test the generated message."""
        error = create_validation_error("amount", -1, "positive")
        assert error.field == "amount"
        assert "expected positive, got -1" in error.message
        assert error.to_dict()["value"] == "-1"
