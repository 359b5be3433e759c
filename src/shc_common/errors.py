"""
Base exception classes and error helpers for the SHC wallet.

Domain errors derive from these classes so callers can catch a whole family
(configuration vs. validation) without knowing every concrete type.
"""

from __future__ import annotations

import logging
from typing import Any, NoReturn

logger = logging.getLogger(__name__)


class WalletError(Exception):
    """Base exception for all wallet errors."""

    def __init__(self, message: str, error_code: str | None = None) -> None:
        """Initialize wallet error."""
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code or type(self).__name__, "error_description": self.message}


class WalletConfigurationError(WalletError):
    """Exception raised for configuration-related errors."""


class WalletValidationError(WalletError):
    """Exception raised for validation errors."""


def log_and_raise(
    exception_class: type[WalletError],
    message: str,
    logger_instance: logging.Logger | None = None,
    error_code: str | None = None,
    original_exception: Exception | None = None,
) -> NoReturn:
    """
    Log an error and raise a specific exception.

    Args:
        exception_class: Exception class to raise
        message: Error message
        logger_instance: Logger to use
        error_code: Optional error code
        original_exception: Original exception to chain

    Raises:
        WalletError: The specified exception
    """
    log = logger_instance or logger
    log.error(message)

    # Keep the class default error code unless one is given explicitly
    error = exception_class(message) if error_code is None else exception_class(message, error_code)
    if original_exception:
        raise error from original_exception
    raise error


def validate_required_fields(
    data: dict[str, Any],
    required_fields: list[str],
    exception_class: type[WalletError] = WalletValidationError,
) -> None:
    """
    Validate that all required fields are present and not None.

    Raises:
        WalletValidationError: If any required fields are missing (or
            ``exception_class`` when given)
    """
    missing_fields = [field for field in required_fields if data.get(field) is None]
    if missing_fields:
        error_msg = f"Missing required fields: {', '.join(missing_fields)}"
        raise exception_class(error_msg, "MISSING_REQUIRED_FIELDS")
