"""Shared configuration, error and logging helpers for the SHC wallet."""

from .base_config import BaseServiceConfig, VersionPatternMode, WalletConfig
from .errors import (
    WalletConfigurationError,
    WalletError,
    WalletValidationError,
    log_and_raise,
)
from .logging_config import get_logger, setup_logging

__all__ = [
    "BaseServiceConfig",
    "VersionPatternMode",
    "WalletConfig",
    "WalletConfigurationError",
    "WalletError",
    "WalletValidationError",
    "get_logger",
    "log_and_raise",
    "setup_logging",
]
