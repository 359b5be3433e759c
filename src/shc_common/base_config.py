"""
Shared configuration base classes for the SHC wallet.

Configuration is passed explicitly into the authorization request builder and
the presentation token assembler; nothing in the core reads process-wide state.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ENV_PREFIX = "SHC_"


class VersionPatternMode(str, Enum):
    """How ``fhirVersion`` wildcard patterns are compiled."""

    # Anchored glob: "*" is any sequence, every other character is literal.
    STRICT = "strict"
    # Unanchored search with "." left as a regex wildcard.
    LENIENT = "lenient"


class BaseServiceConfig(BaseModel):
    """Base configuration shared by wallet components.

    Holds the service identity and logging options; component specific
    settings live on subclasses.
    """

    service_name: str = Field(description="Name of the service")

    environment: str = Field(
        default="development", description="Environment (development, testing, staging, production)"
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json, text)")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment setting."""
        valid_environments = {"development", "testing", "staging", "production"}
        if v not in valid_environments:
            msg = f"Environment must be one of {valid_environments}"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level setting."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            msg = f"Log level must be one of {valid_levels}"
            raise ValueError(msg)
        return v.upper()


class WalletConfig(BaseServiceConfig):
    """Configuration for the SHC wallet presentation flow."""

    model_config = ConfigDict(frozen=True)

    service_name: str = Field(default="shc-wallet", description="Name of the service")

    issuer: str = Field(
        default="https://example.org/shc-wallet",
        description="Issuer identity placed in the iss claim of presentation tokens",
    )
    client_id: str = Field(
        default="http://localhost:8080",
        description="Self-issued client identifier, also used as redirect_uri",
    )
    token_lifetime_seconds: int = Field(
        default=300, description="Validity window of presentation tokens"
    )
    allow_unsecured_tokens: bool = Field(
        default=False, description="Permit alg=none presentation tokens (demonstration only)"
    )
    version_pattern_mode: VersionPatternMode = Field(
        default=VersionPatternMode.STRICT, description="fhirVersion pattern compilation mode"
    )

    @field_validator("token_lifetime_seconds")
    @classmethod
    def validate_token_lifetime(cls, v: int) -> int:
        if v <= 0:
            msg = "token_lifetime_seconds must be positive"
            raise ValueError(msg)
        return v

    @field_validator("issuer", "client_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        if not v.strip():
            msg = "Identifiers must not be empty"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def reject_unsecured_in_production(self) -> WalletConfig:
        if self.environment == "production" and self.allow_unsecured_tokens:
            msg = "Unsecured presentation tokens cannot be enabled in production"
            raise ValueError(msg)
        return self

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> WalletConfig:
        """Build a config from ``SHC_``-prefixed environment variables.

        Explicit keyword overrides win over the environment.
        """
        environ = dict(os.environ if environ is None else environ)
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            key = f"{ENV_PREFIX}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        values.update(overrides)
        return cls(**values)
