"""Errors raised by the presentation exchange core."""

from __future__ import annotations

from shc_common.errors import WalletConfigurationError, WalletValidationError


class PresentationExchangeError(WalletValidationError):
    """Base class for request, definition and presentation failures."""


class ClientBindingError(PresentationExchangeError):
    """client_id and redirect_uri differ for a self-issued client."""

    def __init__(self, message: str, error_code: str | None = "invalid_client") -> None:
        super().__init__(message, error_code)


class UnknownScopeError(PresentationExchangeError):
    """Scope is not a registered presentation definition key."""

    def __init__(self, message: str, error_code: str | None = "invalid_scope") -> None:
        super().__init__(message, error_code)


class MalformedRequestError(PresentationExchangeError):
    """A request field is missing, undecodable or has an invalid value."""

    def __init__(self, message: str, error_code: str | None = "invalid_request") -> None:
        super().__init__(message, error_code)


class DefinitionCompilationError(PresentationExchangeError):
    """A presentation definition cannot be compiled into predicates."""

    def __init__(
        self, message: str, error_code: str | None = "invalid_presentation_definition"
    ) -> None:
        super().__init__(message, error_code)


class ManifestEntryError(PresentationExchangeError):
    """A stored manifest entry lacks its payload or matching metadata."""

    def __init__(self, message: str, error_code: str | None = "invalid_manifest_entry") -> None:
        super().__init__(message, error_code)


class EmptyMatchResult(PresentationExchangeError):
    """No stored credential satisfied the definition.

    Only raised when a caller escalates an empty ``MatchResult``.
    """

    def __init__(self, message: str, error_code: str | None = "access_denied") -> None:
        super().__init__(message, error_code)


class PresentationVerificationError(PresentationExchangeError):
    """A presentation token failed verifier-side checks."""

    def __init__(self, message: str, error_code: str | None = "invalid_presentation") -> None:
        super().__init__(message, error_code)


class InsecureSignerError(WalletConfigurationError):
    """An unsecured (alg=none) signer was supplied without explicit opt-in."""

    def __init__(self, message: str, error_code: str | None = "insecure_signer") -> None:
        super().__init__(message, error_code)


__all__ = [
    "ClientBindingError",
    "DefinitionCompilationError",
    "EmptyMatchResult",
    "InsecureSignerError",
    "MalformedRequestError",
    "ManifestEntryError",
    "PresentationExchangeError",
    "PresentationVerificationError",
    "UnknownScopeError",
]
