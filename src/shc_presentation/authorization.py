"""
Authorization request construction and parsing.

Requests travel as URL query strings: object-valued fields are JSON encoded,
every value is percent-encoded and ``key=value`` pairs are joined with ``&``.
The wallet acts as a self-issued client, so ``client_id`` and
``redirect_uri`` must be identical; the parser rejects any request where they
differ before looking at anything else.
"""

from __future__ import annotations

import copy
import json
import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from typing import Any, NamedTuple
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

from shc_common.base_config import WalletConfig
from shc_common.errors import log_and_raise, validate_required_fields

from .exceptions import ClientBindingError, MalformedRequestError, UnknownScopeError
from .matcher import compile_definition
from .models import (
    DEFAULT_CLIENT_METADATA,
    RESPONSE_TYPE_VP_TOKEN,
    AuthorizationRequest,
    PresentationDefinition,
)
from .provider import Provider
from .registry import ScopeRegistry

logger = logging.getLogger(__name__)

DefinitionResolver = Callable[[str], PresentationDefinition]


class BuiltAuthorizationRequest(NamedTuple):
    request: AuthorizationRequest
    url: str


class ResolvedAuthorizationRequest(NamedTuple):
    request: AuthorizationRequest
    definition: PresentationDefinition


def encode_query(fields: Mapping[str, Any]) -> str:
    """Encode request fields as a query string, keys sorted, ``None`` omitted."""
    params = []
    for key in sorted(fields):
        value = fields[key]
        if value is None:
            continue
        if isinstance(value, (Mapping, list, tuple)):
            value = json.dumps(value, separators=(",", ":"))
        params.append((key, value))
    return urlencode(params, quote_via=quote)


def decode_query(query: str) -> dict[str, str]:
    """Split a query string (or a URL carrying one) into a field map.

    A ``?`` only separates a URL from its query when nothing before it looks
    like a parameter; query values may carry an unencoded ``?``.
    """
    head, separator, _ = query.partition("?")
    if separator and "=" not in head and "&" not in head:
        query = urlsplit(query).query
    fields: dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key in fields:
            log_and_raise(MalformedRequestError, f"Repeated request parameter: {key}", logger)
        fields[key] = value
    return fields


def _decode_json_object(fields: Mapping[str, str], name: str) -> dict[str, Any]:
    try:
        value = json.loads(fields[name])
    except ValueError as exc:
        log_and_raise(
            MalformedRequestError, f"{name} is not valid JSON", logger, original_exception=exc
        )
    if not isinstance(value, dict):
        log_and_raise(MalformedRequestError, f"{name} must be a JSON object", logger)
    return value


class AuthorizationRequestBuilder:
    """Builds wallet authorization requests for a provider."""

    def __init__(
        self,
        config: WalletConfig,
        client_metadata: Mapping[str, Any] | None = None,
        nonce_factory: Callable[[], str] | None = None,
    ) -> None:
        self._config = config
        self._client_metadata = dict(client_metadata or DEFAULT_CLIENT_METADATA)
        self._nonce_factory = nonce_factory or (lambda: str(uuid.uuid4()))

    @property
    def client_id(self) -> str:
        return self._config.client_id

    def build(self, provider: Provider, scopes: Sequence[str]) -> BuiltAuthorizationRequest:
        """Create a request for ``scopes`` and its URL at the provider's endpoint.

        Raises:
            MalformedRequestError: if no scope is requested
            UnknownScopeError: if the provider does not support a scope
        """
        if isinstance(scopes, str):
            scopes = [scopes]
        if not scopes:
            log_and_raise(MalformedRequestError, "At least one scope must be requested", logger)
        unsupported = [s for s in scopes if s not in provider.configuration.scopes_supported]
        if unsupported:
            log_and_raise(
                UnknownScopeError,
                f"Provider {provider.name!r} does not support scopes: {', '.join(unsupported)}",
                logger,
            )

        request = AuthorizationRequest(
            nonce=self._nonce_factory(),
            client_id=self.client_id,
            redirect_uri=self.client_id,
            client_metadata=copy.deepcopy(self._client_metadata),
            response_type=RESPONSE_TYPE_VP_TOKEN,
            scope=" ".join(scopes),
        )
        return self._finish(provider, request)

    def build_for_definition(
        self, provider: Provider, definition: PresentationDefinition
    ) -> BuiltAuthorizationRequest:
        """Create a request carrying ``definition`` inline instead of a scope."""
        compile_definition(definition, self._config.version_pattern_mode)
        request = AuthorizationRequest(
            nonce=self._nonce_factory(),
            client_id=self.client_id,
            redirect_uri=self.client_id,
            client_metadata=copy.deepcopy(self._client_metadata),
            response_type=RESPONSE_TYPE_VP_TOKEN,
            presentation_definition=definition,
        )
        return self._finish(provider, request)

    def _finish(self, provider: Provider, request: AuthorizationRequest) -> BuiltAuthorizationRequest:
        url = f"{provider.configuration.authorization_endpoint}?{encode_query(request.to_dict())}"
        logger.info("Built authorization request for %s (scope=%s)", provider.name, request.scope)
        return BuiltAuthorizationRequest(request=request, url=url)


class AuthorizationRequestParser:
    """Parses and validates incoming authorization requests."""

    REQUIRED_FIELDS = ["nonce", "client_metadata", "response_type"]

    def __init__(
        self,
        registry: ScopeRegistry,
        definition_resolver: DefinitionResolver | None = None,
    ) -> None:
        self._registry = registry
        self._definition_resolver = definition_resolver

    def parse(self, query: str) -> AuthorizationRequest:
        """Parse ``query`` and check that its definition can be resolved."""
        return self.parse_and_resolve(query).request

    def parse_and_resolve(self, query: str) -> ResolvedAuthorizationRequest:
        request = self.parse_fields(decode_query(query))
        return ResolvedAuthorizationRequest(request, self.resolve_definition(request))

    def parse_fields(self, fields: Mapping[str, str]) -> AuthorizationRequest:
        """Validate a decoded field map without resolving its definition.

        Raises:
            ClientBindingError: if client_id differs from redirect_uri
            MalformedRequestError: if a field is missing, empty or cannot be decoded
        """
        # Blank values count as absent
        fields = {key: value for key, value in fields.items() if value != ""}
        validate_required_fields(dict(fields), ["client_id", "redirect_uri"], MalformedRequestError)
        if fields["client_id"] != fields["redirect_uri"]:
            log_and_raise(
                ClientBindingError,
                "client_id must match redirect_uri for anonymous clients",
                logger,
            )
        validate_required_fields(dict(fields), self.REQUIRED_FIELDS, MalformedRequestError)

        client_metadata = _decode_json_object(fields, "client_metadata")
        definition = None
        if fields.get("presentation_definition"):
            definition = PresentationDefinition.from_dict(
                _decode_json_object(fields, "presentation_definition")
            )
            compile_definition(definition, self._registry.mode)

        if fields["response_type"] != RESPONSE_TYPE_VP_TOKEN:
            log_and_raise(
                MalformedRequestError,
                f"Unsupported response_type: {fields['response_type']!r}",
                logger,
                "unsupported_response_type",
            )

        return AuthorizationRequest(
            nonce=fields["nonce"],
            client_id=fields["client_id"],
            redirect_uri=fields["redirect_uri"],
            client_metadata=client_metadata,
            response_type=fields["response_type"],
            scope=fields.get("scope") or None,
            presentation_definition=definition,
            presentation_definition_uri=fields.get("presentation_definition_uri") or None,
        )

    def resolve_definition(self, request: AuthorizationRequest) -> PresentationDefinition:
        """Return the definition a request refers to.

        Precedence: inline definition, definition URI, then scope.

        Raises:
            UnknownScopeError: if the scope is not a registered key
            MalformedRequestError: if nothing identifies a definition
        """
        if request.presentation_definition is not None:
            return request.presentation_definition

        if request.presentation_definition_uri:
            if self._definition_resolver is None:
                log_and_raise(
                    MalformedRequestError,
                    "presentation_definition_uri is not supported by this wallet",
                    logger,
                    "invalid_presentation_definition_uri",
                )
            definition = self._definition_resolver(request.presentation_definition_uri)
            compile_definition(definition, self._registry.mode)
            return definition

        if request.scope:
            return self._registry.resolve(request.scope)

        log_and_raise(
            MalformedRequestError,
            "Request carries no presentation_definition, presentation_definition_uri or scope",
            logger,
        )


__all__ = [
    "AuthorizationRequestBuilder",
    "AuthorizationRequestParser",
    "BuiltAuthorizationRequest",
    "DefinitionResolver",
    "ResolvedAuthorizationRequest",
    "decode_query",
    "encode_query",
]
