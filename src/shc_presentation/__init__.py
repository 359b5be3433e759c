"""
SMART Health Card presentation exchange.

Selects a holder's credentials that satisfy a verifier's presentation
definition and wraps them in a signed Verifiable Presentation token.

Key Components:
- Scope Registry: scope URI -> presentation definition
- Constraint Matcher: fhirVersion / bundle-content filtering of manifest entries
- Authorization Request Builder/Parser: query-string transport with the
  self-issued client binding check
- Presentation Token Assembler: vp_token claims, signing delegated to a Signer
"""

__version__ = "1.0.0"

from .authorization import (
    AuthorizationRequestBuilder,
    AuthorizationRequestParser,
    BuiltAuthorizationRequest,
    ResolvedAuthorizationRequest,
    decode_query,
    encode_query,
)
from .exceptions import (
    ClientBindingError,
    DefinitionCompilationError,
    EmptyMatchResult,
    InsecureSignerError,
    MalformedRequestError,
    ManifestEntryError,
    PresentationExchangeError,
    PresentationVerificationError,
    UnknownScopeError,
)
from .manifest import InMemoryManifestStore, ManifestStore
from .matcher import (
    CompiledDefinition,
    MatchResult,
    compile_definition,
    match,
    match_by_descriptor,
    select_credentials,
)
from .models import (
    AuthorizationRequest,
    BundleContentSpec,
    Constraints,
    InputDescriptor,
    ManifestEntry,
    PresentationDefinition,
)
from .presentation import PresentationTokenAssembler, verify_presentation
from .provider import Provider, ProviderConfiguration, smart_demo_provider
from .registry import (
    COVID_TEST_SCOPE,
    COVID_VACCINE_SCOPE,
    INSURANCE_SCOPE,
    ScopeRegistry,
    default_scope_registry,
)
from .signing import ES256Signer, Signer, UnsecuredSigner

__all__ = [
    # Components
    "AuthorizationRequestBuilder",
    "AuthorizationRequestParser",
    "InMemoryManifestStore",
    "ManifestStore",
    "PresentationTokenAssembler",
    "ScopeRegistry",
    "default_scope_registry",
    "smart_demo_provider",
    # Matching
    "CompiledDefinition",
    "MatchResult",
    "compile_definition",
    "match",
    "match_by_descriptor",
    "select_credentials",
    # Data types
    "AuthorizationRequest",
    "BuiltAuthorizationRequest",
    "BundleContentSpec",
    "Constraints",
    "InputDescriptor",
    "ManifestEntry",
    "PresentationDefinition",
    "Provider",
    "ProviderConfiguration",
    "ResolvedAuthorizationRequest",
    # Signing
    "ES256Signer",
    "Signer",
    "UnsecuredSigner",
    "verify_presentation",
    # Transport
    "decode_query",
    "encode_query",
    # Errors
    "ClientBindingError",
    "DefinitionCompilationError",
    "EmptyMatchResult",
    "InsecureSignerError",
    "MalformedRequestError",
    "ManifestEntryError",
    "PresentationExchangeError",
    "PresentationVerificationError",
    "UnknownScopeError",
    # Constants
    "COVID_TEST_SCOPE",
    "COVID_VACCINE_SCOPE",
    "INSURANCE_SCOPE",
]
