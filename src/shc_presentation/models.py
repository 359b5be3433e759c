"""Data structures for SHC presentation exchange.

Every type converts to and from its JSON wire form. Wire member names keep
the camelCase used on the wire (``fhirVersion``, ``fhirBundleContains``).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .exceptions import DefinitionCompilationError, MalformedRequestError, ManifestEntryError

RESPONSE_TYPE_VP_TOKEN = "vp_token"

VP_CONTEXT = ("https://www.w3.org/2018/credentials/v1",)
VP_TYPE = ("VerifiablePresentation",)

SHC_VC_FORMAT: dict[str, Any] = {"shc_vc": {"alg": ["ES256"]}}

# Formats the wallet declares in client_metadata of every request it builds.
DEFAULT_CLIENT_METADATA: dict[str, Any] = {
    "vp_formats": {
        "jwt_vp_json": {"alg": ["none"]},
        "shc_vc": {"alg": ["ES256"]},
    }
}


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DefinitionCompilationError(f"{what} must be a JSON object")
    return data


def _string_tuple(value: Any, what: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Sequence) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise DefinitionCompilationError(f"{what} must be a string or a list of strings")


@dataclass(frozen=True, slots=True)
class BundleContentSpec:
    """A resource type (optionally restricted to profiles) inside a FHIR bundle."""

    resource_type: str
    profile: tuple[str, ...] | None = None

    @classmethod
    def from_dict(cls, data: Any) -> BundleContentSpec:
        data = _require_mapping(data, "fhirBundleContains item")
        resource_type = data.get("resourceType")
        if not isinstance(resource_type, str):
            raise DefinitionCompilationError("fhirBundleContains item requires a resourceType")
        profile = data.get("profile")
        return cls(
            resource_type=resource_type,
            profile=None if profile is None else _string_tuple(profile, "profile"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"resourceType": self.resource_type}
        if self.profile is not None:
            data["profile"] = list(self.profile)
        return data


@dataclass(frozen=True, slots=True)
class Constraints:
    """Matching constraints of one input descriptor."""

    fhir_version: tuple[str, ...]
    fhir_bundle_contains: tuple[BundleContentSpec, ...] = ()
    optional: bool = False

    @classmethod
    def from_dict(cls, data: Any) -> Constraints:
        data = _require_mapping(data, "constraints")
        if "fhirVersion" not in data:
            raise DefinitionCompilationError("constraints require fhirVersion")
        bundle_contains = data.get("fhirBundleContains", [])
        if not isinstance(bundle_contains, Sequence) or isinstance(bundle_contains, str):
            raise DefinitionCompilationError("fhirBundleContains must be a list")
        return cls(
            fhir_version=_string_tuple(data["fhirVersion"], "fhirVersion"),
            fhir_bundle_contains=tuple(BundleContentSpec.from_dict(item) for item in bundle_contains),
            optional=bool(data.get("optional", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "fhirVersion": list(self.fhir_version),
            "fhirBundleContains": [spec.to_dict() for spec in self.fhir_bundle_contains],
            "optional": self.optional,
        }


@dataclass(frozen=True, slots=True)
class InputDescriptor:
    """One named requirement within a presentation definition."""

    id: str
    name: str
    constraints: Constraints
    purpose: str | None = None
    format: Mapping[str, Any] = field(default_factory=lambda: dict(SHC_VC_FORMAT))

    @classmethod
    def from_dict(cls, data: Any) -> InputDescriptor:
        data = _require_mapping(data, "input descriptor")
        descriptor_id = data.get("id")
        if not isinstance(descriptor_id, str) or not descriptor_id:
            raise DefinitionCompilationError("input descriptor requires an id")
        return cls(
            id=descriptor_id,
            name=str(data.get("name", descriptor_id)),
            purpose=data.get("purpose"),
            format=dict(data.get("format") or SHC_VC_FORMAT),
            constraints=Constraints.from_dict(data.get("constraints")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.purpose is not None:
            data["purpose"] = self.purpose
        data["format"] = dict(self.format)
        data["constraints"] = self.constraints.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class PresentationDefinition:
    """A verifier's declared requirements, keyed by its scope URI."""

    id: str
    input_descriptors: tuple[InputDescriptor, ...]

    @classmethod
    def from_dict(cls, data: Any) -> PresentationDefinition:
        data = _require_mapping(data, "presentation_definition")
        definition_id = data.get("id")
        if not isinstance(definition_id, str) or not definition_id:
            raise DefinitionCompilationError("presentation_definition requires an id")
        descriptors = data.get("input_descriptors")
        if not isinstance(descriptors, Sequence) or isinstance(descriptors, str):
            raise DefinitionCompilationError("input_descriptors must be a list")
        return cls(
            id=definition_id,
            input_descriptors=tuple(InputDescriptor.from_dict(item) for item in descriptors),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "input_descriptors": [descriptor.to_dict() for descriptor in self.input_descriptors],
        }


@dataclass(frozen=True, slots=True)
class ManifestEntry:
    """A stored credential plus the metadata extracted for matching.

    ``credential`` is the opaque signed payload and is never parsed here.
    """

    credential: str
    fhir_version: str
    fhir_bundle_contains: tuple[BundleContentSpec, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> ManifestEntry:
        if not isinstance(data, Mapping):
            raise ManifestEntryError("manifest entry must be a JSON object")
        # "shc" is the key older manifests use for the payload
        credential = data.get("credential", data.get("shc"))
        if not isinstance(credential, str) or not credential:
            raise ManifestEntryError("manifest entry requires a credential payload")
        fhir_version = data.get("fhirVersion")
        if not isinstance(fhir_version, str) or not fhir_version:
            raise ManifestEntryError("manifest entry requires a fhirVersion string")
        return cls(
            credential=credential,
            fhir_version=fhir_version,
            fhir_bundle_contains=tuple(
                BundleContentSpec.from_dict(item) for item in data.get("fhirBundleContains", [])
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "credential": self.credential,
            "fhirVersion": self.fhir_version,
            "fhirBundleContains": [spec.to_dict() for spec in self.fhir_bundle_contains],
        }


@dataclass(frozen=True, slots=True)
class AuthorizationRequest:
    """OID4VP-style authorization request exchanged between verifier and wallet."""

    nonce: str
    client_id: str
    redirect_uri: str
    client_metadata: Mapping[str, Any]
    response_type: str = RESPONSE_TYPE_VP_TOKEN
    scope: str | None = None
    presentation_definition: PresentationDefinition | None = None
    presentation_definition_uri: str | None = None

    def __post_init__(self) -> None:
        if self.presentation_definition is not None and self.presentation_definition_uri:
            raise MalformedRequestError(
                "presentation_definition and presentation_definition_uri are mutually exclusive"
            )

    @property
    def scopes(self) -> list[str]:
        return self.scope.split() if self.scope else []

    def to_dict(self) -> dict[str, Any]:
        """Return the wire fields, omitting absent optional members."""
        data: dict[str, Any] = {
            "client_id": self.client_id,
            "client_metadata": dict(self.client_metadata),
            "nonce": self.nonce,
            "redirect_uri": self.redirect_uri,
            "response_type": self.response_type,
        }
        if self.scope is not None:
            data["scope"] = self.scope
        if self.presentation_definition is not None:
            data["presentation_definition"] = self.presentation_definition.to_dict()
        if self.presentation_definition_uri is not None:
            data["presentation_definition_uri"] = self.presentation_definition_uri
        return data


__all__ = [
    "DEFAULT_CLIENT_METADATA",
    "RESPONSE_TYPE_VP_TOKEN",
    "SHC_VC_FORMAT",
    "VP_CONTEXT",
    "VP_TYPE",
    "AuthorizationRequest",
    "BundleContentSpec",
    "Constraints",
    "InputDescriptor",
    "ManifestEntry",
    "PresentationDefinition",
]
