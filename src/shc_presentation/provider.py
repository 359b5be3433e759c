"""Provider metadata consumed by the authorization request builder."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .registry import COVID_TEST_SCOPE, COVID_VACCINE_SCOPE, INSURANCE_SCOPE


@dataclass(frozen=True, slots=True)
class ProviderConfiguration:
    """Subset of wallet provider metadata used to build requests."""

    issuer: str
    authorization_endpoint: str
    scopes_supported: tuple[str, ...]
    presentation_definition_uri_supported: bool = False
    response_types_supported: tuple[str, ...] = ("vp_token",)
    response_modes_supported: tuple[str, ...] = ("fragment",)
    vp_formats_supported: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProviderConfiguration:
        return cls(
            issuer=data["issuer"],
            authorization_endpoint=data["authorization_endpoint"],
            scopes_supported=tuple(data.get("scopes_supported", ())),
            presentation_definition_uri_supported=bool(
                data.get("presentation_definition_uri_supported", False)
            ),
            response_types_supported=tuple(data.get("response_types_supported", ("vp_token",))),
            response_modes_supported=tuple(data.get("response_modes_supported", ("fragment",))),
            vp_formats_supported=dict(data.get("vp_formats_supported", {})),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "issuer": self.issuer,
            "authorization_endpoint": self.authorization_endpoint,
            "presentation_definition_uri_supported": self.presentation_definition_uri_supported,
            "response_modes_supported": list(self.response_modes_supported),
            "response_types_supported": list(self.response_types_supported),
            "scopes_supported": list(self.scopes_supported),
            "vp_formats_supported": dict(self.vp_formats_supported),
        }


@dataclass(frozen=True, slots=True)
class Provider:
    name: str
    configuration: ProviderConfiguration


def smart_demo_provider(issuer: str = "https://example.org/shc-wallet") -> Provider:
    """The SMART demo wallet, serving its authorization endpoint under ``issuer``."""
    return Provider(
        name="SMART Demo Wallet",
        configuration=ProviderConfiguration(
            issuer=issuer,
            authorization_endpoint=f"{issuer.rstrip('/')}/authorize",
            scopes_supported=(COVID_TEST_SCOPE, COVID_VACCINE_SCOPE, INSURANCE_SCOPE),
            vp_formats_supported={
                "jwt_vp_json": {"alg_values_supported": ["none"]},
                "shc_vc": {"alg_values_supported": ["ES256"]},
            },
        ),
    )


__all__ = ["Provider", "ProviderConfiguration", "smart_demo_provider"]
