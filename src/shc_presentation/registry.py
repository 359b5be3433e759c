"""
Scope registry mapping scope URIs to presentation definitions.

Definitions are compiled when the registry is built, so a malformed
definition fails at startup rather than during matching.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from shc_common.base_config import VersionPatternMode
from shc_common.errors import WalletConfigurationError, log_and_raise

from .exceptions import UnknownScopeError
from .matcher import CompiledDefinition, compile_definition
from .models import BundleContentSpec, Constraints, InputDescriptor, PresentationDefinition

logger = logging.getLogger(__name__)

INSURANCE_SCOPE = "https://smarthealth.cards/scope#insurance"
COVID_VACCINE_SCOPE = "https://smarthealth.cards/scope#covid-vaccine"
COVID_TEST_SCOPE = "https://smarthealth.cards/scope#covid-test"

SHC_VACCINATION_PROFILE = (
    "http://hl7.org/fhir/uv/shc-vaccination/StructureDefinition/shc-vaccination-ad"
)

INSURANCE_DEFINITION = PresentationDefinition(
    id=INSURANCE_SCOPE,
    input_descriptors=(
        InputDescriptor(
            id="insurance",
            name="SMART Health Insurance Card",
            purpose="Access Health Insurance Card",
            constraints=Constraints(
                fhir_version=("4.*",),
                fhir_bundle_contains=(
                    BundleContentSpec("Patient"),
                    BundleContentSpec("Coverage"),
                ),
            ),
        ),
    ),
)

COVID_VACCINE_DEFINITION = PresentationDefinition(
    id=COVID_VACCINE_SCOPE,
    input_descriptors=(
        InputDescriptor(
            id="covid-vaccine",
            name="COVID-19 Vaccine Card",
            purpose="Access COVID-19 Vaccine Card",
            constraints=Constraints(
                fhir_version=("4.*",),
                fhir_bundle_contains=(
                    BundleContentSpec("Patient"),
                    BundleContentSpec("Observation", profile=(SHC_VACCINATION_PROFILE,)),
                ),
            ),
        ),
    ),
)


class ScopeRegistry(Mapping[str, PresentationDefinition]):
    """Immutable scope URI -> presentation definition mapping."""

    def __init__(
        self,
        definitions: Iterable[PresentationDefinition],
        mode: VersionPatternMode = VersionPatternMode.STRICT,
    ) -> None:
        compiled: dict[str, CompiledDefinition] = {}
        for definition in definitions:
            if definition.id in compiled:
                log_and_raise(
                    WalletConfigurationError,
                    f"Duplicate presentation definition for scope {definition.id}",
                    logger,
                    "duplicate_scope",
                )
            compiled[definition.id] = compile_definition(definition, mode)
        self._compiled = MappingProxyType(compiled)
        self.mode = mode
        logger.info("Scope registry initialised with %d scopes", len(compiled))

    def __getitem__(self, scope: str) -> PresentationDefinition:
        return self._compiled[scope].definition

    def __iter__(self) -> Iterator[str]:
        return iter(self._compiled)

    def __len__(self) -> int:
        return len(self._compiled)

    def resolve(self, scope: str) -> PresentationDefinition:
        """Look up ``scope`` as an exact key.

        Raises:
            UnknownScopeError: if ``scope`` is not registered
        """
        return self.resolve_compiled(scope).definition

    def resolve_compiled(self, scope: str) -> CompiledDefinition:
        try:
            return self._compiled[scope]
        except KeyError:
            log_and_raise(UnknownScopeError, f"Unknown scope: {scope!r}", logger)


def default_scope_registry(
    mode: VersionPatternMode = VersionPatternMode.STRICT,
) -> ScopeRegistry:
    """Registry with the SMART Health Cards insurance and vaccination scopes."""
    return ScopeRegistry([INSURANCE_DEFINITION, COVID_VACCINE_DEFINITION], mode)


__all__ = [
    "COVID_TEST_SCOPE",
    "COVID_VACCINE_DEFINITION",
    "COVID_VACCINE_SCOPE",
    "INSURANCE_DEFINITION",
    "INSURANCE_SCOPE",
    "SHC_VACCINATION_PROFILE",
    "ScopeRegistry",
    "default_scope_registry",
]
