"""
Constraint matcher for SHC presentation definitions.

A definition is compiled once into per-descriptor predicates; matching is
then a pure, order-preserving filter over a manifest snapshot. An entry is
kept only when it satisfies every descriptor of the definition.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass

from shc_common.base_config import VersionPatternMode

from .exceptions import DefinitionCompilationError, EmptyMatchResult
from .manifest import ManifestStore
from .models import BundleContentSpec, InputDescriptor, ManifestEntry, PresentationDefinition

logger = logging.getLogger(__name__)


def compile_version_pattern(
    pattern: str, mode: VersionPatternMode = VersionPatternMode.STRICT
) -> re.Pattern[str]:
    """Translate a ``fhirVersion`` wildcard pattern into a regex.

    STRICT: ``*`` matches any sequence, all other characters are literal and
    the whole version must match ("4.*" accepts "4.0.1", rejects "14.0").

    LENIENT: only ``*`` is translated; ``.`` keeps its regex meaning and the
    pattern may match anywhere in the version ("4.*" accepts "14.0" and "4x0").
    """
    mode = VersionPatternMode(mode)
    if not isinstance(pattern, str) or not pattern:
        raise DefinitionCompilationError(f"Invalid fhirVersion pattern: {pattern!r}")

    if mode is VersionPatternMode.STRICT:
        body = "".join(".*" if char == "*" else re.escape(char) for char in pattern)
        return re.compile(f"^{body}\\Z")

    try:
        return re.compile(pattern.replace("*", ".*"))
    except re.error as exc:
        raise DefinitionCompilationError(
            f"fhirVersion pattern {pattern!r} cannot be compiled: {exc}"
        ) from exc


def _validate_bundle_spec(descriptor_id: str, spec: BundleContentSpec) -> None:
    if not spec.resource_type:
        raise DefinitionCompilationError(
            f"Descriptor {descriptor_id!r} has a fhirBundleContains item without resourceType"
        )
    if spec.profile is not None and not spec.profile:
        raise DefinitionCompilationError(
            f"Descriptor {descriptor_id!r} declares an empty profile list for {spec.resource_type}"
        )


def _bundle_item_matches(required: BundleContentSpec, item: BundleContentSpec) -> bool:
    if required.resource_type != item.resource_type:
        return False
    if required.profile is None:
        return True
    return any(profile in (item.profile or ()) for profile in required.profile)


@dataclass(frozen=True, slots=True)
class CompiledDescriptor:
    """Predicates for a single input descriptor."""

    descriptor_id: str
    optional: bool
    version_patterns: tuple[re.Pattern[str], ...]
    bundle_contains: tuple[BundleContentSpec, ...]

    @classmethod
    def compile(
        cls, descriptor: InputDescriptor, mode: VersionPatternMode = VersionPatternMode.STRICT
    ) -> CompiledDescriptor:
        constraints = descriptor.constraints
        if not constraints.fhir_version:
            raise DefinitionCompilationError(
                f"Descriptor {descriptor.id!r} declares no fhirVersion patterns"
            )
        for spec in constraints.fhir_bundle_contains:
            _validate_bundle_spec(descriptor.id, spec)
        return cls(
            descriptor_id=descriptor.id,
            optional=constraints.optional,
            version_patterns=tuple(
                compile_version_pattern(pattern, mode) for pattern in constraints.fhir_version
            ),
            bundle_contains=constraints.fhir_bundle_contains,
        )

    def is_satisfied_by(self, entry: ManifestEntry) -> bool:
        # Optional descriptors are treated as satisfied without inspecting the entry.
        if self.optional:
            return True
        if not any(pattern.search(entry.fhir_version) for pattern in self.version_patterns):
            return False
        return all(
            any(_bundle_item_matches(required, item) for item in entry.fhir_bundle_contains)
            for required in self.bundle_contains
        )


@dataclass(frozen=True, slots=True)
class CompiledDefinition:
    """A presentation definition compiled into descriptor predicates."""

    definition: PresentationDefinition
    descriptors: tuple[CompiledDescriptor, ...]
    mode: VersionPatternMode = VersionPatternMode.STRICT

    @property
    def id(self) -> str:
        return self.definition.id

    def matches(self, entry: ManifestEntry) -> bool:
        return all(descriptor.is_satisfied_by(entry) for descriptor in self.descriptors)

    def filter(self, entries: Iterable[ManifestEntry]) -> list[ManifestEntry]:
        return [entry for entry in entries if self.matches(entry)]


def compile_definition(
    definition: PresentationDefinition | CompiledDefinition,
    mode: VersionPatternMode = VersionPatternMode.STRICT,
) -> CompiledDefinition:
    """Compile every descriptor of ``definition``.

    Raises:
        DefinitionCompilationError: if any pattern or constraint is malformed
    """
    mode = VersionPatternMode(mode)
    if isinstance(definition, CompiledDefinition):
        if definition.mode is mode:
            return definition
        definition = definition.definition

    compiled = CompiledDefinition(
        definition=definition,
        descriptors=tuple(
            CompiledDescriptor.compile(descriptor, mode) for descriptor in definition.input_descriptors
        ),
        mode=mode,
    )
    logger.debug(
        "Compiled presentation definition %s (%d descriptors, %s mode)",
        definition.id,
        len(compiled.descriptors),
        mode.value,
    )
    return compiled


def match(
    definition: PresentationDefinition | CompiledDefinition,
    entries: Iterable[ManifestEntry],
    mode: VersionPatternMode = VersionPatternMode.STRICT,
) -> list[ManifestEntry]:
    """Return the entries satisfying every descriptor, in their original order."""
    return compile_definition(definition, mode).filter(entries)


def match_by_descriptor(
    definition: PresentationDefinition | CompiledDefinition,
    entries: Iterable[ManifestEntry],
    mode: VersionPatternMode = VersionPatternMode.STRICT,
) -> dict[str, list[ManifestEntry]]:
    """Report which entries satisfy each descriptor on its own.

    Diagnostic view for multi-descriptor definitions; ``match`` still
    requires a single entry to satisfy all descriptors.
    """
    compiled = compile_definition(definition, mode)
    snapshot = tuple(entries)
    return {
        descriptor.descriptor_id: [entry for entry in snapshot if descriptor.is_satisfied_by(entry)]
        for descriptor in compiled.descriptors
    }


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Matched entries for one definition.

    ``empty`` is the explicit no-match signal; callers that cannot continue
    without credentials escalate with ``raise_if_empty``.
    """

    definition_id: str
    entries: tuple[ManifestEntry, ...]

    @property
    def empty(self) -> bool:
        return not self.entries

    @property
    def credentials(self) -> list[str]:
        return [entry.credential for entry in self.entries]

    def raise_if_empty(self) -> MatchResult:
        if self.empty:
            raise EmptyMatchResult(
                f"No stored credential satisfies presentation definition {self.definition_id}"
            )
        return self


def select_credentials(
    definition: PresentationDefinition | CompiledDefinition,
    store: ManifestStore,
    mode: VersionPatternMode = VersionPatternMode.STRICT,
) -> MatchResult:
    """Match a fresh snapshot of ``store`` against ``definition``."""
    compiled = compile_definition(definition, mode)
    snapshot = store.snapshot()
    matched = compiled.filter(snapshot)
    if matched:
        logger.info(
            "Matched %d of %d credentials for %s", len(matched), len(snapshot), compiled.id
        )
    else:
        logger.warning("No credentials matched %s (%d available)", compiled.id, len(snapshot))
    return MatchResult(definition_id=compiled.id, entries=tuple(matched))


__all__ = [
    "CompiledDefinition",
    "CompiledDescriptor",
    "MatchResult",
    "compile_definition",
    "compile_version_pattern",
    "match",
    "match_by_descriptor",
    "select_credentials",
]
