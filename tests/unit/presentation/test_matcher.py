import logging

import pytest

from shc_common import VersionPatternMode
from shc_presentation import (
    BundleContentSpec,
    Constraints,
    DefinitionCompilationError,
    EmptyMatchResult,
    InMemoryManifestStore,
    InputDescriptor,
    ManifestEntry,
    PresentationDefinition,
    compile_definition,
    match,
    match_by_descriptor,
    select_credentials,
)
from shc_presentation.matcher import compile_version_pattern
from shc_presentation.registry import (
    COVID_VACCINE_DEFINITION,
    INSURANCE_DEFINITION,
    SHC_VACCINATION_PROFILE,
)


def _entry(version, *resource_types, credential="shc"):
    return ManifestEntry(
        credential=credential,
        fhir_version=version,
        fhir_bundle_contains=tuple(BundleContentSpec(rt) for rt in resource_types),
    )


def _definition(*descriptors):
    return PresentationDefinition(id="urn:test", input_descriptors=tuple(descriptors))


def _descriptor(descriptor_id="d", versions=("4.*",), bundle=(), optional=False):
    return InputDescriptor(
        id=descriptor_id,
        name=descriptor_id,
        constraints=Constraints(
            fhir_version=tuple(versions),
            fhir_bundle_contains=tuple(bundle),
            optional=optional,
        ),
    )


def test_matcher_includes_entry_with_required_resources():
    entry = _entry("4.0.1", "Patient", "Coverage")
    assert match(INSURANCE_DEFINITION, [entry]) == [entry]


def test_matcher_excludes_wrong_major_version():
    assert match(INSURANCE_DEFINITION, [_entry("5.0.0", "Patient", "Coverage")]) == []


def test_matcher_excludes_missing_coverage():
    assert match(INSURANCE_DEFINITION, [_entry("4.0.1", "Patient")]) == []


def test_matcher_optional_descriptor_ignores_entry_content():
    definition = _definition(
        _descriptor(versions=("9.*",), bundle=[BundleContentSpec("Claim")], optional=True)
    )
    entry = _entry("1.0.0", "Patient")
    assert match(definition, [entry]) == [entry]


def test_matcher_preserves_input_order():
    entries = [
        _entry("4.0.1", "Patient", "Coverage", credential="a"),
        _entry("3.0.2", "Patient", "Coverage", credential="b"),
        _entry("4.3.0", "Coverage", "Patient", "Organization", credential="c"),
    ]
    assert [e.credential for e in match(INSURANCE_DEFINITION, entries)] == ["a", "c"]


def test_matcher_requires_listed_profile():
    plain_observation = ManifestEntry(
        credential="no-profile",
        fhir_version="4.0.1",
        fhir_bundle_contains=(BundleContentSpec("Patient"), BundleContentSpec("Observation")),
    )
    other_profile = ManifestEntry(
        credential="other-profile",
        fhir_version="4.0.1",
        fhir_bundle_contains=(
            BundleContentSpec("Patient"),
            BundleContentSpec("Observation", profile=("http://example.org/other",)),
        ),
    )
    vaccination = ManifestEntry(
        credential="vaccination",
        fhir_version="4.0.1",
        fhir_bundle_contains=(
            BundleContentSpec("Patient"),
            BundleContentSpec("Observation", profile=("http://example.org/other", SHC_VACCINATION_PROFILE)),
        ),
    )
    matched = match(COVID_VACCINE_DEFINITION, [plain_observation, other_profile, vaccination])
    assert [e.credential for e in matched] == ["vaccination"]


def test_matcher_profile_must_be_on_matching_resource_type():
    entry = ManifestEntry(
        credential="split",
        fhir_version="4.0.1",
        fhir_bundle_contains=(
            BundleContentSpec("Patient", profile=(SHC_VACCINATION_PROFILE,)),
            BundleContentSpec("Observation"),
        ),
    )
    assert match(COVID_VACCINE_DEFINITION, [entry]) == []


def test_matcher_accepts_any_of_several_version_patterns():
    definition = _definition(_descriptor(versions=("3.0.*", "4.0.*")))
    entries = [_entry("3.0.2"), _entry("4.0.1"), _entry("4.3.0")]
    assert [e.fhir_version for e in match(definition, entries)] == ["3.0.2", "4.0.1"]


def test_matcher_requires_every_descriptor():
    definition = _definition(
        _descriptor("insurance", bundle=[BundleContentSpec("Coverage")]),
        _descriptor("identity", bundle=[BundleContentSpec("Patient")]),
    )
    coverage_only = _entry("4.0.1", "Coverage", credential="coverage")
    both = _entry("4.0.1", "Coverage", "Patient", credential="both")
    assert match(definition, [coverage_only, both]) == [both]


def test_match_by_descriptor_reports_each_descriptor_separately():
    definition = _definition(
        _descriptor("insurance", bundle=[BundleContentSpec("Coverage")]),
        _descriptor("identity", bundle=[BundleContentSpec("Patient")]),
    )
    coverage = _entry("4.0.1", "Coverage", credential="coverage")
    patient = _entry("4.0.1", "Patient", credential="patient")

    result = match_by_descriptor(definition, [coverage, patient])

    assert result == {"insurance": [coverage], "identity": [patient]}
    assert match(definition, [coverage, patient]) == []


@pytest.mark.parametrize(
    ("pattern", "version", "expected"),
    [
        ("4.*", "4.0.1", True),
        ("4.*", "4.", True),
        ("4.*", "14.0.1", False),
        ("4.*", "4x0", False),
        ("4.0.*", "4.0.1", True),
        ("4.0.*", "4.1.0", False),
        ("4.0.1", "4.0.1", True),
        ("4.0.1", "4.0.10", False),
        ("*", "5.0.0", True),
    ],
)
def test_strict_version_patterns_are_anchored_globs(pattern, version, expected):
    compiled = compile_version_pattern(pattern, VersionPatternMode.STRICT)
    assert bool(compiled.search(version)) is expected


@pytest.mark.parametrize(
    ("pattern", "version", "expected"),
    [
        ("4.*", "4.0.1", True),
        ("4.*", "14.0.1", True),
        ("4.*", "4x0", True),
        ("4.0.1", "4.0.10", True),
        ("4.0.*", "3.4.0", False),
    ],
)
def test_lenient_version_patterns_search_unescaped(pattern, version, expected):
    compiled = compile_version_pattern(pattern, VersionPatternMode.LENIENT)
    assert bool(compiled.search(version)) is expected


def test_lenient_mode_matches_definition_against_unanchored_version():
    entry = _entry("14.0.1", "Patient", "Coverage")
    assert match(INSURANCE_DEFINITION, [entry]) == []
    assert match(INSURANCE_DEFINITION, [entry], VersionPatternMode.LENIENT) == [entry]


@pytest.mark.parametrize(
    "descriptor",
    [
        _descriptor(versions=()),
        _descriptor(versions=("",)),
        _descriptor(bundle=[BundleContentSpec("")]),
        _descriptor(bundle=[BundleContentSpec("Observation", profile=())]),
    ],
)
def test_malformed_definition_fails_at_compile_time(descriptor):
    with pytest.raises(DefinitionCompilationError):
        compile_definition(_definition(descriptor))


def test_lenient_mode_rejects_invalid_regex():
    with pytest.raises(DefinitionCompilationError):
        compile_definition(_definition(_descriptor(versions=("4.(",))), VersionPatternMode.LENIENT)


def test_optional_descriptor_is_still_validated():
    with pytest.raises(DefinitionCompilationError):
        compile_definition(_definition(_descriptor(versions=(), optional=True)))


def test_compile_definition_reuses_compiled_definition():
    compiled = compile_definition(INSURANCE_DEFINITION)
    assert compile_definition(compiled) is compiled
    assert compile_definition(compiled, VersionPatternMode.LENIENT).mode is VersionPatternMode.LENIENT


def test_select_credentials_returns_match_result(manifest_store, insurance_entry):
    result = select_credentials(INSURANCE_DEFINITION, manifest_store)

    assert not result.empty
    assert result.entries == (insurance_entry,)
    assert result.credentials == ["shc-insurance"]
    assert result.raise_if_empty() is result


def test_select_credentials_signals_empty_result(caplog):
    store = InMemoryManifestStore([_entry("5.0.0", "Patient", "Coverage")])

    with caplog.at_level(logging.WARNING, logger="shc_presentation.matcher"):
        result = select_credentials(INSURANCE_DEFINITION, store)

    assert result.empty
    assert result.credentials == []
    assert "No credentials matched" in caplog.text
    with pytest.raises(EmptyMatchResult):
        result.raise_if_empty()


def test_select_credentials_uses_snapshot(insurance_entry):
    store = InMemoryManifestStore([insurance_entry])
    snapshot = store.snapshot()
    store.add(_entry("4.0.1", "Patient", "Coverage", credential="late"))

    assert snapshot == (insurance_entry,)
    assert len(store) == 2
    assert select_credentials(INSURANCE_DEFINITION, store).credentials == ["shc-insurance", "late"]
