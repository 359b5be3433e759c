import json

import pytest

from shc_common import VersionPatternMode, WalletConfigurationError, WalletError
from shc_presentation import (
    COVID_TEST_SCOPE,
    COVID_VACCINE_SCOPE,
    INSURANCE_SCOPE,
    DefinitionCompilationError,
    InMemoryManifestStore,
    ManifestEntry,
    ManifestEntryError,
    PresentationDefinition,
    ProviderConfiguration,
    ScopeRegistry,
    UnknownScopeError,
)
from shc_presentation.registry import COVID_VACCINE_DEFINITION, INSURANCE_DEFINITION


def test_default_registry_scopes(registry):
    assert set(registry) == {INSURANCE_SCOPE, COVID_VACCINE_SCOPE}
    assert registry[INSURANCE_SCOPE] is INSURANCE_DEFINITION
    assert registry[COVID_VACCINE_SCOPE] is COVID_VACCINE_DEFINITION


def test_every_registered_scope_resolves_to_its_definition(registry):
    for scope in registry:
        definition = registry.resolve(scope)
        assert definition is registry[scope]
        assert definition.id == scope


def test_unregistered_scope_is_rejected(registry):
    with pytest.raises(UnknownScopeError) as excinfo:
        registry.resolve(COVID_TEST_SCOPE)
    assert excinfo.value.error_code == "invalid_scope"


def test_registry_is_read_only(registry):
    with pytest.raises(TypeError):
        registry[COVID_TEST_SCOPE] = INSURANCE_DEFINITION


def test_registry_rejects_duplicate_scope():
    with pytest.raises(WalletConfigurationError):
        ScopeRegistry([INSURANCE_DEFINITION, INSURANCE_DEFINITION])


def test_registry_compiles_definitions_at_registration():
    broken = INSURANCE_DEFINITION.to_dict()
    broken["input_descriptors"][0]["constraints"]["fhirVersion"] = ["4.("]
    definition = PresentationDefinition.from_dict(broken)

    ScopeRegistry([definition])
    with pytest.raises(DefinitionCompilationError):
        ScopeRegistry([definition], VersionPatternMode.LENIENT)


def test_registry_exposes_compiled_definition(registry):
    compiled = registry.resolve_compiled(INSURANCE_SCOPE)
    assert compiled.definition is INSURANCE_DEFINITION
    assert compiled.mode is VersionPatternMode.STRICT


def test_definition_wire_form_round_trips():
    wire = json.loads(json.dumps(COVID_VACCINE_DEFINITION.to_dict()))
    assert wire["input_descriptors"][0]["constraints"]["fhirBundleContains"][1]["profile"] == [
        "http://hl7.org/fhir/uv/shc-vaccination/StructureDefinition/shc-vaccination-ad"
    ]
    assert PresentationDefinition.from_dict(wire) == COVID_VACCINE_DEFINITION


def test_definition_accepts_single_version_string():
    wire = INSURANCE_DEFINITION.to_dict()
    wire["input_descriptors"][0]["constraints"]["fhirVersion"] = "4.0.*"
    definition = PresentationDefinition.from_dict(wire)
    assert definition.input_descriptors[0].constraints.fhir_version == ("4.0.*",)


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"input_descriptors": []},
        {"id": "urn:x", "input_descriptors": "nope"},
        {"id": "urn:x", "input_descriptors": [{"id": "d"}]},
        {"id": "urn:x", "input_descriptors": [{"id": "d", "constraints": {"fhirVersion": 4}}]},
    ],
)
def test_definition_from_dict_rejects_malformed_payloads(payload):
    with pytest.raises(DefinitionCompilationError):
        PresentationDefinition.from_dict(payload)


def test_manifest_store_loads_legacy_shc_key(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_text(
        json.dumps(
            [
                {
                    "shc": "eyJ.payload.sig",
                    "fhirVersion": "4.0.1",
                    "fhirBundleContains": [{"resourceType": "Patient"}, {"resourceType": "Coverage"}],
                }
            ]
        ),
        encoding="utf-8",
    )

    (entry,) = InMemoryManifestStore.from_json_file(path).snapshot()

    assert entry.credential == "eyJ.payload.sig"
    assert entry == ManifestEntry.from_dict(entry.to_dict())


def test_provider_configuration_from_metadata(provider):
    metadata = provider.configuration.to_dict()
    assert ProviderConfiguration.from_dict(metadata) == provider.configuration
    assert metadata["authorization_endpoint"] == "https://example.org/shc-wallet/authorize"
    assert COVID_TEST_SCOPE in metadata["scopes_supported"]


@pytest.mark.parametrize(
    "item",
    [
        {"credential": "eyJ.payload.sig", "fhirBundleContains": []},
        {"fhirVersion": "4.0.1", "fhirBundleContains": []},
        {"shc": "", "fhirVersion": "4.0.1"},
        "eyJ.payload.sig",
    ],
)
def test_manifest_store_rejects_incomplete_entries(tmp_path, item):
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps([item]), encoding="utf-8")

    with pytest.raises(ManifestEntryError) as excinfo:
        InMemoryManifestStore.from_json_file(path)

    assert isinstance(excinfo.value, WalletError)
    assert excinfo.value.error_code == "invalid_manifest_entry"
