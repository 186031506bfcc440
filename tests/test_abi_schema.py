from __future__ import annotations

import json

import pytest

from hedera_did.abi.schema import build_contract_schema, load_contract_schema
from hedera_did.errors import SchemaLoadError


def test_bundled_schema_lists_contract_functions() -> None:
    schema = load_contract_schema()
    assert schema.names == (
        "createDID",
        "updateDID",
        "dids",
        "issueCredential",
        "revokeCredential",
        "suspendCredential",
        "unsuspendCredential",
        "updateCredential",
        "getCredential",
        "verifyCredential",
        "createPresentation",
        "getPresentation",
        "verifyPresentation",
        "grantIssuerRole",
        "revokeIssuerRole",
        "pause",
        "unpause",
    )


def test_get_credential_outputs_keep_declared_order() -> None:
    descriptor = load_contract_schema().get("getCredential")
    assert descriptor is not None
    assert descriptor.output_names == (
        "issuer",
        "valid",
        "suspended",
        "expirationBlock",
        "schemaId",
        "version",
    )
    assert descriptor.output_types == ("address", "bool", "bool", "uint256", "bytes32", "uint256")
    assert descriptor.signature == "getCredential(address,bytes32)"


def test_events_are_not_callable() -> None:
    assert load_contract_schema().get("CredentialIssued") is None


def test_schema_loads_from_artifact_file(tmp_path) -> None:
    path = tmp_path / "artifact.json"
    abi = [{"type": "function", "name": "ping", "inputs": [], "outputs": []}]
    path.write_text(json.dumps({"contractName": "Ping", "abi": abi}), encoding="utf-8")
    schema = load_contract_schema(path)
    assert schema.names == ("ping",)
    assert schema.get("ping").output_types == ()


def test_missing_schema_file_raises(tmp_path) -> None:
    with pytest.raises(SchemaLoadError, match="cannot read"):
        load_contract_schema(tmp_path / "missing.json")


def test_malformed_schema_json_raises(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(SchemaLoadError, match="invalid JSON"):
        load_contract_schema(path)


@pytest.mark.parametrize(
    "abi",
    [
        {"not": "a list"},
        [{"type": "function", "name": "f", "inputs": [{"name": "x", "type": "uint7"}]}],
        [{"type": "function", "name": "f", "inputs": [{"name": "x"}]}],
        [{"type": "function", "inputs": []}],
        [
            {"type": "function", "name": "f", "inputs": []},
            {"type": "function", "name": "f", "inputs": [{"name": "x", "type": "uint256"}]},
        ],
    ],
)
def test_invalid_schema_content_raises(abi) -> None:
    with pytest.raises(SchemaLoadError):
        build_contract_schema(abi)
