from __future__ import annotations

import pytest
from eth_utils import keccak

from hedera_did.errors import HashInputError
from hedera_did.hashing import digest, load_payload, serialize_payload


def test_digest_hashes_compact_json() -> None:
    expected = "0x" + keccak(primitive=b'{"name":"Alice"}').hex()
    assert digest({"name": "Alice"}) == expected


def test_digest_is_deterministic() -> None:
    payload = {"name": "Alice", "roles": ["admin", {"level": 2}], "active": True}
    assert digest(payload) == digest(payload)
    assert len(digest(payload)) == 66


def test_key_order_is_not_canonicalized() -> None:
    assert serialize_payload({"a": 1, "b": 2}) == '{"a":1,"b":2}'
    assert digest({"a": 1, "b": 2}) != digest({"b": 2, "a": 1})


def test_non_ascii_is_hashed_as_utf8() -> None:
    expected = "0x" + keccak(primitive='{"name":"Zoë"}'.encode("utf-8")).hex()
    assert digest({"name": "Zoë"}) == expected


def test_cyclic_payload_is_rejected() -> None:
    payload: dict = {"name": "loop"}
    payload["self"] = payload
    with pytest.raises(HashInputError):
        digest(payload)


def test_unserializable_payload_is_rejected() -> None:
    with pytest.raises(HashInputError):
        digest({"value": object()})
    with pytest.raises(HashInputError):
        digest({"value": float("nan")})


def test_load_payload_from_data_and_file(tmp_path) -> None:
    assert load_payload(data='{"name":"Alice"}') == {"name": "Alice"}

    path = tmp_path / "credential.json"
    path.write_text('{"degree": "BSc"}', encoding="utf-8")
    assert load_payload(file=path) == {"degree": "BSc"}


def test_load_payload_requires_exactly_one_source(tmp_path) -> None:
    with pytest.raises(HashInputError, match="--data or --file"):
        load_payload()
    with pytest.raises(HashInputError):
        load_payload(data="{}", file=tmp_path / "x.json")


def test_load_payload_rejects_invalid_json(tmp_path) -> None:
    with pytest.raises(HashInputError, match="invalid JSON"):
        load_payload(data="{name: Alice}")
    with pytest.raises(HashInputError, match="cannot read"):
        load_payload(file=tmp_path / "missing.json")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1.0, "1"),
        (100.0, "100"),
        (-0.0, "0"),
        (1.5, "1.5"),
        (0.1, "0.1"),
        (0.00001, "0.00001"),
        (1e-7, "1e-7"),
        (1e21, "1e+21"),
        (1.2345678901234568e20, "123456789012345680000"),
        (2**60, "1152921504606847000"),
    ],
)
def test_numbers_serialize_like_json_stringify(value, expected) -> None:
    assert serialize_payload({"score": value}) == '{"score":%s}' % expected


def test_integral_float_from_json_hashes_as_integer() -> None:
    expected = "0x" + keccak(primitive=b'{"score":1,"scale":100}').hex()
    assert digest(load_payload(data='{"score": 1.0, "scale": 1e2}')) == expected


def test_lone_surrogate_is_escaped() -> None:
    payload = load_payload(data='{"a":"\\ud800"}')
    assert serialize_payload(payload) == '{"a":"\\ud800"}'
    assert digest(payload) == "0x" + keccak(primitive=b'{"a":"\\ud800"}').hex()


def test_non_finite_numbers_are_rejected() -> None:
    with pytest.raises(HashInputError):
        load_payload(data='{"a": NaN}')
    with pytest.raises(HashInputError):
        digest(load_payload(data='{"a": 1e400}'))


def test_non_string_keys_are_rejected() -> None:
    with pytest.raises(HashInputError, match="keys must be strings"):
        digest({1: "one"})
