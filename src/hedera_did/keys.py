"""Operator key parsing.

Keys are accepted as raw 32-byte hex (optionally ``0x``-prefixed) or as the
DER-encoded PKCS#8 hex strings exported by ledger portals. Only ECDSA
secp256k1 keys can sign EVM transactions; ED25519 keys are rejected.
"""

from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import load_der_private_key
from eth_account import Account

from hedera_did.errors import ConfigError

RAW_KEY_HEX_LEN = 64


def _validate_scalar(raw: bytes) -> bytes:
    try:
        ec.derive_private_key(int.from_bytes(raw, "big"), ec.SECP256K1())
    except ValueError as exc:
        raise ConfigError("private key is not a valid secp256k1 scalar") from exc
    return raw


def parse_private_key(value: str) -> bytes:
    text = value.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        material = bytes.fromhex(text)
    except ValueError as exc:
        raise ConfigError("private key must be hex encoded") from exc
    if not material:
        raise ConfigError("private key must not be empty")

    if len(text) == RAW_KEY_HEX_LEN:
        return _validate_scalar(material)

    try:
        key = load_der_private_key(material, password=None)
    except (ValueError, TypeError) as exc:
        raise ConfigError("private key is neither raw hex nor DER encoded") from exc

    if isinstance(key, Ed25519PrivateKey):
        raise ConfigError(
            "ED25519 keys cannot sign contract transactions; use an ECDSA secp256k1 key"
        )
    if not isinstance(key, ec.EllipticCurvePrivateKey) or not isinstance(key.curve, ec.SECP256K1):
        raise ConfigError("private key must be an ECDSA secp256k1 key")
    return key.private_numbers().private_value.to_bytes(32, "big")


def operator_evm_address(private_key: bytes) -> str:
    return Account.from_key(private_key).address
