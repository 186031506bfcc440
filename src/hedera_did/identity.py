"""Identifier resolution into canonical 20-byte addresses.

Accepted notations:
- ledger-native triple ``<shard>.<realm>.<num>`` (e.g. ``0.0.1234``)
- hex address, with or without the ``0x`` prefix (40 hex characters)

Triples are packed as ``shard`` (4 bytes) | ``realm`` (8 bytes) | ``num``
(8 bytes), big-endian, which is how the ledger derives the long-zero EVM
address of an account or contract.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from hedera_did.errors import InvalidIdentifierError

HEX_PREFIX = "0x"
ADDRESS_HEX_LEN = 40

_TRIPLE_RE = re.compile(r"^([0-9]+)\.([0-9]+)\.([0-9]+)$")
_HEX_RE = re.compile(r"^[0-9a-fA-F]{40}$")

_MAX_SHARD = 2**32 - 1
_MAX_REALM = 2**64 - 1
_MAX_NUM = 2**64 - 1


@dataclass(frozen=True)
class LedgerNativeTriple:
    shard: int
    realm: int
    num: int

    def __str__(self) -> str:
        return f"{self.shard}.{self.realm}.{self.num}"

    def to_address(self) -> str:
        packed = (
            self.shard.to_bytes(4, "big")
            + self.realm.to_bytes(8, "big")
            + self.num.to_bytes(8, "big")
        )
        return HEX_PREFIX + packed.hex()


@dataclass(frozen=True)
class HexAddress:
    hex_digits: str

    def to_address(self) -> str:
        return HEX_PREFIX + self.hex_digits


Identifier = Union[LedgerNativeTriple, HexAddress]


def parse_identifier(identifier: str) -> Identifier:
    if not isinstance(identifier, str):
        raise InvalidIdentifierError("identifier must be a string")
    value = identifier.strip()
    if not value:
        raise InvalidIdentifierError("identifier must not be empty")

    if "." in value:
        match = _TRIPLE_RE.match(value)
        if match is None:
            raise InvalidIdentifierError(
                f"invalid account id {value!r}: expected <shard>.<realm>.<num>"
            )
        shard, realm, num = (int(part) for part in match.groups())
        if shard > _MAX_SHARD or realm > _MAX_REALM or num > _MAX_NUM:
            raise InvalidIdentifierError(f"account id {value!r} is out of range")
        return LedgerNativeTriple(shard=shard, realm=realm, num=num)

    digits = value[len(HEX_PREFIX):] if value.startswith(HEX_PREFIX) else value
    if not _HEX_RE.match(digits):
        raise InvalidIdentifierError(
            f"invalid address {value!r}: expected {ADDRESS_HEX_LEN} hex characters"
        )
    return HexAddress(hex_digits=digits)


def resolve(identifier: str) -> str:
    """Return the ``0x``-prefixed canonical address for ``identifier``."""
    return parse_identifier(identifier).to_address()

