"""Known ledger networks and their public endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

NetworkName = Literal["mainnet", "testnet", "previewnet"]


@dataclass(frozen=True)
class NetworkPreset:
    name: str
    chain_id: int
    json_rpc_url: str
    mirror_node: str


NETWORKS: dict[str, NetworkPreset] = {
    "mainnet": NetworkPreset(
        name="mainnet",
        chain_id=295,
        json_rpc_url="https://mainnet.hashio.io/api",
        mirror_node="https://mainnet-public.mirrornode.hedera.com",
    ),
    "testnet": NetworkPreset(
        name="testnet",
        chain_id=296,
        json_rpc_url="https://testnet.hashio.io/api",
        mirror_node="https://testnet.mirrornode.hedera.com",
    ),
    "previewnet": NetworkPreset(
        name="previewnet",
        chain_id=297,
        json_rpc_url="https://previewnet.hashio.io/api",
        mirror_node="https://previewnet.mirrornode.hedera.com",
    ),
}

DEFAULT_NETWORK = "testnet"


def normalize_network(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in NETWORKS:
        raise ValueError("network must be one of: mainnet, testnet, previewnet")
    return normalized


def get_network(name: str) -> NetworkPreset:
    return NETWORKS[normalize_network(name)]
