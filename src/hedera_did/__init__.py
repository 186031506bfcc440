"""Hedera DID SDK public surface."""

from hedera_did.abi.schema import ContractSchema, FunctionDescriptor, load_contract_schema
from hedera_did.client import ExecutionOutcome, LedgerClient
from hedera_did.contract import ContractInterface, QueryOutcome
from hedera_did.errors import (
    ArgumentTypeError,
    ConfigError,
    DecodeError,
    DIDSDKError,
    EncodeError,
    ExecutionError,
    HashInputError,
    InvalidIdentifierError,
    NetworkError,
    QueryError,
    SchemaLoadError,
    UnknownFunctionError,
)
from hedera_did.hashing import digest, load_payload, serialize_payload
from hedera_did.identity import HexAddress, LedgerNativeTriple, parse_identifier, resolve
from hedera_did.keys import operator_evm_address, parse_private_key
from hedera_did.networks import NETWORKS, NetworkPreset, get_network

__all__ = [
    "DIDSDKError",
    "InvalidIdentifierError",
    "HashInputError",
    "SchemaLoadError",
    "UnknownFunctionError",
    "ArgumentTypeError",
    "EncodeError",
    "DecodeError",
    "ConfigError",
    "NetworkError",
    "ExecutionError",
    "QueryError",
    "resolve",
    "parse_identifier",
    "LedgerNativeTriple",
    "HexAddress",
    "digest",
    "serialize_payload",
    "load_payload",
    "ContractSchema",
    "FunctionDescriptor",
    "load_contract_schema",
    "ContractInterface",
    "QueryOutcome",
    "LedgerClient",
    "ExecutionOutcome",
    "parse_private_key",
    "operator_evm_address",
    "NETWORKS",
    "NetworkPreset",
    "get_network",
]
