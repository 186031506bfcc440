from hedera_did.abi.schema import (
    AbiEntry,
    AbiParameter,
    ContractSchema,
    FunctionDescriptor,
    build_contract_schema,
    load_contract_schema,
)

__all__ = [
    "AbiEntry",
    "AbiParameter",
    "ContractSchema",
    "FunctionDescriptor",
    "build_contract_schema",
    "load_contract_schema",
]
