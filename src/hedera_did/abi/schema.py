"""Contract interface schemas (Solidity JSON ABI)."""

from __future__ import annotations

import json
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import List, Optional

from eth_abi import is_encodable_type
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from hedera_did.errors import SchemaLoadError

DEFAULT_SCHEMA_RESOURCE = "DidManage.json"


class AbiParameter(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    type: str

    @field_validator("type")
    @classmethod
    def _check_type(cls, value: str) -> str:
        try:
            supported = is_encodable_type(value)
        except Exception:  # grammar errors do not share a base class
            supported = False
        if not supported:
            raise ValueError(f"unsupported ABI type: {value}")
        return value


class AbiEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "function"
    name: Optional[str] = None
    inputs: List[AbiParameter] = []
    outputs: List[AbiParameter] = []


@dataclass(frozen=True)
class FunctionDescriptor:
    name: str
    input_types: tuple[str, ...]
    output_types: tuple[str, ...]
    output_names: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"


@dataclass(frozen=True)
class ContractSchema:
    functions: tuple[FunctionDescriptor, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(item.name for item in self.functions)

    def get(self, name: str) -> FunctionDescriptor | None:
        for item in self.functions:
            if item.name == name:
                return item
        return None


def build_contract_schema(abi: object) -> ContractSchema:
    if isinstance(abi, dict) and "abi" in abi:
        # Hardhat / Truffle artifact wrapping the ABI list.
        abi = abi["abi"]
    if not isinstance(abi, list):
        raise SchemaLoadError("contract ABI must be a JSON list")

    try:
        entries = [AbiEntry.model_validate(item) for item in abi]
    except ValidationError as exc:
        raise SchemaLoadError(f"invalid contract ABI: {exc}") from exc

    functions: list[FunctionDescriptor] = []
    seen: set[str] = set()
    for entry in entries:
        if entry.type != "function":
            continue
        if not entry.name:
            raise SchemaLoadError("contract ABI function entry is missing a name")
        if entry.name in seen:
            raise SchemaLoadError(f"overloaded function not supported: {entry.name}")
        seen.add(entry.name)
        functions.append(
            FunctionDescriptor(
                name=entry.name,
                input_types=tuple(item.type for item in entry.inputs),
                output_types=tuple(item.type for item in entry.outputs),
                output_names=tuple(item.name for item in entry.outputs),
            )
        )
    return ContractSchema(functions=tuple(functions))


def load_contract_schema(path: str | Path | None = None) -> ContractSchema:
    """Load a contract schema from ``path`` or the bundled DidManage ABI."""
    if path is None:
        source = resources.files("hedera_did.abi").joinpath(DEFAULT_SCHEMA_RESOURCE)
        label = f"bundled {DEFAULT_SCHEMA_RESOURCE}"
    else:
        source = Path(path)
        label = str(source)

    try:
        raw = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"cannot read contract ABI: {label}") from exc
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SchemaLoadError(f"invalid JSON in contract ABI {label}: {exc}") from exc
    return build_contract_schema(parsed)
