"""Call encoding and result decoding against a loaded contract schema."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi import is_encodable
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector

from hedera_did.abi.schema import ContractSchema, FunctionDescriptor
from hedera_did.errors import ArgumentTypeError, DecodeError, EncodeError, UnknownFunctionError

SELECTOR_SIZE = 4

_FIXED_BYTES_RE = re.compile(r"^bytes([0-9]+)$")
_INT_RE = re.compile(r"^u?int[0-9]*$")
_DECIMAL_RE = re.compile(r"^-?[0-9]+$")


@dataclass(frozen=True)
class QueryOutcome:
    """Decoded return values, positional with optional output names."""

    values: tuple[Any, ...]
    names: tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def __getitem__(self, key: int | str) -> Any:
        if isinstance(key, str):
            if key not in self.names:
                raise DecodeError(f"result has no output named {key!r}")
            return self.values[self.names.index(key)]
        try:
            return self.values[key]
        except IndexError:
            raise DecodeError(f"result has no output at position {key}") from None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for index, value in enumerate(self.values):
            name = self.names[index] if index < len(self.names) else ""
            payload[name or f"output{index}"] = value
        return payload


def _hex_to_bytes(value: str, *, abi_type: str, position: int) -> bytes:
    digits = value[2:] if value[:2].lower() == "0x" else value
    try:
        return bytes.fromhex(digits)
    except ValueError as exc:
        raise ArgumentTypeError(
            f"argument {position} ({abi_type}) is not valid hex: {value!r}"
        ) from exc


def _coerce_argument(abi_type: str, value: Any, *, position: int) -> Any:
    fixed = _FIXED_BYTES_RE.match(abi_type)
    if fixed or abi_type == "bytes":
        if isinstance(value, str):
            value = _hex_to_bytes(value, abi_type=abi_type, position=position)
        if fixed and isinstance(value, (bytes, bytearray)) and len(value) != int(fixed.group(1)):
            raise ArgumentTypeError(
                f"argument {position} ({abi_type}) must be exactly "
                f"{fixed.group(1)} bytes, got {len(value)}"
            )
        return value
    if _INT_RE.match(abi_type) and isinstance(value, str) and _DECIMAL_RE.match(value.strip()):
        return int(value.strip())
    return value


def _normalize_output(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return tuple(_normalize_output(item) for item in value)
    return value


class ContractInterface:
    """Encodes calls and decodes results for the functions of one schema."""

    def __init__(self, schema: ContractSchema) -> None:
        self.schema = schema
        self._table: dict[str, FunctionDescriptor] = {item.name: item for item in schema.functions}
        self._selectors: dict[str, bytes] = {
            item.name: function_signature_to_4byte_selector(item.signature)
            for item in schema.functions
        }

    def function(self, function_name: str) -> FunctionDescriptor:
        descriptor = self._table.get(function_name)
        if descriptor is None:
            raise UnknownFunctionError(f"function not found in contract ABI: {function_name}")
        return descriptor

    def selector(self, function_name: str) -> bytes:
        self.function(function_name)
        return self._selectors[function_name]

    def encode(self, function_name: str, args: Sequence[Any] = ()) -> bytes:
        descriptor = self.function(function_name)
        args = list(args)
        if len(args) != len(descriptor.input_types):
            raise ArgumentTypeError(
                f"{function_name} expects {len(descriptor.input_types)} argument(s), "
                f"got {len(args)}"
            )

        coerced: list[Any] = []
        for position, (abi_type, value) in enumerate(zip(descriptor.input_types, args)):
            item = _coerce_argument(abi_type, value, position=position)
            if not is_encodable(abi_type, item):
                raise ArgumentTypeError(
                    f"argument {position} of {function_name} is not a valid {abi_type}: {value!r}"
                )
            coerced.append(item)

        try:
            body = abi_encode(list(descriptor.input_types), coerced)
        except (EncodingError, ValueError, TypeError, OverflowError) as exc:
            raise EncodeError(f"failed to encode {function_name}: {exc}") from exc
        return self._selectors[function_name] + body

    def decode(self, function_name: str, raw: bytes) -> QueryOutcome:
        descriptor = self.function(function_name)
        if not isinstance(raw, (bytes, bytearray)):
            raise DecodeError(f"{function_name} result must be bytes")
        try:
            values = abi_decode(list(descriptor.output_types), bytes(raw))
        except (DecodingError, ValueError, TypeError, OverflowError) as exc:
            raise DecodeError(f"failed to decode {function_name} result: {exc}") from exc
        return QueryOutcome(
            values=tuple(_normalize_output(item) for item in values),
            names=descriptor.output_names,
        )
