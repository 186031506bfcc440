"""Content digests for off-chain payloads referenced on-chain.

Payloads are serialized the way ``JSON.stringify`` writes them: compact,
insertion order, numbers in ECMAScript ``Number#toString`` form and lone
surrogates escaped as ``\\uXXXX``. Digests computed here therefore match
hashes anchored by other did-cli implementations.
"""

from __future__ import annotations

import json
import math
import re
from decimal import Decimal
from pathlib import Path
from typing import Any

from eth_utils import keccak

from hedera_did.errors import HashInputError

# Integers beyond this lose precision in an IEEE-754 double.
_MAX_SAFE_INTEGER = 2**53 - 1
_LONE_SURROGATE_RE = re.compile("[\ud800-\udfff]")


def _escape_surrogates(text: str) -> str:
    return _LONE_SURROGATE_RE.sub(lambda match: "\\u%04x" % ord(match.group()), text)


def _format_number(value: float) -> str:
    if not math.isfinite(value):
        raise HashInputError(f"payload number is not finite: {value!r}")
    if value == 0:
        return "0"

    sign = "-" if value < 0 else ""
    # Shortest round-trip digits, same as ECMAScript.
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = exponent + k

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return sign + "0." + "0" * (-n) + digits
    e = n - 1
    mantissa = digits if k == 1 else digits[0] + "." + digits[1:]
    return f"{sign}{mantissa}e{'+' if e >= 0 else '-'}{abs(e)}"


def _encode(value: Any) -> str:
    if isinstance(value, dict):
        items = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise HashInputError(f"payload keys must be strings, got {type(key).__name__}")
            items.append(_encode(key) + ":" + _encode(item))
        return "{" + ",".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode(item) for item in value) + "]"
    if isinstance(value, float):
        return _format_number(value)
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > _MAX_SAFE_INTEGER:
        return _format_number(float(value))
    return json.dumps(value, ensure_ascii=False)


def serialize_payload(payload: Any) -> str:
    try:
        return _escape_surrogates(_encode(payload))
    except (TypeError, ValueError, OverflowError, RecursionError) as exc:
        raise HashInputError(f"payload is not serializable: {exc}") from exc


def digest(payload: Any) -> str:
    """Return the ``0x``-prefixed keccak-256 digest of the serialized payload."""
    try:
        encoded = serialize_payload(payload).encode("utf-8")
    except UnicodeEncodeError as exc:
        raise HashInputError(f"payload is not valid UTF-8 text: {exc}") from exc
    return "0x" + keccak(primitive=encoded).hex()


def _reject_constant(name: str) -> Any:
    raise HashInputError(f"{name} is not valid JSON")


def load_payload(*, data: str | None = None, file: str | Path | None = None) -> Any:
    if data is not None and file is not None:
        raise HashInputError("use either --data or --file, not both")
    if file is not None:
        path = Path(file)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise HashInputError(f"cannot read payload file: {path}") from exc
        source = str(path)
    elif data is not None:
        raw = data
        source = "--data"
    else:
        raise HashInputError("payload data required; use --data or --file")

    try:
        return json.loads(raw, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise HashInputError(f"invalid JSON in {source}: {exc}") from exc
