"""Per-command outcome reporting for did-cli.

Each invocation moves from ``pending`` to exactly one of ``success`` or
``failure``. Progress goes to stderr, results to stdout, errors to stderr.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Literal, Sequence, TypeVar

from hedera_did.errors import DIDSDKError, NetworkError

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_NETWORK_ERROR = 2

OutcomeState = Literal["idle", "pending", "success", "failure"]

_SENSITIVE_FIELDS = (
    "private_key",
    "private-key",
    "secret",
    "token",
    "authorization",
    "api_key",
)

T = TypeVar("T")
Fields = Sequence[tuple[str, Any]]


def sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({re.escape(field)}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    return redacted


def exit_code_for(exc: BaseException) -> int:
    if isinstance(exc, NetworkError):
        return EXIT_NETWORK_ERROR
    return EXIT_VALIDATION_ERROR


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if value is None:
        return "Not set"
    return str(value)


def _json_value(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_json_value(item) for item in value]
    return value


class CommandOutcomeReporter:
    def __init__(self, *, stdout, stderr, as_json: bool = False) -> None:
        self.stdout = stdout
        self.stderr = stderr
        self.as_json = as_json
        self.state: OutcomeState = "idle"

    def start(self, message: str) -> None:
        if self.state != "idle":
            raise RuntimeError(f"cannot start command from state {self.state}")
        self.state = "pending"
        if not self.as_json:
            print(message, file=self.stderr)

    def _finish(self, state: OutcomeState) -> None:
        if self.state != "pending":
            raise RuntimeError(f"outcome already reported: {self.state}")
        self.state = state

    def succeed(self, headline: str, fields: Fields = ()) -> int:
        self._finish("success")
        if self.as_json:
            payload = {key: _json_value(value) for key, value in fields}
            print(json.dumps(payload, sort_keys=True), file=self.stdout)
            return EXIT_SUCCESS
        if headline:
            print(headline, file=self.stdout)
        for key, value in fields:
            print(f"{key}: {_format_value(value)}", file=self.stdout)
        return EXIT_SUCCESS

    def fail(self, label: str, exc: BaseException) -> int:
        self._finish("failure")
        code = exit_code_for(exc)
        message = sanitize_error_text(str(exc))
        if self.as_json:
            payload = {"error": message, "error_type": type(exc).__name__, "ok": False}
            print(json.dumps(payload, sort_keys=True), file=self.stdout)
        print(f"{label}: {message}", file=self.stderr)
        return code

    def run(
        self,
        *,
        pending: str,
        failure: str,
        action: Callable[[], T],
        render: Callable[[T], tuple[str, Fields]],
    ) -> int:
        self.start(pending)
        try:
            result = action()
            headline, fields = render(result)
        except DIDSDKError as exc:
            return self.fail(failure, exc)
        return self.succeed(headline, fields)
