"""SDK error types."""

from __future__ import annotations


class DIDSDKError(RuntimeError):
    """Base SDK error."""


class InvalidIdentifierError(DIDSDKError):
    """Identifier is neither a ledger-native triple nor a hex address."""


class HashInputError(DIDSDKError):
    """Payload cannot be serialized for hashing."""


class SchemaLoadError(DIDSDKError):
    """Contract schema could not be read or validated."""


class UnknownFunctionError(DIDSDKError):
    """Function name is absent from the loaded contract schema."""


class ArgumentTypeError(DIDSDKError):
    """Call arguments do not match the declared input arity or types."""


class EncodeError(DIDSDKError):
    """Call data could not be encoded."""


class DecodeError(DIDSDKError):
    """Return bytes could not be decoded against the declared output types."""


class ConfigError(DIDSDKError, ValueError):
    """Raised when CLI config is invalid or incomplete."""


class NetworkError(DIDSDKError):
    """Ledger endpoint could not be reached or returned an error response."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ExecutionError(NetworkError):
    """State-changing transaction was rejected or could not be submitted."""


class QueryError(NetworkError):
    """Read-only contract call failed in transport."""
