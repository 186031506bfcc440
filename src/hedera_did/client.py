"""Ledger client for contract execution and read-only queries.

State-changing calls are signed locally and submitted through the JSON-RPC
relay; read-only calls go to the mirror node ``/api/v1/contracts/call``
endpoint. Every call is encoded before any request is made, and nothing is
retried.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

from hedera_did.contract import ContractInterface, QueryOutcome
from hedera_did.errors import (
    ConfigError,
    DecodeError,
    ExecutionError,
    NetworkError,
    QueryError,
)
from hedera_did.keys import operator_evm_address

DEFAULT_GAS_LIMIT = 400_000
RECEIPT_SUCCESS = "0x1"
CONTRACT_CALL_PATH = "/api/v1/contracts/call"


@dataclass(frozen=True)
class ExecutionOutcome:
    transaction_id: str
    status: str


def _mirror_error_detail(body: object) -> str | None:
    if not isinstance(body, dict):
        return None
    status = body.get("_status")
    if not isinstance(status, dict):
        return None
    messages = status.get("messages")
    if not isinstance(messages, list) or not messages:
        return None
    first = messages[0]
    if not isinstance(first, dict):
        return None
    parts = [str(first[key]) for key in ("message", "detail") if first.get(key)]
    return " ".join(parts) or None


def _quantity(value: object, label: str) -> int:
    if not isinstance(value, str):
        raise NetworkError(f"relay returned no {label}")
    try:
        return int(value, 16)
    except ValueError as exc:
        raise NetworkError(f"relay returned an invalid {label}: {value}") from exc


@dataclass
class LedgerClient:
    contract: ContractInterface
    contract_address: str
    json_rpc_url: str
    mirror_node: str
    chain_id: int
    private_key: bytes | None = field(default=None, repr=False)
    gas_limit: int = DEFAULT_GAS_LIMIT
    timeout: float = 30.0
    receipt_timeout: float = 60.0
    receipt_interval: float = 2.0

    def __post_init__(self) -> None:
        import requests
        from requests.adapters import HTTPAdapter

        self._requests = requests
        self._session = requests.Session()
        adapter = HTTPAdapter(max_retries=0)
        self._session.mount("http://", adapter)
        self._session.mount("https://", adapter)
        self._rpc_ids = itertools.count(1)

    def _post_json(self, url: str, payload: dict) -> Any:
        try:
            response = self._session.request("POST", url, json=payload, timeout=self.timeout)
        except self._requests.RequestException as exc:
            raise NetworkError(f"request to {url} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            detail = _mirror_error_detail(body)
            message = f"{url} returned {response.status_code}"
            message = f"{message} {detail}" if detail else f"{message} {response.text}"
            raise NetworkError(message, status_code=response.status_code, body=body)
        if body is None:
            raise NetworkError(f"{url} returned a non-JSON response")
        return body

    def _rpc(self, method: str, params: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._rpc_ids),
            "method": method,
            "params": params,
        }
        body = self._post_json(self.json_rpc_url, payload)
        if not isinstance(body, dict):
            raise NetworkError(f"{method} returned a malformed response")
        error = body.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise NetworkError(f"{method} failed: {message}", body=error)
        return body.get("result")

    def _wait_for_receipt(self, tx_hash: str) -> dict:
        deadline = time.time() + self.receipt_timeout
        while True:
            receipt = self._rpc("eth_getTransactionReceipt", [tx_hash])
            if isinstance(receipt, dict):
                return receipt
            if time.time() >= deadline:
                raise NetworkError(f"timed out waiting for receipt: transaction={tx_hash}")
            time.sleep(max(0.1, self.receipt_interval))

    def _sign(self, data: bytes) -> tuple[str, str]:
        from eth_account import Account
        from eth_utils import to_checksum_address

        sender = operator_evm_address(self.private_key)
        nonce = _quantity(self._rpc("eth_getTransactionCount", [sender, "latest"]), "nonce")
        gas_price = _quantity(self._rpc("eth_gasPrice", []), "gas price")
        transaction = {
            "to": to_checksum_address(self.contract_address),
            "data": data,
            "value": 0,
            "gas": self.gas_limit,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": self.chain_id,
        }
        signed = Account.sign_transaction(transaction, self.private_key)
        return sender, "0x" + bytes(signed.raw_transaction).hex()

    def execute(self, function_name: str, args: Sequence[Any] = ()) -> ExecutionOutcome:
        data = self.contract.encode(function_name, args)
        if self.private_key is None:
            raise ConfigError("operator private key is not configured; run `did-cli config`")

        try:
            _, raw_transaction = self._sign(data)
            tx_hash = self._rpc("eth_sendRawTransaction", [raw_transaction])
            if not isinstance(tx_hash, str) or not tx_hash:
                raise NetworkError("eth_sendRawTransaction returned no transaction hash")
            receipt = self._wait_for_receipt(tx_hash)
        except NetworkError as exc:
            raise ExecutionError(
                f"failed to execute {function_name}: {exc}",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc

        status = receipt.get("status")
        if status != RECEIPT_SUCCESS:
            reason = receipt.get("revertReason")
            detail = f" ({reason})" if reason else ""
            raise ExecutionError(
                f"{function_name} reverted in transaction {tx_hash}: status={status}{detail}",
                body=receipt,
            )
        return ExecutionOutcome(transaction_id=tx_hash, status="SUCCESS")

    def query(self, function_name: str, args: Sequence[Any] = ()) -> QueryOutcome:
        data = self.contract.encode(function_name, args)
        payload: dict[str, Any] = {
            "block": "latest",
            "data": "0x" + data.hex(),
            "estimate": False,
            "to": self.contract_address,
        }
        if self.private_key is not None:
            payload["from"] = operator_evm_address(self.private_key).lower()

        url = f"{self.mirror_node.rstrip('/')}{CONTRACT_CALL_PATH}"
        try:
            body = self._post_json(url, payload)
        except NetworkError as exc:
            raise QueryError(
                f"failed to query {function_name}: {exc}",
                status_code=exc.status_code,
                body=exc.body,
            ) from exc

        result = body.get("result") if isinstance(body, dict) else None
        if not isinstance(result, str):
            raise QueryError(f"failed to query {function_name}: missing result", body=body)
        digits = result[2:] if result[:2].lower() == "0x" else result
        try:
            raw = bytes.fromhex(digits)
        except ValueError as exc:
            raise DecodeError(f"{function_name} result is not valid hex") from exc
        return self.contract.decode(function_name, raw)
