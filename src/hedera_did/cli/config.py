"""Configuration helpers for the did-cli command line."""

from __future__ import annotations

import datetime
import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hedera_did.errors import ConfigError, InvalidIdentifierError
from hedera_did.identity import LedgerNativeTriple, parse_identifier
from hedera_did.networks import DEFAULT_NETWORK, NETWORKS, normalize_network

DEFAULT_CONFIG_PATH = Path.home() / ".did_cli" / "config.toml"
DEFAULT_GAS_LIMIT = 400_000
DEFAULT_RECEIPT_TIMEOUT = 60.0

ENV_OVERRIDES = {
    "network": "DID_CLI_NETWORK",
    "account_id": "DID_CLI_ACCOUNT_ID",
    "private_key": "DID_CLI_PRIVATE_KEY",
    "contract_id": "DID_CLI_CONTRACT",
    "mirror_node": "DID_CLI_MIRROR_NODE",
    "json_rpc_url": "DID_CLI_JSON_RPC_URL",
}

SETTING_KEYS = (
    "network",
    "account_id",
    "private_key",
    "contract_id",
    "mirror_node",
    "json_rpc_url",
    "gas_limit",
    "receipt_timeout",
    "abi_path",
)


@dataclass(frozen=True)
class CLIConfig:
    network: str = DEFAULT_NETWORK
    account_id: str | None = None
    private_key: str | None = None
    contract_id: str | None = None
    mirror_node: str = NETWORKS[DEFAULT_NETWORK].mirror_node
    json_rpc_url: str = NETWORKS[DEFAULT_NETWORK].json_rpc_url
    gas_limit: int = DEFAULT_GAS_LIMIT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    abi_path: str | None = None

    @property
    def chain_id(self) -> int:
        return NETWORKS[self.network].chain_id


def _load_toml(path: Path) -> dict[str, Any]:
    raw = path.read_text(encoding="utf-8")

    try:  # Python 3.11+
        import tomllib  # type: ignore[attr-defined]
        try:
            return tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
    except ModuleNotFoundError:
        try:
            import tomli
        except ModuleNotFoundError as exc:
            raise ConfigError("toml parser unavailable; install tomli for Python < 3.11") from exc
        try:
            return tomli.loads(raw)
        except tomli.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc


def _config_path(path: str | Path | None) -> Path:
    return Path(path) if path else DEFAULT_CONFIG_PATH


def _read_document(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    return _load_toml(config_path)


def _section_of(document: dict[str, Any]) -> dict[str, Any]:
    section = document.get("cli")
    if isinstance(section, dict):
        return dict(section)
    if section is None:
        return dict(document)
    raise ConfigError("[cli] must be a table")


def _read_section(config_path: Path) -> dict[str, Any]:
    return _section_of(_read_document(config_path))


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


def _positive_number(value: Any, field_name: str, kind: type) -> Any:
    if isinstance(value, bool):
        raise ConfigError(f"{field_name} must be a positive number")
    try:
        number = kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{field_name} must be a positive number") from exc
    if number <= 0:
        raise ConfigError(f"{field_name} must be a positive number")
    return number


def validate_account_id(value: str) -> str:
    try:
        parsed = parse_identifier(value)
    except InvalidIdentifierError as exc:
        raise ConfigError(f"account_id: {exc}") from exc
    if not isinstance(parsed, LedgerNativeTriple):
        raise ConfigError("account_id must be in <shard>.<realm>.<num> format")
    return str(parsed)


def validate_contract_id(value: str) -> str:
    try:
        parse_identifier(value)
    except InvalidIdentifierError as exc:
        raise ConfigError(f"contract: {exc}") from exc
    return value.strip()


def load_cli_config(path: str | Path | None = None) -> CLIConfig:
    source = _read_section(_config_path(path))
    for key, env_var in ENV_OVERRIDES.items():
        env_value = os.getenv(env_var)
        if env_value and env_value.strip():
            source[key] = env_value.strip()

    try:
        network = normalize_network(str(source.get("network", DEFAULT_NETWORK)))
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    preset = NETWORKS[network]

    account_id = _optional_str(source.get("account_id"))
    if account_id is not None:
        account_id = validate_account_id(account_id)

    contract_id = _optional_str(source.get("contract_id"))
    if contract_id is not None:
        contract_id = validate_contract_id(contract_id)

    mirror_node = _optional_str(source.get("mirror_node")) or preset.mirror_node
    json_rpc_url = _optional_str(source.get("json_rpc_url")) or preset.json_rpc_url

    return CLIConfig(
        network=network,
        account_id=account_id,
        private_key=_optional_str(source.get("private_key")),
        contract_id=contract_id,
        mirror_node=mirror_node,
        json_rpc_url=json_rpc_url,
        gas_limit=_positive_number(source.get("gas_limit", DEFAULT_GAS_LIMIT), "gas_limit", int),
        receipt_timeout=_positive_number(
            source.get("receipt_timeout", DEFAULT_RECEIPT_TIMEOUT), "receipt_timeout", float
        ),
        abi_path=_optional_str(source.get("abi_path")),
    )


def _chmod_owner_only(path: Path) -> None:
    if os.name != "posix":
        return
    path.chmod(0o600)


_BARE_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _toml_key(name: str) -> str:
    return name if _BARE_KEY_RE.match(name) else json.dumps(name, ensure_ascii=False)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(item) for item in value) + "]"
    if isinstance(value, dict):
        pairs = ", ".join(f"{_toml_key(k)} = {_toml_value(v)}" for k, v in value.items())
        return "{ " + pairs + " }" if pairs else "{}"
    # JSON string escapes are valid TOML basic strings.
    return json.dumps(str(value), ensure_ascii=False)


def _toml_lines(table: dict[str, Any], prefix: str = "") -> list[str]:
    lines = []
    tables = []
    for name, value in table.items():
        if isinstance(value, dict):
            tables.append((name, value))
        else:
            lines.append(f"{_toml_key(name)} = {_toml_value(value)}")
    for name, value in tables:
        header = f"{prefix}.{_toml_key(name)}" if prefix else _toml_key(name)
        if lines:
            lines.append("")
        lines.append(f"[{header}]")
        lines.extend(_toml_lines(value, header))
    return lines


def save_cli_setting(path: str | Path | None, key: str, value: Any) -> Path:
    """Set (or remove, when ``value`` is None) one key in the ``[cli]`` table.

    Other tables in the file are written back unchanged. A file using the
    flat layout (settings at the top level) is rewritten with a ``[cli]``
    table.
    """
    if key not in SETTING_KEYS:
        raise ConfigError(f"unknown config key: {key}")

    config_path = _config_path(path)
    document = _read_document(config_path)
    section = _section_of(document)
    if value is None:
        section.pop(key, None)
    else:
        section[key] = value

    if isinstance(document.get("cli"), dict):
        document["cli"] = section
    else:
        document = {name: item for name, item in section.items() if isinstance(item, dict)}
        document["cli"] = {
            name: item for name, item in section.items() if not isinstance(item, dict)
        }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        config_path.write_text("\n".join(_toml_lines(document)) + "\n", encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to write config file: {config_path}") from exc
    _chmod_owner_only(config_path)
    return config_path
