from __future__ import annotations

import os
import stat

import pytest

from hedera_did.cli.config import load_cli_config, save_cli_setting
from hedera_did.errors import ConfigError

_ENV_VARS = (
    "DID_CLI_NETWORK",
    "DID_CLI_ACCOUNT_ID",
    "DID_CLI_PRIVATE_KEY",
    "DID_CLI_CONTRACT",
    "DID_CLI_MIRROR_NODE",
    "DID_CLI_JSON_RPC_URL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_config_missing(tmp_path) -> None:
    config = load_cli_config(tmp_path / "missing.toml")
    assert config.network == "testnet"
    assert config.chain_id == 296
    assert config.mirror_node == "https://testnet.mirrornode.hedera.com"
    assert config.json_rpc_url == "https://testnet.hashio.io/api"
    assert config.account_id is None
    assert config.contract_id is None


def test_network_selects_default_endpoints(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('[cli]\nnetwork = "mainnet"\n', encoding="utf-8")
    config = load_cli_config(config_path)
    assert config.chain_id == 295
    assert config.mirror_node == "https://mainnet-public.mirrornode.hedera.com"


def test_explicit_mirror_node_wins_over_network_default(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        'network = "previewnet"\nmirror_node = "http://localhost:5551"\n', encoding="utf-8"
    )
    config = load_cli_config(config_path)
    assert config.network == "previewnet"
    assert config.mirror_node == "http://localhost:5551"
    assert config.json_rpc_url == "https://previewnet.hashio.io/api"


def test_env_overrides_config_file(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text('account_id = "0.0.1001"\n', encoding="utf-8")
    monkeypatch.setenv("DID_CLI_ACCOUNT_ID", "0.0.2002")
    monkeypatch.setenv("DID_CLI_CONTRACT", "0.0.5005")
    config = load_cli_config(config_path)
    assert config.account_id == "0.0.2002"
    assert config.contract_id == "0.0.5005"


@pytest.mark.parametrize(
    "content",
    [
        'network = "devnet"\n',
        'account_id = "0x00000000000000000000000000000000000004d2"\n',
        'account_id = "0.0"\n',
        'contract_id = "nope"\n',
        "gas_limit = 0\n",
        'receipt_timeout = "soon"\n',
        "cli = 3\n",
        "not toml",
    ],
)
def test_invalid_config_raises(tmp_path, content: str) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_cli_config(config_path)


def test_save_cli_setting_round_trips(tmp_path) -> None:
    config_path = tmp_path / "nested" / "config.toml"
    save_cli_setting(config_path, "network", "mainnet")
    save_cli_setting(config_path, "contract_id", "0.0.5005")
    save_cli_setting(config_path, "gas_limit", 250000)

    config = load_cli_config(config_path)
    assert config.network == "mainnet"
    assert config.contract_id == "0.0.5005"
    assert config.gas_limit == 250000

    save_cli_setting(config_path, "contract_id", None)
    assert load_cli_config(config_path).contract_id is None


def test_save_cli_setting_last_writer_wins(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    save_cli_setting(config_path, "account_id", "0.0.1")
    save_cli_setting(config_path, "account_id", "0.0.2")
    assert load_cli_config(config_path).account_id == "0.0.2"


def test_save_cli_setting_rejects_unknown_key(tmp_path) -> None:
    with pytest.raises(ConfigError):
        save_cli_setting(tmp_path / "config.toml", "colour", "blue")


def test_config_file_permissions_owner_only_on_posix(tmp_path) -> None:
    path = save_cli_setting(tmp_path / "config.toml", "private_key", "ab" * 32)

    if os.name != "posix":
        return

    mode = stat.S_IMODE(path.stat().st_mode)
    assert mode == 0o600


def test_save_cli_setting_keeps_other_tables(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        'owner = "ops"\n'
        "\n"
        "[cli]\n"
        'network = "testnet"\n'
        "\n"
        "[profiles.dev]\n"
        'region = "eu"\n'
        "ports = [1, 2]\n",
        encoding="utf-8",
    )

    save_cli_setting(config_path, "contract_id", "0.0.5005")

    text = config_path.read_text(encoding="utf-8")
    assert text.startswith('owner = "ops"\n')
    assert "[profiles.dev]" in text
    assert 'region = "eu"' in text
    assert "ports = [1, 2]" in text
    config = load_cli_config(config_path)
    assert config.network == "testnet"
    assert config.contract_id == "0.0.5005"


def test_save_cli_setting_moves_flat_layout_into_cli_table(tmp_path) -> None:
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        'network = "mainnet"\n\n[extras]\nnote = "kept"\n', encoding="utf-8"
    )

    save_cli_setting(config_path, "account_id", "0.0.7")

    text = config_path.read_text(encoding="utf-8")
    assert '[extras]\nnote = "kept"' in text
    assert '[cli]\nnetwork = "mainnet"\naccount_id = "0.0.7"' in text
    config = load_cli_config(config_path)
    assert config.network == "mainnet"
    assert config.account_id == "0.0.7"
