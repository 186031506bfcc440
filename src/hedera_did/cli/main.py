"""Command-line interface for did-cli."""

from __future__ import annotations

import argparse
import json
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from typing import Any, Callable, Sequence

from hedera_did.abi.schema import ContractSchema, load_contract_schema
from hedera_did.cli.config import (
    CLIConfig,
    load_cli_config,
    save_cli_setting,
    validate_account_id,
    validate_contract_id,
)
from hedera_did.cli.reporter import (
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    CommandOutcomeReporter,
    sanitize_error_text,
)
from hedera_did.client import ExecutionOutcome, LedgerClient
from hedera_did.contract import ContractInterface, QueryOutcome
from hedera_did.errors import ConfigError, DIDSDKError
from hedera_did.hashing import digest, load_payload
from hedera_did.identity import resolve
from hedera_did.keys import operator_evm_address, parse_private_key
from hedera_did.networks import normalize_network

ZERO_SCHEMA_ID = "0x" + "00" * 32


def _sdk_version() -> str:
    try:
        return pkg_version("hedera-did-cli")
    except PackageNotFoundError:
        return "0.0.0+local"


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value, 10)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return parsed


def _add_payload_options(parser: argparse.ArgumentParser, noun: str) -> None:
    group = parser.add_mutually_exclusive_group()
    group.add_argument("-d", "--data", default=None, help=f"{noun} data as JSON string")
    group.add_argument(
        "-f", "--file", default=None, help=f"Path to JSON file containing {noun.lower()} data"
    )


def _add_validity_options(parser: argparse.ArgumentParser, *, new: bool = False) -> None:
    prefix = "New d" if new else "D"
    parser.add_argument(
        "-t",
        "--duration",
        type=_non_negative_int,
        default=0,
        help=f"{prefix}uration in blocks (0 for no expiration)",
    )
    parser.add_argument(
        "-s",
        "--schema",
        default=ZERO_SCHEMA_ID,
        help="Schema ID (bytes32 hex) for the credential",
    )


def _add_holder_hash(parser: argparse.ArgumentParser, noun: str) -> None:
    parser.add_argument("holder", help="Address or account ID of the holder")
    parser.add_argument("hash", help=f"Hash of the {noun}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="did-cli", description="DID management on Hedera")
    parser.add_argument(
        "--version",
        action="version",
        version=f"did-cli {_sdk_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.did_cli/config.toml)",
    )
    parser.add_argument(
        "--abi",
        default=None,
        help="Path to contract ABI JSON (default: bundled DidManage ABI)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    version = sub.add_parser("version", help="Show CLI version")
    version.add_argument("--json", action="store_true")

    did = sub.add_parser("did", help="DID management commands")
    did_sub = did.add_subparsers(dest="did_command", required=True)
    did_create = did_sub.add_parser("create", help="Create a new DID")
    did_create.add_argument("public_key", help="Public key for the DID")
    did_update = did_sub.add_parser("update", help="Update an existing DID")
    did_update.add_argument("new_public_key", help="New public key for the DID")
    did_get = did_sub.add_parser("get", help="Get DID information")
    did_get.add_argument(
        "address", nargs="?", default=None, help="DID address (defaults to your account)"
    )

    credential = sub.add_parser("credential", help="Credential management commands")
    cred_sub = credential.add_subparsers(dest="credential_command", required=True)
    cred_issue = cred_sub.add_parser("issue", help="Issue a credential to a holder")
    cred_issue.add_argument("holder", help="Address or account ID of the holder")
    _add_payload_options(cred_issue, "Credential")
    _add_validity_options(cred_issue)
    for name, help_text in (
        ("revoke", "Revoke a credential"),
        ("suspend", "Suspend a credential"),
        ("unsuspend", "Unsuspend a credential"),
        ("get", "Get credential information"),
        ("verify", "Verify a credential"),
    ):
        _add_holder_hash(cred_sub.add_parser(name, help=help_text), "credential")
    cred_update = cred_sub.add_parser("update", help="Update a credential")
    _add_holder_hash(cred_update, "credential")
    _add_validity_options(cred_update, new=True)

    presentation = sub.add_parser("presentation", help="Presentation management commands")
    pres_sub = presentation.add_subparsers(dest="presentation_command", required=True)
    pres_create = pres_sub.add_parser("create", help="Create a presentation")
    _add_payload_options(pres_create, "Presentation")
    pres_get = pres_sub.add_parser("get", help="Get presentation information")
    _add_holder_hash(pres_get, "presentation")
    _add_holder_hash(pres_sub.add_parser("verify", help="Verify a presentation"), "presentation")

    admin = sub.add_parser("admin", help="Admin management commands")
    admin_sub = admin.add_subparsers(dest="admin_command", required=True)
    admin_sub.add_parser("grant-issuer", help="Grant issuer role to an address").add_argument(
        "address", help="Address or account ID to grant issuer role to"
    )
    admin_sub.add_parser("revoke-issuer", help="Revoke issuer role from an address").add_argument(
        "address", help="Address or account ID to revoke issuer role from"
    )
    admin_sub.add_parser("pause", help="Pause the contract (admin only)")
    admin_sub.add_parser("unpause", help="Unpause the contract (admin only)")

    config = sub.add_parser("config", help="Configure CLI settings")
    config.add_argument(
        "-n", "--network", default=None, help="Set network (mainnet/testnet/previewnet)"
    )
    config.add_argument("-a", "--account-id", default=None, help="Set Hedera account ID")
    config.add_argument(
        "-p", "--private-key", default=None, help="Set private key (use with caution)"
    )
    config.add_argument(
        "-c", "--contract", default=None, help="Set contract ID (0.0.x format) or EVM address"
    )
    config.add_argument("-m", "--mirror-node", default=None, help="Set mirror node URL")
    config.add_argument("--json-rpc-url", default=None, help="Set JSON-RPC relay URL")

    for command_parser in (did_sub, cred_sub, pres_sub, admin_sub):
        for child in command_parser.choices.values():
            child.add_argument("--json", action="store_true", help="Print result as JSON")
    config.add_argument("--json", action="store_true", help="Print result as JSON")

    return parser


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(f"{prefix}: {sanitize_error_text(message)}", file=stderr)
    return code


def _build_ledger_client(*, config: CLIConfig, contract: ContractInterface) -> LedgerClient:
    if not config.contract_id:
        raise ConfigError("contract is not configured; run `did-cli config --contract <id>`")
    private_key = parse_private_key(config.private_key) if config.private_key else None
    return LedgerClient(
        contract=contract,
        contract_address=resolve(config.contract_id),
        json_rpc_url=config.json_rpc_url,
        mirror_node=config.mirror_node,
        chain_id=config.chain_id,
        private_key=private_key,
        gas_limit=config.gas_limit,
        receipt_timeout=config.receipt_timeout,
    )


def _operator_label(config: CLIConfig) -> str:
    if config.account_id:
        return config.account_id
    if config.private_key:
        return operator_evm_address(parse_private_key(config.private_key))
    raise ConfigError("operator account is not configured; run `did-cli config --account-id`")


def _outcome_fields(outcome: ExecutionOutcome) -> list[tuple[str, Any]]:
    return [("transaction_id", outcome.transaction_id), ("status", outcome.status)]


def _run_execute(
    *,
    args,
    config: CLIConfig,
    contract: ContractInterface,
    stdout,
    stderr,
    function_name: str,
    build_args: Callable[[], list],
    pending: str,
    success: str,
    failure: str,
    extra_fields: Callable[[list], list[tuple[str, Any]]] | None = None,
) -> int:
    reporter = CommandOutcomeReporter(stdout=stdout, stderr=stderr, as_json=args.json)

    def action() -> tuple[ExecutionOutcome, list]:
        call_args = build_args()
        client = _build_ledger_client(config=config, contract=contract)
        return client.execute(function_name, call_args), call_args

    def render(result: tuple[ExecutionOutcome, list]) -> tuple[str, list[tuple[str, Any]]]:
        outcome, call_args = result
        fields = _outcome_fields(outcome)
        if extra_fields is not None:
            fields.extend(extra_fields(call_args))
        return success, fields

    return reporter.run(pending=pending, failure=failure, action=action, render=render)


def _run_query(
    *,
    args,
    config: CLIConfig,
    contract: ContractInterface,
    stdout,
    stderr,
    function_name: str,
    build_args: Callable[[], list],
    pending: str,
    failure: str,
    render: Callable[[QueryOutcome], tuple[str, list[tuple[str, Any]]]],
) -> int:
    reporter = CommandOutcomeReporter(stdout=stdout, stderr=stderr, as_json=args.json)

    def action() -> QueryOutcome:
        call_args = build_args()
        client = _build_ledger_client(config=config, contract=contract)
        return client.query(function_name, call_args)

    return reporter.run(pending=pending, failure=failure, action=action, render=render)


def _run_did(
    *, args, config: CLIConfig, contract: ContractInterface, stdout, stderr
) -> int:
    common = dict(args=args, config=config, contract=contract, stdout=stdout, stderr=stderr)

    if args.did_command == "create":
        return _run_execute(
            **common,
            function_name="createDID",
            build_args=lambda: [args.public_key],
            pending="Creating DID...",
            success="DID created successfully!",
            failure="Failed to create DID",
            extra_fields=lambda _: [("did_holder", _operator_label(config))],
        )

    if args.did_command == "update":
        return _run_execute(
            **common,
            function_name="updateDID",
            build_args=lambda: [args.new_public_key],
            pending="Updating DID...",
            success="DID updated successfully!",
            failure="Failed to update DID",
        )

    address = args.address

    def build_get_args() -> list:
        nonlocal address
        if not address:
            if not config.account_id:
                raise ConfigError(
                    "no address given and no operator account configured; "
                    "run `did-cli config --account-id`"
                )
            address = config.account_id
        return [resolve(address)]

    def render_get(outcome: QueryOutcome) -> tuple[str, list[tuple[str, Any]]]:
        exists = bool(outcome["exists"])
        fields: list[tuple[str, Any]] = [("address", address), ("exists", exists)]
        if exists:
            fields.append(("public_key", outcome["publicKey"]))
            return f"DID exists for address: {address}", fields
        return f"No DID found for address: {address}", fields

    return _run_query(
        **common,
        function_name="dids",
        build_args=build_get_args,
        pending="Fetching DID information...",
        failure="Failed to get DID information",
        render=render_get,
    )


def _validity_render(noun: str) -> Callable[[QueryOutcome], tuple[str, list[tuple[str, Any]]]]:
    def render(outcome: QueryOutcome) -> tuple[str, list[tuple[str, Any]]]:
        valid = bool(outcome[0])
        headline = f"✓ {noun} is valid" if valid else f"✗ {noun} is not valid"
        return headline, [("valid", valid)]

    return render


def _run_credential(
    *, args, config: CLIConfig, contract: ContractInterface, stdout, stderr
) -> int:
    common = dict(args=args, config=config, contract=contract, stdout=stdout, stderr=stderr)
    command = args.credential_command

    if command == "issue":
        return _run_execute(
            **common,
            function_name="issueCredential",
            build_args=lambda: [
                resolve(args.holder),
                digest(load_payload(data=args.data, file=args.file)),
                args.duration,
                args.schema,
            ],
            pending="Issuing credential...",
            success="Credential issued successfully!",
            failure="Failed to issue credential",
            extra_fields=lambda call_args: [("credential_hash", call_args[1])],
        )

    if command == "update":
        return _run_execute(
            **common,
            function_name="updateCredential",
            build_args=lambda: [resolve(args.holder), args.hash, args.duration, args.schema],
            pending="Updating credential...",
            success="Credential updated successfully!",
            failure="Failed to update credential",
        )

    state_changes = {
        "revoke": ("revokeCredential", "Revoking", "revoked", "revoke"),
        "suspend": ("suspendCredential", "Suspending", "suspended", "suspend"),
        "unsuspend": ("unsuspendCredential", "Unsuspending", "unsuspended", "unsuspend"),
    }
    if command in state_changes:
        function_name, progress, done, verb = state_changes[command]
        return _run_execute(
            **common,
            function_name=function_name,
            build_args=lambda: [resolve(args.holder), args.hash],
            pending=f"{progress} credential...",
            success=f"Credential {done} successfully!",
            failure=f"Failed to {verb} credential",
        )

    if command == "get":
        return _run_query(
            **common,
            function_name="getCredential",
            build_args=lambda: [resolve(args.holder), args.hash],
            pending="Getting credential information...",
            failure="Failed to get credential information",
            render=lambda outcome: ("Credential information:", list(outcome.as_dict().items())),
        )

    return _run_query(
        **common,
        function_name="verifyCredential",
        build_args=lambda: [resolve(args.holder), args.hash],
        pending="Verifying credential...",
        failure="Failed to verify credential",
        render=_validity_render("Credential"),
    )


def _run_presentation(
    *, args, config: CLIConfig, contract: ContractInterface, stdout, stderr
) -> int:
    common = dict(args=args, config=config, contract=contract, stdout=stdout, stderr=stderr)
    command = args.presentation_command

    if command == "create":
        return _run_execute(
            **common,
            function_name="createPresentation",
            build_args=lambda: [digest(load_payload(data=args.data, file=args.file))],
            pending="Creating presentation...",
            success="Presentation created successfully!",
            failure="Failed to create presentation",
            extra_fields=lambda call_args: [("presentation_hash", call_args[0])],
        )

    if command == "get":
        return _run_query(
            **common,
            function_name="getPresentation",
            build_args=lambda: [resolve(args.holder), args.hash],
            pending="Getting presentation information...",
            failure="Failed to get presentation",
            render=lambda outcome: ("Presentation information:", [("valid", bool(outcome[0]))]),
        )

    return _run_query(
        **common,
        function_name="verifyPresentation",
        build_args=lambda: [resolve(args.holder), args.hash],
        pending="Verifying presentation...",
        failure="Failed to verify presentation",
        render=_validity_render("Presentation"),
    )


def _run_admin(
    *, args, config: CLIConfig, contract: ContractInterface, stdout, stderr
) -> int:
    common = dict(args=args, config=config, contract=contract, stdout=stdout, stderr=stderr)
    command = args.admin_command

    if command in ("grant-issuer", "revoke-issuer"):
        granting = command == "grant-issuer"
        return _run_execute(
            **common,
            function_name="grantIssuerRole" if granting else "revokeIssuerRole",
            build_args=lambda: [resolve(args.address)],
            pending="Granting issuer role..." if granting else "Revoking issuer role...",
            success=(
                "Issuer role granted successfully!"
                if granting
                else "Issuer role revoked successfully!"
            ),
            failure="Failed to grant issuer role" if granting else "Failed to revoke issuer role",
        )

    pausing = command == "pause"
    return _run_execute(
        **common,
        function_name="pause" if pausing else "unpause",
        build_args=lambda: [],
        pending="Pausing contract..." if pausing else "Unpausing contract...",
        success="Contract paused successfully!" if pausing else "Contract unpaused successfully!",
        failure="Failed to pause contract" if pausing else "Failed to unpause contract",
    )


def _run_config(*, args, stdout, stderr) -> int:
    # Updates work on the raw [cli] table so a bad stored value can be repaired.
    changes: list[tuple[str, Any, str]] = []
    try:
        if args.network:
            network = normalize_network(args.network)
            changes.append(("network", network, f"Network set to: {network}"))
        if args.account_id:
            account_id = validate_account_id(args.account_id)
            changes.append(("account_id", account_id, f"Hedera account ID set to: {account_id}"))
        if args.private_key:
            parse_private_key(args.private_key)
            changes.append(("private_key", args.private_key.strip(), "Private key has been set."))
        if args.contract:
            contract_id = validate_contract_id(args.contract)
            changes.append(("contract_id", contract_id, f"Contract ID set to: {contract_id}"))
        if args.mirror_node:
            mirror_node = args.mirror_node.strip()
            changes.append(("mirror_node", mirror_node, f"Mirror node URL set to: {mirror_node}"))
        if args.json_rpc_url:
            json_rpc_url = args.json_rpc_url.strip()
            changes.append(
                ("json_rpc_url", json_rpc_url, f"JSON-RPC relay URL set to: {json_rpc_url}")
            )
    except (ConfigError, ValueError) as exc:
        return _print_error(stderr, "Error configuring CLI", str(exc), code=EXIT_VALIDATION_ERROR)

    if changes:
        try:
            for key, value, _ in changes:
                config_path = save_cli_setting(args.config, key, value)
        except ConfigError as exc:
            return _print_error(
                stderr, "Error configuring CLI", str(exc), code=EXIT_VALIDATION_ERROR
            )
        if args.json:
            payload = {
                "config_file": str(config_path),
                "updated": [key for key, _, _ in changes],
            }
            print(json.dumps(payload, sort_keys=True), file=stdout)
            return EXIT_SUCCESS
        for _, _, message in changes:
            print(message, file=stdout)
        return EXIT_SUCCESS

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    contract_address = None
    if config.contract_id:
        contract_address = resolve(config.contract_id)
    payload = {
        "network": config.network,
        "mirror_node": config.mirror_node,
        "json_rpc_url": config.json_rpc_url,
        "account_id": config.account_id,
        "private_key_configured": bool(config.private_key),
        "contract_id": config.contract_id,
        "contract_address": contract_address,
    }
    if args.json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
        return EXIT_SUCCESS

    print("Current configuration:", file=stdout)
    print(f"network: {payload['network']}", file=stdout)
    print(f"mirror_node: {payload['mirror_node']}", file=stdout)
    print(f"json_rpc_url: {payload['json_rpc_url']}", file=stdout)
    print(f"account_id: {payload['account_id'] or 'Not set'}", file=stdout)
    print(
        f"private_key_configured: {'Yes' if payload['private_key_configured'] else 'No'}",
        file=stdout,
    )
    if contract_address:
        print(f"contract_id: {payload['contract_id']}", file=stdout)
        print(f"contract_address: {contract_address}", file=stdout)
    return EXIT_SUCCESS


def _run_version(*, as_json: bool, stdout) -> int:
    payload = {"cli": "did-cli", "version": _sdk_version()}
    if as_json:
        print(json.dumps(payload, sort_keys=True), file=stdout)
    else:
        print(f"did-cli {payload['version']}", file=stdout)
    return EXIT_SUCCESS


_LEDGER_COMMANDS = {
    "did": _run_did,
    "credential": _run_credential,
    "presentation": _run_presentation,
    "admin": _run_admin,
}


def main(
    argv: Sequence[str] | None = None,
    *,
    stdout=sys.stdout,
    stderr=sys.stderr,
    schema: ContractSchema | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "version":
        return _run_version(as_json=args.json, stdout=stdout)
    if args.command == "config":
        return _run_config(args=args, stdout=stdout, stderr=stderr)

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    if schema is None:
        try:
            schema = load_contract_schema(args.abi or config.abi_path)
        except DIDSDKError as exc:
            return _print_error(stderr, "schema error", str(exc), code=EXIT_VALIDATION_ERROR)
    contract = ContractInterface(schema)

    handler = _LEDGER_COMMANDS[args.command]
    return handler(args=args, config=config, contract=contract, stdout=stdout, stderr=stderr)


if __name__ == "__main__":
    raise SystemExit(main())
