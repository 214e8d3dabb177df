"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from adapters.casper_rpc import CasperRPC
from adapters.contract_info import load_contract_info
from adapters.key_file import load_private_key_bytes
from cli.ui_components import print_banner
from core.config import AppSettings, write_user_env_vars
from core.domain.errors import Cep78Error
from core.domain.models import ContractRef

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _settings_from(ctx: typer.Context) -> tuple[AppSettings, str | None]:
    settings = getattr(ctx.obj, "settings", None) or AppSettings()
    contract_hash = getattr(ctx.obj, "contract_hash", None) or settings.contract_hash
    return settings, contract_hash


async def _check_node(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with CasperRPC(settings.node_address, settings=settings) as rpc:
            status = await rpc.get_status()
    except Cep78Error as exc:
        return False, str(exc)

    chain = status.get("chainspec_name")
    version = status.get("api_version") or "?"
    if chain and chain != settings.chain_name:
        return False, f"node reports chain {chain!r}, CHAIN_NAME is {settings.chain_name!r}"
    return True, f"api {version} • chain {chain or '?'}"


async def _check_contract(settings: AppSettings, contract_hash: str | None) -> tuple[bool | None, str]:
    if not contract_hash:
        return None, "CONTRACT_HASH not set (pass --contract to commands)"
    try:
        contract = ContractRef.parse(contract_hash)
        async with CasperRPC(settings.node_address, settings=settings) as rpc:
            stored = await rpc.get_item(contract.key)
    except Cep78Error as exc:
        return False, str(exc)
    if "Contract" not in stored:
        return False, f"{contract.key} is not a contract"
    named_keys = stored["Contract"].get("named_keys") or []
    return True, f"{len(named_keys)} named keys"


def _check_key(settings: AppSettings) -> tuple[bool | None, str]:
    if not settings.keys_path.exists():
        return None, f"{settings.keys_path} not found (only needed to send deploys)"
    try:
        load_private_key_bytes(settings.keys_path)
    except Cep78Error as exc:
        return False, str(exc)

    from adapters.deploy_signer import PycsprDeploySigner  # noqa: PLC0415

    signer = PycsprDeploySigner.from_settings(settings)
    return True, f"public key {signer.public_key_hex}"


def _check_contract_info(settings: AppSettings) -> tuple[bool | None, str]:
    if not settings.contract_info_path.exists():
        return None, f"{settings.contract_info_path} not found"
    try:
        info = load_contract_info(settings.contract_info_path)
    except Cep78Error as exc:
        return False, str(exc)
    return True, f"{len(info.named_keys)} named keys"


def _status(ok: bool | None) -> str:
    if ok is None:
        return "[yellow]OPTIONAL[/yellow]"
    return "[green]OK[/green]" if ok else "[red]FAIL[/red]"


@app.command()
def run(ctx: typer.Context) -> None:
    """Check node, contract and local files against the current configuration."""

    settings, contract_hash = _settings_from(ctx)
    print_banner(_console, node_address=settings.node_address, chain_name=settings.chain_name)

    table = Table(title="CEP-78 Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    async def checks() -> list[tuple[str, bool | None, str]]:
        node_ok, node_detail = await _check_node(settings)
        rows: list[tuple[str, bool | None, str]] = [("Node", node_ok, node_detail)]
        if node_ok:
            rows.append(("Contract", *await _check_contract(settings, contract_hash)))
        return rows

    rows = asyncio.run(checks())
    rows.append(("Key file", *_check_key(settings)))
    rows.append(("Contract info", *_check_contract_info(settings)))

    for name, ok, detail in rows:
        table.add_row(name, _status(ok), detail)
    _console.print(table)

    if any(ok is False for _, ok, _ in rows):
        raise typer.Exit(code=1)


@app.command()
def setup() -> None:
    """Interactive setup (stores node/chain/contract in the user config .env)."""

    current = AppSettings()
    values: dict[str, Any] = {
        "NODE_ADDRESS": typer.prompt("Node RPC address", default=current.node_address).strip(),
        "CHAIN_NAME": typer.prompt("Chain name", default=current.chain_name).strip(),
        "CONTRACT_HASH": typer.prompt("Contract hash", default=current.contract_hash or "").strip() or None,
        "KEYS_PATH": typer.prompt("Key file", default=str(current.keys_path)).strip(),
    }
    if values["CONTRACT_HASH"]:
        try:
            values["CONTRACT_HASH"] = ContractRef.parse(values["CONTRACT_HASH"]).hash_hex
        except Cep78Error as exc:
            raise typer.BadParameter(str(exc)) from exc

    env_path = write_user_env_vars(values)
    _console.print(f"[green]Saved config to:[/green] {env_path}")
