"""CLI principal (Typer).

Un comando por acción de los scripts (`scripts/`). Cada comando:
config -> `CEP78Client` -> una o dos llamadas -> imprimir.
Un único borde de error: cualquier `Cep78Error` se imprime y sale con código 1.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, TypeVar

import typer
from rich.console import Console

from adapters.json_exporter import export_result_json, to_jsonable
from cli import doctor
from cli.ui_components import (
    build_deploy_panel,
    build_key_value_table,
    build_metadata_panel,
    build_tokens_table,
)
from core.config import AppSettings
from core.domain.errors import Cep78Error, ConfigurationError
from core.domain.hashing import hash_token_uri, token_hash_for_metadata
from core.interfaces.signer import DeploySigner
from core.log import err_console, setup_logging
from core.services.cep78_client import CEP78Client

T = TypeVar("T")

app = typer.Typer(
    name="cep78",
    no_args_is_help=True,
    add_completion=False,
    help="Query and operate a deployed CEP-78 NFT contract on a Casper node.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
log = logging.getLogger("cep78.cli")


@dataclass
class CliState:
    """Opciones globales resueltas una vez en el callback."""

    settings: AppSettings
    contract_hash: str | None = None
    as_json: bool = False


def build_signer(settings: AppSettings) -> DeploySigner:
    from adapters.deploy_signer import PycsprDeploySigner  # noqa: PLC0415

    return PycsprDeploySigner.from_settings(settings)


async def open_client(state: CliState, *, with_signer: bool = False) -> CEP78Client:
    if not state.contract_hash:
        raise ConfigurationError("No contract hash: pass --contract or set CONTRACT_HASH")
    signer = build_signer(state.settings) if with_signer else None
    return await CEP78Client.create_instance(state.contract_hash, settings=state.settings, signer=signer)


def run_action(action: Coroutine[Any, Any, T]) -> T:
    try:
        return asyncio.run(action)
    except Cep78Error as exc:
        log.debug("command failed", exc_info=True)
        err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc


def _state(ctx: typer.Context) -> CliState:
    state = ctx.obj
    if not isinstance(state, CliState):
        state = CliState(settings=AppSettings())
        ctx.obj = state
    return state


def _emit(state: CliState, payload: dict[str, Any], renderable: Any = None) -> None:
    if state.as_json or renderable is None:
        _console.print_json(data=to_jsonable(payload))
    else:
        _console.print(renderable)


def _load_metadata(metadata: Optional[str], metadata_file: Optional[Path]) -> dict[str, Any] | str:
    if metadata_file is not None:
        metadata = metadata_file.read_text(encoding="utf-8")
    if not metadata:
        raise typer.BadParameter("pass --metadata or --metadata-file")
    try:
        decoded = json.loads(metadata)
    except json.JSONDecodeError:
        return metadata
    return decoded if isinstance(decoded, dict) else metadata


async def _finish_deploy(client: CEP78Client, deploy_hash: str, wait: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {"deploy_hash": deploy_hash}
    if wait:
        result = await client.wait_for_deploy(
            deploy_hash,
            on_poll=lambda attempt, total: log.debug("checking deploy %s (%d/%d)", deploy_hash, attempt, total),
        )
        payload["result"] = result
    return payload


def _print_deploy(state: CliState, payload: dict[str, Any]) -> None:
    if state.as_json:
        _emit(state, payload)
        return
    _console.print(f"... deploy hash: [bold]{payload['deploy_hash']}[/bold]")
    result = payload.get("result")
    if result is not None:
        _console.print(build_deploy_panel(result))


@app.callback()
def main(
    ctx: typer.Context,
    contract: Optional[str] = typer.Option(None, "--contract", "-c", help="Contract hash (defaults to CONTRACT_HASH)."),
    node: Optional[str] = typer.Option(None, "--node", help="Node RPC URL (defaults to NODE_ADDRESS)."),
    chain: Optional[str] = typer.Option(None, "--chain", help="Chain name (defaults to CHAIN_NAME)."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of tables."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging."),
) -> None:
    settings = AppSettings()
    overrides: dict[str, Any] = {}
    if node:
        overrides["node_address"] = node
    if chain:
        overrides["chain_name"] = chain
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(settings.log_level, verbose=verbose)
    ctx.obj = CliState(
        settings=settings,
        contract_hash=contract or settings.contract_hash,
        as_json=as_json,
    )


# ----------------------------------------------------------------------
# Lecturas
# ----------------------------------------------------------------------


@app.command()
def info(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Owner public key or account hash."),
    token: str = typer.Option("0", "--token", "-t", help="Token id (or hash) whose metadata to show."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write the result to this JSON file."),
) -> None:
    """Owned tokens, balance and one token's metadata (getInfoCep78)."""

    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state)
        async with client:
            tokens = await client.get_owned_tokens(owner)
            metadata = await client.get_token_metadata(token)
            balance = await client.balance_of(owner)
        return {"owner": owner, "owned_tokens": tokens, "balance": balance, "token": token, "metadata": metadata}

    payload = run_action(action())
    if output is not None:
        export_result_json(payload=payload, output_path=output)

    if state.as_json:
        _emit(state, payload)
        return
    _console.print(build_tokens_table(owner, payload["owned_tokens"], payload["balance"]))
    _console.print(build_metadata_panel(token, payload["metadata"]))


@app.command()
def summary(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Also write the result to this JSON file."),
) -> None:
    """Collection name, identifier mode, metadata kind and supply."""

    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state)
        async with client:
            return await client.contract_summary()

    payload = run_action(action())
    if output is not None:
        export_result_json(payload=payload, output_path=output)
    _emit(state, payload, build_key_value_table("Contract", payload))


@app.command("owned-tokens")
def owned_tokens(ctx: typer.Context, owner: str = typer.Argument(..., help="Public key or account hash.")) -> None:
    state = _state(ctx)

    async def action() -> list[int]:
        client = await open_client(state)
        async with client:
            return await client.get_owned_tokens(owner)

    tokens = run_action(action())
    _emit(state, {"owner": owner, "owned_tokens": tokens}, build_tokens_table(owner, tokens))


@app.command()
def balance(ctx: typer.Context, owner: str = typer.Argument(..., help="Public key or account hash.")) -> None:
    state = _state(ctx)

    async def action() -> int:
        client = await open_client(state)
        async with client:
            return await client.balance_of(owner)

    value = run_action(action())
    _emit(state, {"owner": owner, "balance": value}, f"balance: [bold]{value}[/bold]")


@app.command()
def metadata(ctx: typer.Context, token: str = typer.Argument(..., help="Token id or token hash.")) -> None:
    state = _state(ctx)

    async def action() -> dict[str, Any] | str | None:
        client = await open_client(state)
        async with client:
            return await client.get_token_metadata(token)

    value = run_action(action())
    _emit(state, {"token": token, "metadata": value}, build_metadata_panel(token, value))


@app.command("owner-of")
def owner_of(ctx: typer.Context, token: str = typer.Argument(..., help="Token id or token hash.")) -> None:
    state = _state(ctx)

    async def action() -> str | None:
        client = await open_client(state)
        async with client:
            owner = await client.get_owner_of(token)
        return None if owner is None else owner.formatted

    value = run_action(action())
    _emit(state, {"token": token, "owner": value}, f"owner of {token}: [bold]{value or '-'}[/bold]")


@app.command()
def burnt(ctx: typer.Context, token: str = typer.Argument(..., help="Token id or token hash.")) -> None:
    state = _state(ctx)

    async def action() -> bool:
        client = await open_client(state)
        async with client:
            return await client.burnt_tokens(token)

    value = run_action(action())
    _emit(state, {"token": token, "burnt": value}, f"burnt: [bold]{value}[/bold]")


@app.command()
def operator(ctx: typer.Context, token: str = typer.Argument(..., help="Token id or token hash.")) -> None:
    state = _state(ctx)

    async def action() -> str | None:
        client = await open_client(state)
        async with client:
            key = await client.get_operator(token)
        return None if key is None else key.formatted

    value = run_action(action())
    _emit(state, {"token": token, "operator": value}, f"operator: [bold]{value or '-'}[/bold]")


@app.command("identifier-mode")
def identifier_mode(ctx: typer.Context) -> None:
    state = _state(ctx)

    async def action() -> str:
        client = await open_client(state)
        async with client:
            mode = await client.identifier_mode()
        return mode.name

    value = run_action(action())
    _emit(state, {"identifier_mode": value}, f"identifier_mode: [bold]{value}[/bold]")


@app.command("check-registered")
def check_registered(ctx: typer.Context, owner: str = typer.Argument(..., help="Public key or account hash.")) -> None:
    """Whether `register_owner` was already done for OWNER (boxCheckRe)."""

    state = _state(ctx)

    async def action() -> bool:
        client = await open_client(state)
        async with client:
            return await client.check_register_owner(owner)

    value = run_action(action())
    _emit(state, {"owner": owner, "registered": value}, f"registered: [bold]{value}[/bold]")


@app.command("check-operator")
def check_operator(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Owner public key or account hash."),
    operator_key: str = typer.Argument(..., metavar="OPERATOR", help="Operator account or contract hash."),
) -> None:
    state = _state(ctx)

    async def action() -> bool:
        client = await open_client(state)
        async with client:
            return await client.check_operator_dictionary_key(owner, operator_key)

    value = run_action(action())
    _emit(state, {"owner": owner, "operator": operator_key, "approved": value}, f"approved: [bold]{value}[/bold]")


# ----------------------------------------------------------------------
# Escrituras
# ----------------------------------------------------------------------

_WAIT = typer.Option(True, "--wait/--no-wait", help="Poll the node until the deploy is executed.")
_PAYMENT = typer.Option(None, "--payment", min=1, help="Payment amount in motes.")


@app.command("register-owner")
def register_owner(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Public key or account hash to register."),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.register_owner(owner, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command("set-minter")
def set_minter(
    ctx: typer.Context,
    minter: str = typer.Argument(..., help="Contract package hash allowed to mint."),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    """Authorize MINTER (boxSetMinter)."""

    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.set_minter(minter, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command()
def mint(
    ctx: typer.Context,
    owner: str = typer.Argument(..., help="Token owner public key or account hash."),
    metadata_json: Optional[str] = typer.Option(None, "--metadata", "-m", help="Metadata JSON string."),
    metadata_file: Optional[Path] = typer.Option(
        None, "--metadata-file", exists=True, dir_okay=False, readable=True, help="File with the metadata JSON."
    ),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    state = _state(ctx)
    token_metadata = _load_metadata(metadata_json, metadata_file)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.mint(owner, token_metadata, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command()
def approve(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Token id or token hash."),
    spender: str = typer.Argument(..., help="Spender public key or account hash."),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.approve(token, spender, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command("approve-all")
def approve_all(
    ctx: typer.Context,
    operator_key: str = typer.Argument(..., metavar="OPERATOR", help="Operator public key or account hash."),
    revoke: bool = typer.Option(False, "--revoke", help="Revoke instead of approve."),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.set_approval_for_all(operator_key, not revoke, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command()
def transfer(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Token id or token hash."),
    source: str = typer.Argument(..., help="Current owner."),
    target: str = typer.Argument(..., help="New owner."),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.transfer(token, source, target, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command()
def burn(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Token id or token hash."),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.burn(token, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command("set-metadata")
def set_metadata(
    ctx: typer.Context,
    token: str = typer.Argument(..., help="Token id or token hash."),
    metadata_json: Optional[str] = typer.Option(None, "--metadata", "-m", help="Metadata JSON string."),
    metadata_file: Optional[Path] = typer.Option(
        None, "--metadata-file", exists=True, dir_okay=False, readable=True, help="File with the metadata JSON."
    ),
    wait: bool = _WAIT,
    payment: Optional[int] = _PAYMENT,
) -> None:
    state = _state(ctx)
    token_metadata = _load_metadata(metadata_json, metadata_file)

    async def action() -> dict[str, Any]:
        client = await open_client(state, with_signer=True)
        async with client:
            deploy_hash = await client.set_token_metadata(token, token_metadata, payment_amount=payment)
            return await _finish_deploy(client, deploy_hash, wait)

    _print_deploy(state, run_action(action()))


@app.command()
def wait(ctx: typer.Context, deploy_hash: str = typer.Argument(..., help="Deploy hash to follow.")) -> None:
    """Poll an already submitted deploy until it is executed."""

    state = _state(ctx)

    async def action() -> dict[str, Any]:
        client = await open_client(state)
        async with client:
            return await _finish_deploy(client, deploy_hash, True)

    _print_deploy(state, run_action(action()))


@app.command("token-hash")
def token_hash(
    value: str = typer.Argument(..., help="Token URI or metadata string."),
) -> None:
    """sha256 of a token URI and the hash-mode identifier of a metadata string."""

    if not value:
        raise typer.BadParameter("value must not be empty")
    _console.print(f"sha256:  {hash_token_uri(value)}")
    _console.print(f"blake2b: {token_hash_for_metadata(value)}")


def run() -> None:
    app()
