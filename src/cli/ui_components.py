"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import json
from typing import Any

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain import cep78
from core.domain.models import DeployResult


def print_banner(console: Console, *, node_address: str, chain_name: str) -> None:
    """Imprime la cabecera con el nodo y la red en uso."""

    title = Text("CEP-78 scripts", style="bold cyan")
    subtitle = Text(f"{chain_name} • {node_address}", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(0, 4)))


def build_key_value_table(title: str, rows: dict[str, Any]) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    for key, value in rows.items():
        table.add_row(key, "-" if value is None else str(value))
    return table


def build_tokens_table(owner: str, tokens: list[int], balance: int | None = None) -> Table:
    title = f"Owned tokens ({len(tokens)})"
    if balance is not None:
        title += f" • balance {balance}"
    table = Table(title=title, caption=owner)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Token id", style="magenta")
    for index, token in enumerate(tokens, start=1):
        table.add_row(str(index), str(token))
    return table


def build_metadata_panel(token: str, metadata: dict[str, Any] | str | None) -> Panel:
    if metadata is None:
        body = Text("No metadata stored for this token.", style="yellow")
    elif isinstance(metadata, dict):
        body = Text(json.dumps(metadata, indent=2, ensure_ascii=False))
    else:
        body = Text(metadata)
    return Panel(body, title=Text(f"Token {token}", style="bold magenta"), border_style="magenta")


def build_deploy_panel(result: DeployResult) -> Panel:
    ok = result.status is cep78.ExecutionStatus.SUCCESS
    body = Text()
    body.append(f"Deploy: {result.deploy_hash}\n")
    body.append(f"Status: {result.status.value}\n", style="green" if ok else "yellow")
    if result.block_hash:
        body.append(f"Block: {result.block_hash}\n", style="dim")
    if result.cost is not None:
        body.append(f"Cost: {result.cost} motes\n", style="dim")
    if result.error_message:
        body.append(f"Error: {result.error_message}\n", style="red")
    return Panel(body, title="Deploy", border_style="green" if ok else "yellow")
