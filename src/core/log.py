"""Configuración de logging (Rich).

Por qué Rich:
- La CLI ya imprime con `rich.console`; los logs usan el mismo render y van a stderr.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOGGING_THEME = Theme(
    {
        "logging.level.debug": "dim blue",
        "logging.level.info": "green",
        "logging.level.warning": "yellow",
        "logging.level.error": "red bold",
        "logging.level.critical": "red bold reverse",
    }
)

err_console = Console(stderr=True, theme=LOGGING_THEME)


def setup_logging(level: str = "INFO", *, verbose: bool = False) -> None:
    """Configura el root logger una sola vez por proceso."""

    resolved = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    handler = RichHandler(
        console=err_console,
        show_path=verbose,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(resolved)

    # httpx loguea cada request en INFO.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
