"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (RPC/firmado) lean config de forma consistente.

Los nombres de variables son los de los scripts de despliegue
(`NODE_ADDRESS`, `CHAIN_NAME`, ...), por eso no hay `env_prefix`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "cep78-scripts"


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# cep78-scripts user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/scripts/adapters.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    node_address: str = Field(
        default="http://localhost:11101/rpc",
        min_length=8,
        description="URL JSON-RPC del nodo Casper (incluye `/rpc`).",
    )
    event_stream_address: str | None = Field(
        default=None,
        description="URL del event stream (SSE) del nodo. Solo informativo.",
    )
    chain_name: str = Field(
        default="casper-test",
        min_length=1,
        description="Nombre de la red usado al firmar deploys.",
    )
    wasm_path: Path | None = Field(
        default=None,
        description="Ruta al wasm del contrato (instalación).",
    )

    contract_hash: str | None = Field(
        default=None,
        description="Contract hash CEP-78 por defecto para la CLI.",
    )
    keys_path: Path = Field(
        default=Path("keys.json"),
        description="Fichero de clave privada: keys.json ({'key': <base64>}) o PEM.",
    )
    contract_info_path: Path = Field(
        default=Path("contractinfo.json"),
        description="Fichero JSON con los named keys de la cuenta instaladora.",
    )

    payment_amount: int = Field(
        default=5_000_000_000,
        gt=0,
        description="Pago estándar por deploy (motes).",
    )
    mint_payment_amount: int = Field(
        default=10_000_000_000,
        gt=0,
        description="Pago por deploy de mint (motes).",
    )

    deploy_poll_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Espera entre consultas de estado de un deploy.",
    )
    deploy_poll_attempts: int = Field(
        default=300,
        ge=1,
        description="Consultas máximas antes de dar el deploy por perdido.",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="cep78-scripts/0.1",
        min_length=1,
        description="User-Agent para peticiones al nodo.",
    )
    log_level: str = Field(
        default="INFO",
        description="Nivel de logging (DEBUG, INFO, WARNING...).",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"
