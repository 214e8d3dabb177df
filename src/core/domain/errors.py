"""Errores del dominio.

Por qué una jerarquía propia:
- Los scripts y la CLI tienen un único borde de error: capturan `Cep78Error`,
  lo imprimen y terminan. Nada más intenta recuperarse.
"""

from __future__ import annotations

from typing import Any


class Cep78Error(Exception):
    """Base de todos los errores de la herramienta."""


class ConfigurationError(Cep78Error):
    """Falta configuración local (contract hash, fichero de claves, signer)."""


class InvalidReferenceError(Cep78Error, ValueError):
    """Hash, clave pública o token id con formato inválido."""


class CasperRPCError(Cep78Error):
    """Fallo de transporte o error JSON-RPC devuelto por el nodo."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        data: Any = None,
        status_code: int | None = None,
        method: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data
        self.status_code = status_code
        self.method = method

    @property
    def is_not_found(self) -> bool:
        """True si el nodo indica que la clave/ítem no existe en global state."""

        text = f"{self.message} {self.data or ''}".lower()
        return (
            "valuenotfound" in text
            or "value not found" in text
            or "failed to find" in text
            or "no such" in text
        )

    def __str__(self) -> str:
        parts = [self.message]
        if self.method:
            parts.insert(0, f"[{self.method}]")
        if self.code is not None:
            parts.append(f"(code {self.code})")
        if self.data:
            parts.append(f": {self.data}")
        return " ".join(parts)


class DeployFailedError(Cep78Error):
    """El deploy se ejecutó y el contrato lo rechazó."""

    def __init__(
        self,
        deploy_hash: str,
        error_message: str,
        *,
        user_error_code: int | None = None,
        user_error_name: str | None = None,
    ) -> None:
        detail = error_message
        if user_error_name:
            detail = f"{error_message} ({user_error_name})"
        super().__init__(f"Deploy {deploy_hash} failed: {detail}")
        self.deploy_hash = deploy_hash
        self.error_message = error_message
        self.user_error_code = user_error_code
        self.user_error_name = user_error_name


class DeployTimeoutError(Cep78Error):
    """El deploy no se ejecutó dentro del número de consultas configurado."""

    def __init__(self, deploy_hash: str, attempts: int) -> None:
        super().__init__(f"Deploy {deploy_hash} not executed after {attempts} checks")
        self.deploy_hash = deploy_hash
        self.attempts = attempts
