"""Contrato del firmante de deploys.

Por qué Protocol:
- El wrapper del contrato no conoce el SDK: solo describe la llamada
  (`ContractCall`) y recibe un deploy firmado y serializado.
- Permite sustituir el firmante real por uno falso en tests.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import ContractCall, ContractRef, SignedDeploy


@runtime_checkable
class DeploySigner(Protocol):
    """Contrato mínimo para construir y firmar deploys.

    Reglas de diseño:
    - Es síncrono: construir y firmar no hace I/O.
    - No envía nada a la red; eso lo hace el adaptador RPC.
    """

    @property
    def public_key_hex(self) -> str:
        """Clave pública (hex con prefijo de algoritmo) de la cuenta firmante."""

        ...

    def sign_call(
        self,
        *,
        contract: ContractRef,
        call: ContractCall,
        payment_amount: int,
    ) -> SignedDeploy:
        """Construye un deploy `StoredContractByHash` para `call` y lo firma."""

        ...
