"""Firmado de deploys con pycspr.

Responsabilidad:
- Traducir `ContractCall` a una sesión `DeployOfStoredContractByHash` del SDK.
- Crear el deploy con pago estándar, aprobarlo y serializarlo a JSON.

Todo lo que es serialización y criptografía lo hace pycspr.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import pycspr
from pycspr.types.cl import CLV_Bool, CLV_Key, CLV_KeyType, CLV_String, CLV_U64
from pycspr.types.node.rpc import DeployOfStoredContractByHash

from adapters.key_file import load_private_key_bytes
from core.config import AppSettings
from core.domain.models import (
    ArgKind,
    CallArg,
    CasperKey,
    ContractCall,
    ContractRef,
    KeyKind,
    SignedDeploy,
)

log = logging.getLogger(__name__)


def _to_cl_key(key: CasperKey) -> CLV_Key:
    key_type = CLV_KeyType.ACCOUNT if key.kind is KeyKind.ACCOUNT else CLV_KeyType.HASH
    return CLV_Key(identifier=bytes.fromhex(key.identifier_hex), key_type=key_type)


def to_cl_value(arg: CallArg) -> Any:
    if arg.kind is ArgKind.KEY:
        return _to_cl_key(arg.value)
    if arg.kind is ArgKind.STRING:
        return CLV_String(arg.value)
    if arg.kind is ArgKind.U64:
        return CLV_U64(arg.value)
    return CLV_Bool(arg.value)


class PycsprDeploySigner:
    """Implementación de `DeploySigner` sobre pycspr (cuentas Ed25519)."""

    def __init__(self, private_key: bytes, *, chain_name: str) -> None:
        self._key = pycspr.parse_private_key_bytes(private_key, pycspr.KeyAlgorithm.ED25519)
        self._chain_name = chain_name

    @classmethod
    def from_settings(cls, settings: AppSettings | None = None) -> "PycsprDeploySigner":
        settings = settings or AppSettings()
        return cls(load_private_key_bytes(settings.keys_path), chain_name=settings.chain_name)

    @property
    def public_key_hex(self) -> str:
        return self._key.account_key.hex()

    def sign_call(
        self,
        *,
        contract: ContractRef,
        call: ContractCall,
        payment_amount: int,
    ) -> SignedDeploy:
        params = pycspr.create_deploy_parameters(account=self._key, chain_name=self._chain_name)
        payment = pycspr.create_standard_payment(payment_amount)
        session = DeployOfStoredContractByHash(
            entry_point=call.entry_point,
            hash=bytes.fromhex(contract.hash_hex),
            args={arg.name: to_cl_value(arg) for arg in call.args},
        )
        deploy = pycspr.create_deploy(params, payment, session)
        deploy.approve(self._key)

        payload = pycspr.to_json(deploy)
        if isinstance(payload, str):
            payload = json.loads(payload)

        # El JSON lleva el hash con checksum (mayúsculas mixtas); es el que ve el nodo.
        deploy_hash = str(payload["hash"])
        log.debug("signed %s deploy %s", call.entry_point, deploy_hash)
        return SignedDeploy(deploy_hash=deploy_hash, payload=payload)
