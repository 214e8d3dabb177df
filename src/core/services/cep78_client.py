"""Wrapper de un contrato CEP-78 desplegado.

Cada método es una única llamada remota:
- lecturas: diccionarios / named keys del contrato en el state root actual
- escrituras: construir `ContractCall`, firmarla (DeploySigner) y enviarla

El wrapper no reintenta nada. `wait_for_deploy` solo consulta el estado de un
deploy ya enviado hasta que el nodo lo reporta ejecutado.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable

import httpx

from adapters.casper_rpc import CasperRPC, cl_value_parsed
from core.config import AppSettings
from core.domain import cep78
from core.domain.errors import (
    CasperRPCError,
    ConfigurationError,
    DeployFailedError,
    DeployTimeoutError,
    InvalidReferenceError,
)
from core.domain.hashing import operator_dictionary_key
from core.domain.models import (
    ArgKind,
    CallArg,
    CasperKey,
    ContractCall,
    ContractRef,
    DeployResult,
    TokenIdentifier,
    encode_metadata,
)
from core.interfaces.signer import DeploySigner

log = logging.getLogger(__name__)

_MISSING = object()
# Centinela distinto de None: burnt_tokens / page_table guardan valores vacíos.
_MISSING_ITEM = object()

KeyLike = CasperKey | str
TokenLike = TokenIdentifier | int | str


def as_key(value: KeyLike) -> CasperKey:
    if isinstance(value, CasperKey):
        return value
    return CasperKey.parse(value)


def as_contract_key(value: KeyLike) -> CasperKey:
    """Como `as_key`, pero un hex sin prefijo se interpreta como hash de contrato."""

    if isinstance(value, CasperKey):
        return value
    raw = value.strip().lower()
    if len(raw) == 64 and not raw.startswith(("account-hash-", "hash-")):
        return CasperKey.contract(raw)
    return CasperKey.parse(raw)


def as_token(value: TokenLike) -> TokenIdentifier:
    if isinstance(value, TokenIdentifier):
        return value
    return TokenIdentifier.parse(value)


def parse_execution_result(deploy_hash: str, raw: dict[str, Any]) -> DeployResult:
    """Normaliza la respuesta de `info_get_deploy` (nodos 1.x y 2.x)."""

    block_hash: str | None = None
    outcome: dict[str, Any] = {}

    results = raw.get("execution_results")
    if isinstance(results, list) and results:
        first = results[0] if isinstance(results[0], dict) else {}
        block_hash = first.get("block_hash")
        outcome = first.get("result") or {}
    elif isinstance(raw.get("execution_info"), dict):
        info = raw["execution_info"]
        block_hash = info.get("block_hash")
        execution = info.get("execution_result") or {}
        if "Version2" in execution:
            v2 = execution["Version2"] or {}
            if v2.get("error_message"):
                outcome = {"Failure": v2}
            else:
                outcome = {"Success": v2}
        else:
            outcome = execution.get("Version1") or {}

    if "Success" in outcome:
        cost = (outcome.get("Success") or {}).get("cost")
        return DeployResult(
            deploy_hash=deploy_hash,
            status=cep78.ExecutionStatus.SUCCESS,
            block_hash=block_hash,
            cost=int(cost) if cost is not None else None,
        )
    if "Failure" in outcome:
        failure = outcome.get("Failure") or {}
        cost = failure.get("cost")
        return DeployResult(
            deploy_hash=deploy_hash,
            status=cep78.ExecutionStatus.FAILURE,
            block_hash=block_hash,
            cost=int(cost) if cost is not None else None,
            error_message=str(failure.get("error_message") or "unknown error"),
        )
    return DeployResult(deploy_hash=deploy_hash)


class CEP78Client:
    """Cliente fino de un contrato CEP-78 (lecturas + deploys firmados)."""

    def __init__(
        self,
        contract: ContractRef | str,
        rpc: CasperRPC,
        *,
        signer: DeploySigner | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        self.contract = contract if isinstance(contract, ContractRef) else ContractRef.parse(contract)
        self._rpc = rpc
        self._signer = signer
        self._settings = settings or AppSettings()
        self.named_keys: dict[str, str] = {}
        self.contract_package_hash: str | None = None
        self._identifier_mode: cep78.NFTIdentifierMode | None = None
        self._metadata_kind: cep78.NFTMetadataKind | None = None

    @classmethod
    async def create_instance(
        cls,
        contract_hash: ContractRef | str,
        node_address: str | None = None,
        chain_name: str | None = None,
        *,
        settings: AppSettings | None = None,
        signer: DeploySigner | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> "CEP78Client":
        """Construye el cliente y carga los named keys del contrato."""

        settings = settings or AppSettings()
        overrides: dict[str, Any] = {}
        if node_address:
            overrides["node_address"] = node_address
        if chain_name:
            overrides["chain_name"] = chain_name
        if overrides:
            settings = settings.model_copy(update=overrides)

        contract = contract_hash if isinstance(contract_hash, ContractRef) else ContractRef.parse(contract_hash)
        rpc = CasperRPC(settings.node_address, settings=settings, client=http_client)
        instance = cls(contract, rpc, signer=signer, settings=settings)
        try:
            await instance.init()
        except BaseException:
            await rpc.aclose()
            raise
        return instance

    async def __aenter__(self) -> "CEP78Client":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._rpc.aclose()

    @property
    def rpc(self) -> CasperRPC:
        return self._rpc

    @property
    def signer(self) -> DeploySigner | None:
        return self._signer

    async def init(self) -> None:
        stored = await self._rpc.get_item(self.contract.key)
        contract = stored.get("Contract")
        if not isinstance(contract, dict):
            raise CasperRPCError(f"{self.contract.key} is not a contract", method="state_get_item")
        self.named_keys = {
            str(item.get("name")): str(item.get("key"))
            for item in contract.get("named_keys") or []
            if isinstance(item, dict)
        }
        package = contract.get("contract_package_hash")
        self.contract_package_hash = str(package) if package else None
        log.debug("contract %s loaded with %d named keys", self.contract, len(self.named_keys))

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    async def _named_key_value(self, name: str, default: Any = _MISSING) -> Any:
        try:
            stored = await self._rpc.get_item(self.contract.key, [name])
        except CasperRPCError as exc:
            if exc.is_not_found and default is not _MISSING:
                return default
            raise
        return cl_value_parsed(stored)

    async def _dictionary_value(self, dictionary: str, item_key: str, default: Any = _MISSING) -> Any:
        try:
            stored = await self._rpc.get_dictionary_item(self.contract.key, dictionary, item_key)
        except CasperRPCError as exc:
            if exc.is_not_found and default is not _MISSING:
                log.debug("%s[%s] not found", dictionary, item_key)
                return default
            raise
        return cl_value_parsed(stored)

    async def identifier_mode(self) -> cep78.NFTIdentifierMode:
        if self._identifier_mode is None:
            value = await self._named_key_value(cep78.IDENTIFIER_MODE)
            self._identifier_mode = cep78.NFTIdentifierMode.from_value(value)
        return self._identifier_mode

    async def metadata_kind(self) -> cep78.NFTMetadataKind:
        if self._metadata_kind is None:
            value = await self._named_key_value(cep78.NFT_METADATA_KIND, cep78.NFTMetadataKind.CEP78.value)
            self._metadata_kind = cep78.NFTMetadataKind.from_value(value)
        return self._metadata_kind

    async def collection_name(self) -> str | None:
        value = await self._named_key_value(cep78.COLLECTION_NAME, None)
        return None if value is None else str(value)

    async def number_of_minted_tokens(self) -> int:
        return int(await self._named_key_value(cep78.NUMBER_OF_MINTED_TOKENS, 0))

    async def total_token_supply(self) -> int | None:
        value = await self._named_key_value(cep78.TOTAL_TOKEN_SUPPLY, None)
        return None if value is None else int(value)

    async def get_owned_tokens(self, owner: KeyLike) -> list[int]:
        key = as_key(owner)
        value = await self._dictionary_value(cep78.OWNED_TOKENS, key.dictionary_item_key, [])
        return [int(token) for token in value or []]

    async def balance_of(self, owner: KeyLike) -> int:
        key = as_key(owner)
        value = await self._dictionary_value(cep78.BALANCES, key.dictionary_item_key, 0)
        return int(value or 0)

    async def get_owner_of(self, token: TokenLike) -> CasperKey | None:
        value = await self._dictionary_value(cep78.TOKEN_OWNERS, as_token(token).dictionary_item_key, None)
        return None if value is None else CasperKey.from_parsed(value)

    async def get_token_metadata(
        self,
        token: TokenLike,
        kind: cep78.NFTMetadataKind | None = None,
    ) -> dict[str, Any] | str | None:
        """Metadata de un token; JSON decodificado si el contrato guarda JSON."""

        kind = kind or await self.metadata_kind()
        value = await self._dictionary_value(kind.dictionary_name, as_token(token).dictionary_item_key, None)
        if value is None:
            return None
        text = str(value)
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            return text
        return decoded if isinstance(decoded, dict) else text

    async def burnt_tokens(self, token: TokenLike) -> bool:
        value = await self._dictionary_value(cep78.BURNT_TOKENS, as_token(token).dictionary_item_key, _MISSING_ITEM)
        return value is not _MISSING_ITEM

    async def get_operator(self, token: TokenLike) -> CasperKey | None:
        value = await self._dictionary_value(cep78.OPERATOR, as_token(token).dictionary_item_key, None)
        return None if value is None else CasperKey.from_parsed(value)

    async def check_register_owner(self, owner: KeyLike) -> bool:
        """True si el owner ya tiene entrada en `page_table` (register_owner hecho)."""

        key = as_key(owner)
        value = await self._dictionary_value(cep78.PAGE_TABLE, key.dictionary_item_key, _MISSING_ITEM)
        return value is not _MISSING_ITEM

    async def check_operator_dictionary_key(self, owner: KeyLike, operator: KeyLike) -> bool:
        item_key = operator_dictionary_key(as_key(owner).to_bytes(), as_contract_key(operator).to_bytes())
        value = await self._dictionary_value(cep78.OPERATORS, item_key, False)
        return bool(value)

    async def contract_summary(self) -> dict[str, Any]:
        mode = await self.identifier_mode()
        kind = await self.metadata_kind()
        return {
            "contract_hash": self.contract.hash_hex,
            "contract_package_hash": self.contract_package_hash,
            "collection_name": await self.collection_name(),
            "identifier_mode": mode.name,
            "metadata_kind": kind.name,
            "number_of_minted_tokens": await self.number_of_minted_tokens(),
            "total_token_supply": await self.total_token_supply(),
        }

    # ------------------------------------------------------------------
    # Escrituras (deploys)
    # ------------------------------------------------------------------

    async def submit(self, call: ContractCall, payment_amount: int | None = None) -> str:
        """Firma `call` y la envía. Devuelve el deploy hash."""

        if self._signer is None:
            raise ConfigurationError("No signer configured: a private key is required to send deploys")
        amount = self._settings.payment_amount if payment_amount is None else payment_amount
        if amount <= 0:
            raise InvalidReferenceError(f"Payment amount must be positive, got {amount}")
        signed = self._signer.sign_call(contract=self.contract, call=call, payment_amount=amount)
        log.info("sending %s to %s (payment %d motes)", call.entry_point, self.contract, amount)
        deploy_hash = await self._rpc.put_deploy(signed.payload)
        if deploy_hash.lower() != signed.deploy_hash.lower():
            log.warning("node returned deploy hash %s, expected %s", deploy_hash, signed.deploy_hash)
        return deploy_hash

    async def register_owner(self, token_owner: KeyLike, *, payment_amount: int | None = None) -> str:
        call = ContractCall(
            entry_point=cep78.ENTRY_POINT_REGISTER_OWNER,
            args=[CallArg(name=cep78.ARG_TOKEN_OWNER, kind=ArgKind.KEY, value=as_key(token_owner))],
        )
        return await self.submit(call, payment_amount)

    async def set_minter(self, minter: KeyLike, *, payment_amount: int | None = None) -> str:
        call = ContractCall(
            entry_point=cep78.ENTRY_POINT_SET_MINTER,
            args=[CallArg(name=cep78.ARG_MINTER, kind=ArgKind.KEY, value=as_contract_key(minter))],
        )
        return await self.submit(call, payment_amount)

    async def mint(
        self,
        token_owner: KeyLike,
        metadata: dict[str, Any] | str,
        *,
        payment_amount: int | None = None,
    ) -> str:
        call = ContractCall(
            entry_point=cep78.ENTRY_POINT_MINT,
            args=[
                CallArg(name=cep78.ARG_TOKEN_OWNER, kind=ArgKind.KEY, value=as_key(token_owner)),
                CallArg(name=cep78.ARG_TOKEN_META_DATA, kind=ArgKind.STRING, value=encode_metadata(metadata)),
            ],
        )
        if payment_amount is None:
            payment_amount = self._settings.mint_payment_amount
        return await self.submit(call, payment_amount)

    async def approve(self, token: TokenLike, spender: KeyLike, *, payment_amount: int | None = None) -> str:
        call = ContractCall(
            entry_point=cep78.ENTRY_POINT_APPROVE,
            args=[
                as_token(token).as_call_arg(),
                CallArg(name=cep78.ARG_SPENDER, kind=ArgKind.KEY, value=as_key(spender)),
            ],
        )
        return await self.submit(call, payment_amount)

    async def set_approval_for_all(
        self,
        operator: KeyLike,
        approve_all: bool = True,
        *,
        payment_amount: int | None = None,
    ) -> str:
        call = ContractCall(
            entry_point=cep78.ENTRY_POINT_SET_APPROVAL_FOR_ALL,
            args=[
                CallArg(name=cep78.ARG_APPROVE_ALL, kind=ArgKind.BOOL, value=approve_all),
                CallArg(name=cep78.ARG_OPERATOR, kind=ArgKind.KEY, value=as_key(operator)),
            ],
        )
        return await self.submit(call, payment_amount)

    async def transfer(
        self,
        token: TokenLike,
        source: KeyLike,
        target: KeyLike,
        *,
        payment_amount: int | None = None,
    ) -> str:
        call = ContractCall(
            entry_point=cep78.ENTRY_POINT_TRANSFER,
            args=[
                as_token(token).as_call_arg(),
                CallArg(name=cep78.ARG_SOURCE_KEY, kind=ArgKind.KEY, value=as_key(source)),
                CallArg(name=cep78.ARG_TARGET_KEY, kind=ArgKind.KEY, value=as_key(target)),
            ],
        )
        return await self.submit(call, payment_amount)

    async def burn(self, token: TokenLike, *, payment_amount: int | None = None) -> str:
        call = ContractCall(entry_point=cep78.ENTRY_POINT_BURN, args=[as_token(token).as_call_arg()])
        return await self.submit(call, payment_amount)

    async def set_token_metadata(
        self,
        token: TokenLike,
        metadata: dict[str, Any] | str,
        *,
        payment_amount: int | None = None,
    ) -> str:
        call = ContractCall(
            entry_point=cep78.ENTRY_POINT_SET_TOKEN_METADATA,
            args=[
                as_token(token).as_call_arg(),
                CallArg(name=cep78.ARG_TOKEN_META_DATA, kind=ArgKind.STRING, value=encode_metadata(metadata)),
            ],
        )
        return await self.submit(call, payment_amount)

    # ------------------------------------------------------------------
    # Seguimiento de deploys
    # ------------------------------------------------------------------

    async def wait_for_deploy(
        self,
        deploy_hash: str,
        *,
        interval: float | None = None,
        attempts: int | None = None,
        on_poll: Callable[[int, int], None] | None = None,
    ) -> DeployResult:
        """Consulta `info_get_deploy` hasta que el deploy tenga resultado.

        - `Success` -> devuelve `DeployResult`
        - `Failure` -> `DeployFailedError` (con el `User error: N` decodificado)
        - sin resultado tras `attempts` consultas -> `DeployTimeoutError`
        """

        interval = self._settings.deploy_poll_interval_seconds if interval is None else interval
        attempts = attempts or self._settings.deploy_poll_attempts

        for attempt in range(1, attempts + 1):
            if on_poll is not None:
                on_poll(attempt, attempts)
            raw = await self._rpc.get_deploy(deploy_hash)
            result = parse_execution_result(deploy_hash, raw)

            if result.status is cep78.ExecutionStatus.SUCCESS:
                log.info("deploy %s executed (cost %s)", deploy_hash, result.cost)
                return result
            if result.status is cep78.ExecutionStatus.FAILURE:
                code, name = cep78.parse_user_error(result.error_message)
                raise DeployFailedError(
                    deploy_hash,
                    result.error_message or "unknown error",
                    user_error_code=code,
                    user_error_name=name,
                )
            if attempt < attempts:
                await asyncio.sleep(interval)

        raise DeployTimeoutError(deploy_hash, attempts)
