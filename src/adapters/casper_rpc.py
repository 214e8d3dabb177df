"""Cliente JSON-RPC del nodo Casper.

Responsabilidad:
- Serializar llamadas JSON-RPC 2.0 y devolver `result` como dict.
- Traducir fallos de transporte y errores JSON-RPC a `CasperRPCError`.

No firma ni construye deploys: recibe el JSON ya preparado por el SDK.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.errors import CasperRPCError

log = logging.getLogger(__name__)


def cl_value_parsed(stored_value: dict[str, Any]) -> Any:
    """Valor `parsed` de un `StoredValue::CLValue`."""

    cl_value = stored_value.get("CLValue")
    if not isinstance(cl_value, dict) or "parsed" not in cl_value:
        raise CasperRPCError(f"Stored value is not a CLValue: {sorted(stored_value)}")
    return cl_value["parsed"]


class CasperRPC:
    """Sesión JSON-RPC contra un nodo (`NODE_ADDRESS`)."""

    def __init__(
        self,
        node_address: str,
        *,
        settings: AppSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = node_address
        self._client = client or build_async_client(settings)
        self._ids = itertools.count(1)

    @property
    def node_address(self) -> str:
        return self._url

    async def __aenter__(self) -> "CasperRPC":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or {},
        }
        log.debug("rpc %s %s", method, params)

        try:
            response = await self._client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            raise CasperRPCError(f"Request to {self._url} failed: {exc}", method=method) from exc

        if response.status_code != 200:
            raise CasperRPCError(
                f"Node answered HTTP {response.status_code}",
                status_code=response.status_code,
                method=method,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise CasperRPCError("Node answered with invalid JSON", method=method) from exc

        if not isinstance(body, dict):
            raise CasperRPCError("Node answered with a non-object body", method=method)

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise CasperRPCError(
                    str(error.get("message") or "JSON-RPC error"),
                    code=error.get("code"),
                    data=error.get("data"),
                    method=method,
                )
            raise CasperRPCError(str(error), method=method)

        result = body.get("result")
        if not isinstance(result, dict):
            raise CasperRPCError("Response has no result", method=method)
        return result

    async def get_state_root_hash(self) -> str:
        result = await self.call("chain_get_state_root_hash")
        state_root_hash = result.get("state_root_hash")
        if not isinstance(state_root_hash, str):
            raise CasperRPCError("No state root hash in response", method="chain_get_state_root_hash")
        return state_root_hash

    async def get_item(
        self,
        key: str,
        path: Sequence[str] = (),
        *,
        state_root_hash: str | None = None,
    ) -> dict[str, Any]:
        """`state_get_item`: devuelve el `stored_value` de `key` siguiendo `path`."""

        srh = state_root_hash or await self.get_state_root_hash()
        result = await self.call(
            "state_get_item",
            {"state_root_hash": srh, "key": key, "path": list(path)},
        )
        return _stored_value(result, "state_get_item")

    async def get_dictionary_item(
        self,
        contract_key: str,
        dictionary_name: str,
        item_key: str,
        *,
        state_root_hash: str | None = None,
    ) -> dict[str, Any]:
        """`state_get_dictionary_item` direccionado por named key del contrato."""

        srh = state_root_hash or await self.get_state_root_hash()
        result = await self.call(
            "state_get_dictionary_item",
            {
                "state_root_hash": srh,
                "dictionary_identifier": {
                    "ContractNamedKey": {
                        "key": contract_key,
                        "dictionary_name": dictionary_name,
                        "dictionary_item_key": item_key,
                    }
                },
            },
        )
        return _stored_value(result, "state_get_dictionary_item")

    async def put_deploy(self, deploy: dict[str, Any]) -> str:
        result = await self.call("account_put_deploy", {"deploy": deploy})
        deploy_hash = result.get("deploy_hash")
        if not isinstance(deploy_hash, str):
            raise CasperRPCError("No deploy hash in response", method="account_put_deploy")
        log.info("deploy submitted: %s", deploy_hash)
        return deploy_hash

    async def get_deploy(self, deploy_hash: str) -> dict[str, Any]:
        return await self.call("info_get_deploy", {"deploy_hash": deploy_hash})

    async def get_status(self) -> dict[str, Any]:
        return await self.call("info_get_status")


def _stored_value(result: dict[str, Any], method: str) -> dict[str, Any]:
    stored_value = result.get("stored_value")
    if not isinstance(stored_value, dict):
        raise CasperRPCError("Response has no stored_value", method=method)
    return stored_value
