from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.models import ContractCall, ContractRef, SignedDeploy
from core.services.cep78_client import CEP78Client

CONTRACT_HASH = "be170557d9100704b63dc5de6039373dfdc8649cc467bf2f74ea14812d233def"
PACKAGE_HASH = "76b9625447de65b85924bb697c95bda151b7dad363915047f11bfeb15d4a7c19"
OWNER_PUBLIC_KEY = "0131e805fde6a85b63aa366990136b4759a596d9a988bde62b84131bc86a910e6b"
OWNER_ACCOUNT_HASH = "55884917f4107a59e8c06557baee7fdada631af6d1c105984d196a84562854eb"
STATE_ROOT_HASH = "ab" * 32


def cl_value(parsed: Any, cl_type: Any = "Any") -> dict[str, Any]:
    return {"CLValue": {"cl_type": cl_type, "bytes": "", "parsed": parsed}}


class FakeNode:
    """Nodo JSON-RPC en memoria para `httpx.MockTransport`."""

    def __init__(self, contract_hash: str = CONTRACT_HASH) -> None:
        self.contract_key = f"hash-{contract_hash}"
        self.named_values: dict[str, Any] = {}
        self.dictionaries: dict[tuple[str, str], Any] = {}
        self.deploy_results: dict[str, list[dict[str, Any]]] = {}
        self.submitted: list[dict[str, Any]] = []
        self.requests: list[dict[str, Any]] = []
        self.status: dict[str, Any] = {"api_version": "1.5.6", "chainspec_name": "casper-test"}
        self.fail_with_status: int | None = None

    def set_dictionary(self, dictionary: str, item_key: str, parsed: Any) -> None:
        self.dictionaries[(dictionary, item_key)] = parsed

    def queue_deploy(self, deploy_hash: str, *responses: dict[str, Any]) -> None:
        self.deploy_results.setdefault(deploy_hash, []).extend(responses)

    def methods(self) -> list[str]:
        return [request["method"] for request in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail_with_status is not None:
            return httpx.Response(self.fail_with_status, text="unavailable")

        body = json.loads(request.content)
        self.requests.append(body)
        method = body["method"]
        params = body.get("params") or {}

        if method == "chain_get_state_root_hash":
            return self._ok(body, {"state_root_hash": STATE_ROOT_HASH})
        if method == "state_get_item":
            return self._state_get_item(body, params)
        if method == "state_get_dictionary_item":
            identifier = params["dictionary_identifier"]["ContractNamedKey"]
            entry = (identifier["dictionary_name"], identifier["dictionary_item_key"])
            if entry not in self.dictionaries:
                return self._not_found(body)
            return self._ok(body, {"stored_value": cl_value(self.dictionaries[entry])})
        if method == "account_put_deploy":
            deploy = params["deploy"]
            self.submitted.append(deploy)
            return self._ok(body, {"api_version": "1.5.6", "deploy_hash": deploy["hash"]})
        if method == "info_get_deploy":
            pending = self.deploy_results.get(params["deploy_hash"]) or []
            result = pending.pop(0) if pending else {"execution_results": []}
            return self._ok(body, {"deploy": {"hash": params["deploy_hash"]}, **result})
        if method == "info_get_status":
            return self._ok(body, self.status)
        return self._error(body, -32601, f"Method not found: {method}")

    def _state_get_item(self, body: dict[str, Any], params: dict[str, Any]) -> httpx.Response:
        if params["key"] != self.contract_key:
            return self._not_found(body)
        path = params.get("path") or []
        if not path:
            contract = {
                "contract_package_hash": f"contract-package-wasm{PACKAGE_HASH}",
                "named_keys": [{"name": name, "key": f"uref-{'0' * 64}-007"} for name in self.named_values],
            }
            return self._ok(body, {"stored_value": {"Contract": contract}})
        name = path[0]
        if name not in self.named_values:
            return self._not_found(body)
        return self._ok(body, {"stored_value": cl_value(self.named_values[name])})

    @staticmethod
    def _ok(body: dict[str, Any], result: dict[str, Any]) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    @staticmethod
    def _error(body: dict[str, Any], code: int, message: str) -> httpx.Response:
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": code, "message": message}},
        )

    def _not_found(self, body: dict[str, Any]) -> httpx.Response:
        return self._error(body, -32003, "state query failed: ValueNotFound(\"Failed to find base key\")")


def success_result(cost: str = "1500000000") -> dict[str, Any]:
    return {"execution_results": [{"block_hash": "cd" * 32, "result": {"Success": {"cost": cost}}}]}


def failure_result(error_message: str, cost: str = "900000000") -> dict[str, Any]:
    return {
        "execution_results": [
            {"block_hash": "cd" * 32, "result": {"Failure": {"cost": cost, "error_message": error_message}}}
        ]
    }


class FakeSigner:
    """`DeploySigner` sin criptografía: un hash distinto por llamada."""

    public_key_hex = OWNER_PUBLIC_KEY

    def __init__(self) -> None:
        self.calls: list[tuple[ContractRef, ContractCall, int]] = []

    def sign_call(self, *, contract: ContractRef, call: ContractCall, payment_amount: int) -> SignedDeploy:
        self.calls.append((contract, call, payment_amount))
        deploy_hash = f"{len(self.calls):064x}"
        return SignedDeploy(
            deploy_hash=deploy_hash,
            payload={"hash": deploy_hash, "session": {"entry_point": call.entry_point}},
        )


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        node_address="http://node.test:7777/rpc",
        chain_name="casper-test",
        deploy_poll_interval_seconds=0.001,
        deploy_poll_attempts=3,
    )


@pytest.fixture
def node() -> FakeNode:
    fake = FakeNode()
    fake.named_values.update(
        {
            "identifier_mode": 0,
            "nft_metadata_kind": 0,
            "collection_name": "Box",
            "number_of_minted_tokens": 2,
            "total_token_supply": 100,
        }
    )
    return fake


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def connect(node: FakeNode, settings: AppSettings):
    """Crea un `CEP78Client` contra el nodo falso (llamar dentro del event loop)."""

    async def _connect(signer: FakeSigner | None = None, contract_hash: str = CONTRACT_HASH) -> CEP78Client:
        http_client = build_async_client(settings, transport=httpx.MockTransport(node.handler))
        return await CEP78Client.create_instance(
            contract_hash,
            settings=settings,
            signer=signer,
            http_client=http_client,
        )

    return _connect
