from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from adapters.casper_rpc import CasperRPC, cl_value_parsed
from adapters.http_client import build_async_client
from core.domain.errors import CasperRPCError

from conftest import CONTRACT_HASH, STATE_ROOT_HASH, FakeNode


def _rpc(settings, handler) -> CasperRPC:
    client = build_async_client(settings, transport=httpx.MockTransport(handler))
    return CasperRPC(settings.node_address, settings=settings, client=client)


def test_get_item_queries_latest_state_root(settings, node: FakeNode) -> None:
    async def scenario():
        async with _rpc(settings, node.handler) as rpc:
            return await rpc.get_item(f"hash-{CONTRACT_HASH}", ["collection_name"])

    stored = asyncio.run(scenario())
    assert cl_value_parsed(stored) == "Box"
    assert node.methods() == ["chain_get_state_root_hash", "state_get_item"]
    params = node.requests[1]["params"]
    assert params == {"state_root_hash": STATE_ROOT_HASH, "key": f"hash-{CONTRACT_HASH}", "path": ["collection_name"]}


def test_request_ids_increase(settings, node: FakeNode) -> None:
    async def scenario():
        async with _rpc(settings, node.handler) as rpc:
            await rpc.get_state_root_hash()
            await rpc.get_status()

    asyncio.run(scenario())
    assert [request["id"] for request in node.requests] == [1, 2]
    assert all(request["jsonrpc"] == "2.0" for request in node.requests)


def test_dictionary_item_uses_contract_named_key(settings, node: FakeNode) -> None:
    node.set_dictionary("balances", "ab" * 32, 3)

    async def scenario():
        async with _rpc(settings, node.handler) as rpc:
            return await rpc.get_dictionary_item(f"hash-{CONTRACT_HASH}", "balances", "ab" * 32)

    assert cl_value_parsed(asyncio.run(scenario())) == 3
    identifier = node.requests[-1]["params"]["dictionary_identifier"]
    assert identifier == {
        "ContractNamedKey": {
            "key": f"hash-{CONTRACT_HASH}",
            "dictionary_name": "balances",
            "dictionary_item_key": "ab" * 32,
        }
    }


def test_json_rpc_error_is_raised_with_code(settings, node: FakeNode) -> None:
    async def scenario():
        async with _rpc(settings, node.handler) as rpc:
            await rpc.get_dictionary_item(f"hash-{CONTRACT_HASH}", "balances", "missing")

    with pytest.raises(CasperRPCError) as info:
        asyncio.run(scenario())
    assert info.value.code == -32003
    assert info.value.method == "state_get_dictionary_item"
    assert info.value.is_not_found


def test_http_error_status(settings, node: FakeNode) -> None:
    node.fail_with_status = 503

    async def scenario():
        async with _rpc(settings, node.handler) as rpc:
            await rpc.get_state_root_hash()

    with pytest.raises(CasperRPCError) as info:
        asyncio.run(scenario())
    assert info.value.status_code == 503
    assert not info.value.is_not_found


def test_transport_failure_is_wrapped(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        async with _rpc(settings, handler) as rpc:
            await rpc.get_status()

    with pytest.raises(CasperRPCError, match="connection refused"):
        asyncio.run(scenario())


def test_invalid_json_body(settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    async def scenario():
        async with _rpc(settings, handler) as rpc:
            await rpc.get_status()

    with pytest.raises(CasperRPCError, match="invalid JSON"):
        asyncio.run(scenario())


def test_put_deploy_returns_node_hash(settings, node: FakeNode) -> None:
    deploy = {"hash": "ef" * 32, "header": {}, "payment": {}, "session": {}, "approvals": []}

    async def scenario():
        async with _rpc(settings, node.handler) as rpc:
            return await rpc.put_deploy(deploy)

    assert asyncio.run(scenario()) == "ef" * 32
    assert node.submitted == [deploy]
    assert json.dumps(node.requests[-1]["params"]) == json.dumps({"deploy": deploy})


def test_non_cl_value_is_rejected() -> None:
    with pytest.raises(CasperRPCError):
        cl_value_parsed({"Account": {}})
