"""Authorize the factory contract package as minter of the wrapped CEP-78 contract.

Necesita `keys.json` (o KEYS_PATH) con la clave de la cuenta instaladora.
"""

from __future__ import annotations

import asyncio
import logging
import sys

import httpx
from rich.console import Console

from adapters.deploy_signer import PycsprDeploySigner
from core.config import AppSettings
from core.domain.errors import Cep78Error
from core.interfaces.signer import DeploySigner
from core.log import setup_logging
from core.services.cep78_client import CEP78Client

CONTRACT_HASH = "64aabeaa53ada9eaa1265774ecd1f28de052c9f059eb2b2511e1a99ea022f097"
FACTORY_PACKAGE_HASH = "76b9625447de65b85924bb697c95bda151b7dad363915047f11bfeb15d4a7c19"

log = logging.getLogger("cep78.scripts.box_set_minter")
console = Console()


async def main(
    settings: AppSettings,
    *,
    signer: DeploySigner | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> None:
    signer = signer or PycsprDeploySigner.from_settings(settings)
    console.print("node:", settings.node_address, settings.chain_name)
    async with await CEP78Client.create_instance(
        CONTRACT_HASH, settings=settings, signer=signer, http_client=http_client
    ) as contract:
        deploy_hash = await contract.set_minter(FACTORY_PACKAGE_HASH)
        console.print(f"... set_minter deploy hash: {deploy_hash}")
        result = await contract.wait_for_deploy(deploy_hash)
    console.print(f"... minter set (cost {result.cost} motes)")


def run() -> None:
    settings = AppSettings()
    setup_logging(settings.log_level)
    try:
        asyncio.run(main(settings))
    except Cep78Error as exc:
        log.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    run()
