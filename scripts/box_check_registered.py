"""Whether a fixed owner is registered in the box CEP-78 contract."""

from __future__ import annotations

import asyncio
import logging
import sys

import httpx
from rich.console import Console

from core.config import AppSettings
from core.domain.errors import Cep78Error
from core.domain.hashing import hash_token_uri
from core.log import setup_logging
from core.services.cep78_client import CEP78Client

CONTRACT_HASH = "bcbfa6148e89086a0c3664e7f531dc41ac08ff7343447b88aa304092a91b22f0"
OWNER_ACCOUNT_HASH = "55884917f4107a59e8c06557baee7fdada631af6d1c105984d196a84562854eb"
SAMPLE_TOKEN_URI = "ipfs://QmeSjSinHpPnmXmspMjwiXyN6zS4E9zccariGR3jxcaWtq/10"

log = logging.getLogger("cep78.scripts.box_check_registered")
console = Console()


async def main(settings: AppSettings, *, http_client: httpx.AsyncClient | None = None) -> None:
    console.print("node:", settings.node_address, settings.chain_name)
    async with await CEP78Client.create_instance(
        CONTRACT_HASH, settings=settings, http_client=http_client
    ) as contract:
        console.print("sha:", hash_token_uri(SAMPLE_TOKEN_URI))
        registered = await contract.check_register_owner(OWNER_ACCOUNT_HASH)
    console.print("registered:", registered)


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
