"""Owned tokens, balance and token 0 metadata of a fixed CEP-78 contract.

Uso: `python scripts/get_info_cep78.py` (lee NODE_ADDRESS / CHAIN_NAME del .env).
"""

from __future__ import annotations

import asyncio
import logging
import sys

import httpx
from rich.console import Console

from adapters.contract_info import load_contract_info
from core.config import AppSettings
from core.domain.errors import Cep78Error
from core.log import setup_logging
from core.services.cep78_client import CEP78Client

CONTRACT_HASH = "be170557d9100704b63dc5de6039373dfdc8649cc467bf2f74ea14812d233def"
OWNER_PUBLIC_KEY = "0131e805fde6a85b63aa366990136b4759a596d9a988bde62b84131bc86a910e6b"
TOKEN_ID = 0
BRIDGE_NAMED_KEY = "dotoracle_nft_bridge_contract"

log = logging.getLogger("cep78.scripts.get_info")
console = Console()


async def main(settings: AppSettings, *, http_client: httpx.AsyncClient | None = None) -> None:
    if settings.contract_info_path.exists():
        bridge = load_contract_info(settings.contract_info_path).contract_hash(BRIDGE_NAMED_KEY)
        log.info("nft bridge contract: %s", bridge.hash_hex)

    async with await CEP78Client.create_instance(
        CONTRACT_HASH, settings=settings, http_client=http_client
    ) as contract:
        tokens = await contract.get_owned_tokens(OWNER_PUBLIC_KEY)
        metadata = await contract.get_token_metadata(TOKEN_ID)
        balance = await contract.balance_of(OWNER_PUBLIC_KEY)

    console.print("owned tokens:", tokens)
    console.print("balance:", balance)
    console.print(f"metadata of {TOKEN_ID}:", metadata)


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
