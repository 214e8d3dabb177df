"""Constantes del contrato CEP-78.

Nombres de diccionarios, named keys, entry points y argumentos tal y como los
define el contrato desplegado. El contrato es opaco para esta herramienta:
aquí solo se recoge su superficie pública.
"""

from __future__ import annotations

import re
from enum import Enum, IntEnum

from core.domain.errors import InvalidReferenceError

# Diccionarios
OWNED_TOKENS = "owned_tokens"
BALANCES = "balances"
TOKEN_OWNERS = "token_owners"
BURNT_TOKENS = "burnt_tokens"
OPERATOR = "operator"
OPERATORS = "operators"
PAGE_TABLE = "page_table"

# Named keys
IDENTIFIER_MODE = "identifier_mode"
NFT_METADATA_KIND = "nft_metadata_kind"
COLLECTION_NAME = "collection_name"
NUMBER_OF_MINTED_TOKENS = "number_of_minted_tokens"
TOTAL_TOKEN_SUPPLY = "total_token_supply"

# Entry points
ENTRY_POINT_MINT = "mint"
ENTRY_POINT_REGISTER_OWNER = "register_owner"
ENTRY_POINT_SET_MINTER = "set_minter"
ENTRY_POINT_APPROVE = "approve"
ENTRY_POINT_SET_APPROVAL_FOR_ALL = "set_approval_for_all"
ENTRY_POINT_TRANSFER = "transfer"
ENTRY_POINT_BURN = "burn"
ENTRY_POINT_SET_TOKEN_METADATA = "set_token_metadata"

# Argumentos
ARG_TOKEN_OWNER = "token_owner"
ARG_TOKEN_META_DATA = "token_meta_data"
ARG_TOKEN_ID = "token_id"
ARG_TOKEN_HASH = "token_hash"
ARG_MINTER = "minter"
ARG_SPENDER = "spender"
ARG_OPERATOR = "operator"
ARG_APPROVE_ALL = "approve_all"
ARG_SOURCE_KEY = "source_key"
ARG_TARGET_KEY = "target_key"


class NFTIdentifierMode(IntEnum):
    """Cómo identifica el contrato a sus tokens."""

    ORDINAL = 0
    HASH = 1

    @classmethod
    def from_value(cls, value: object) -> "NFTIdentifierMode":
        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise InvalidReferenceError(f"Unknown identifier mode: {value!r}") from exc


class NFTMetadataKind(IntEnum):
    """Esquema de metadata del contrato; decide el diccionario a consultar."""

    CEP78 = 0
    NFT721 = 1
    RAW = 2
    CUSTOM_VALIDATED = 3

    @classmethod
    def from_value(cls, value: object) -> "NFTMetadataKind":
        try:
            return cls(int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise InvalidReferenceError(f"Unknown metadata kind: {value!r}") from exc

    @property
    def dictionary_name(self) -> str:
        return _METADATA_DICTIONARIES[self]


_METADATA_DICTIONARIES = {
    NFTMetadataKind.CEP78: "metadata_cep78",
    NFTMetadataKind.NFT721: "metadata_nft721",
    NFTMetadataKind.RAW: "metadata_raw",
    NFTMetadataKind.CUSTOM_VALIDATED: "metadata_custom_validated",
}


class ExecutionStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


# Códigos `User error: N` observados en el contrato.
USER_ERRORS: dict[int, str] = {
    6: "InvalidTokenOwner",
    59: "MintingIsPaused",
    102: "InvalidMetadataMutability",
    104: "ForbiddenMetadataUpdate",
}

_USER_ERROR_RE = re.compile(r"user error:\s*(\d+)", re.IGNORECASE)


def parse_user_error(error_message: str | None) -> tuple[int | None, str | None]:
    """Extrae el código `User error: N` de un mensaje de ejecución del nodo."""

    if not error_message:
        return None, None
    match = _USER_ERROR_RE.search(error_message)
    if not match:
        return None, None
    code = int(match.group(1))
    return code, USER_ERRORS.get(code)
