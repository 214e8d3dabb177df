"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta en el borde: hashes y claves llegan como strings
  pegados a mano en scripts y flags de CLI.
- Serialización directa a JSON para exportar resultados.

Nota:
- Estos modelos describen *qué* se direcciona on-chain, no *cómo* se consulta.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from pydantic.config import ConfigDict

from core.domain import cep78
from core.domain.errors import InvalidReferenceError
from core.domain.hashing import (
    ALGORITHM_PREFIXES,
    PUBLIC_KEY_HEX_LENGTHS,
    account_hash_from_public_key,
)

_HEX32_RE = re.compile(r"^[0-9a-f]{64}$")


def _normalize_hash(value: str, prefixes: tuple[str, ...]) -> str:
    raw = value.strip().lower()
    for prefix in prefixes:
        if raw.startswith(prefix):
            raw = raw[len(prefix):]
            break
    if not _HEX32_RE.match(raw):
        raise InvalidReferenceError(f"Expected a 32-byte hex hash, got {value!r}")
    return raw


class ContractRef(BaseModel):
    """Hash de un contrato desplegado. Inmutable."""

    model_config = ConfigDict(frozen=True)

    hash_hex: str = Field(
        ...,
        description="Contract hash (hex, 64 caracteres, sin prefijo).",
    )

    @field_validator("hash_hex", mode="before")
    @classmethod
    def _strip_prefix(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise InvalidReferenceError(f"Contract hash must be a string, got {value!r}")
        return _normalize_hash(value, ("hash-", "contract-"))

    @classmethod
    def parse(cls, value: str) -> "ContractRef":
        return cls(hash_hex=_normalize_hash(value, ("hash-", "contract-")))

    @property
    def key(self) -> str:
        """Forma `hash-<hex>` para consultas a global state."""

        return f"hash-{self.hash_hex}"

    def __str__(self) -> str:
        return self.hash_hex


class KeyKind(str, Enum):
    ACCOUNT = "account"
    HASH = "hash"

    @property
    def tag(self) -> int:
        return 0 if self is KeyKind.ACCOUNT else 1

    @property
    def prefix(self) -> str:
        return "account-hash-" if self is KeyKind.ACCOUNT else "hash-"


class CasperKey(BaseModel):
    """Referencia a una cuenta o a un contrato/paquete (`Key` de Casper).

    Acepta:
    - clave pública hex (`01...` ed25519, `02...` secp256k1)
    - account hash (`account-hash-<hex>` o 64 hex sin prefijo)
    - `hash-<hex>` para contratos / contract packages
    """

    model_config = ConfigDict(frozen=True)

    kind: KeyKind = Field(..., description="Variante de la clave.")
    identifier_hex: str = Field(
        ...,
        description="Identificador de 32 bytes (hex) que guarda el contrato.",
    )
    public_key_hex: str | None = Field(
        default=None,
        description="Clave pública de la que se derivó la referencia, si la hay.",
    )

    @field_validator("identifier_hex", mode="before")
    @classmethod
    def _check_identifier(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise InvalidReferenceError(f"Key identifier must be a string, got {value!r}")
        return _normalize_hash(value, ())

    @classmethod
    def from_public_key(cls, public_key_hex: str) -> "CasperKey":
        try:
            account_hash = account_hash_from_public_key(public_key_hex)
        except ValueError as exc:
            raise InvalidReferenceError(str(exc)) from exc
        return cls(
            kind=KeyKind.ACCOUNT,
            identifier_hex=account_hash,
            public_key_hex=public_key_hex.strip().lower(),
        )

    @classmethod
    def account(cls, account_hash: str) -> "CasperKey":
        return cls(kind=KeyKind.ACCOUNT, identifier_hex=_normalize_hash(account_hash, ("account-hash-",)))

    @classmethod
    def contract(cls, contract_hash: str) -> "CasperKey":
        return cls(
            kind=KeyKind.HASH,
            identifier_hex=_normalize_hash(
                contract_hash,
                ("hash-", "contract-package-wasm", "contract-package-", "contract-"),
            ),
        )

    @classmethod
    def parse(cls, value: str) -> "CasperKey":
        raw = value.strip().lower()
        if raw.startswith("account-hash-"):
            return cls.account(raw)
        if raw.startswith(("hash-", "contract-")):
            return cls.contract(raw)
        prefix = raw[:2]
        if prefix in ALGORITHM_PREFIXES and len(raw) == PUBLIC_KEY_HEX_LENGTHS[prefix]:
            return cls.from_public_key(raw)
        if _HEX32_RE.match(raw):
            return cls.account(raw)
        raise InvalidReferenceError(f"Not a public key, account hash or contract hash: {value!r}")

    @classmethod
    def from_parsed(cls, parsed: Any) -> "CasperKey":
        """Construye la clave desde el `parsed` JSON de un CLValue `Key`.

        El nodo la devuelve como `"account-hash-..."` o como `{"Account": "account-hash-..."}`.
        """

        if isinstance(parsed, dict):
            if "Account" in parsed:
                return cls.account(str(parsed["Account"]))
            if "Hash" in parsed:
                return cls.contract(str(parsed["Hash"]))
            raise InvalidReferenceError(f"Unsupported key variant: {parsed!r}")
        if isinstance(parsed, str):
            return cls.parse(parsed)
        raise InvalidReferenceError(f"Unsupported key value: {parsed!r}")

    @property
    def dictionary_item_key(self) -> str:
        return self.identifier_hex

    @property
    def formatted(self) -> str:
        return f"{self.kind.prefix}{self.identifier_hex}"

    def to_bytes(self) -> bytes:
        return bytes([self.kind.tag]) + bytes.fromhex(self.identifier_hex)

    def __str__(self) -> str:
        return self.formatted


class TokenIdentifier(BaseModel):
    """Token por índice (`token_id`) o por hash (`token_hash`)."""

    model_config = ConfigDict(frozen=True)

    token_id: int | None = Field(default=None, ge=0, lt=2**64)
    token_hash: str | None = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _exactly_one(self) -> "TokenIdentifier":
        if (self.token_id is None) == (self.token_hash is None):
            raise InvalidReferenceError("A token is identified by exactly one of token_id / token_hash")
        return self

    @classmethod
    def parse(cls, value: str | int) -> "TokenIdentifier":
        try:
            if isinstance(value, int):
                return cls(token_id=value)
            raw = value.strip()
            if raw.isascii() and raw.isdigit():
                return cls(token_id=int(raw))
            return cls(token_hash=raw)
        except ValidationError as exc:
            raise InvalidReferenceError(f"Invalid token identifier: {value!r}") from exc

    @property
    def mode(self) -> cep78.NFTIdentifierMode:
        if self.token_id is not None:
            return cep78.NFTIdentifierMode.ORDINAL
        return cep78.NFTIdentifierMode.HASH

    @property
    def dictionary_item_key(self) -> str:
        if self.token_id is not None:
            return str(self.token_id)
        return str(self.token_hash)

    def as_call_arg(self) -> "CallArg":
        if self.token_id is not None:
            return CallArg(name=cep78.ARG_TOKEN_ID, kind=ArgKind.U64, value=self.token_id)
        return CallArg(name=cep78.ARG_TOKEN_HASH, kind=ArgKind.STRING, value=self.token_hash)

    def __str__(self) -> str:
        return self.dictionary_item_key


class ArgKind(str, Enum):
    KEY = "key"
    STRING = "string"
    U64 = "u64"
    BOOL = "bool"


class CallArg(BaseModel):
    """Argumento tipado de un entry point, independiente del SDK."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    kind: ArgKind
    value: Any

    @model_validator(mode="after")
    def _check_value(self) -> "CallArg":
        expected: dict[ArgKind, type | tuple[type, ...]] = {
            ArgKind.KEY: CasperKey,
            ArgKind.STRING: str,
            ArgKind.U64: int,
            ArgKind.BOOL: bool,
        }
        if not isinstance(self.value, expected[self.kind]):
            raise InvalidReferenceError(f"Argument {self.name!r} is not a valid {self.kind.value}")
        if self.kind is ArgKind.U64 and (isinstance(self.value, bool) or not 0 <= self.value < 2**64):
            raise InvalidReferenceError(f"Argument {self.name!r} is out of u64 range")
        return self


class ContractCall(BaseModel):
    """Llamada a un entry point del contrato (lo que se firma y envía)."""

    entry_point: str = Field(..., min_length=1)
    args: list[CallArg] = Field(default_factory=list)

    def arg(self, name: str) -> CallArg | None:
        for item in self.args:
            if item.name == name:
                return item
        return None


class SignedDeploy(BaseModel):
    deploy_hash: str = Field(..., min_length=64, max_length=64)
    payload: dict[str, Any] = Field(
        ...,
        description="Deploy en JSON, listo para `account_put_deploy`.",
    )


class DeployResult(BaseModel):
    """Resultado de ejecución de un deploy ya finalizado (o pendiente)."""

    deploy_hash: str
    status: cep78.ExecutionStatus = cep78.ExecutionStatus.PENDING
    block_hash: str | None = None
    cost: int | None = None
    error_message: str | None = None


class NamedKey(BaseModel):
    name: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)


class ContractInfo(BaseModel):
    """Contenido de `contractinfo.json` (named keys de la cuenta instaladora)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    named_keys: list[NamedKey] = Field(default_factory=list, alias="namedKeys")

    def find(self, name: str) -> NamedKey | None:
        for item in self.named_keys:
            if item.name == name:
                return item
        return None

    def contract_hash(self, name: str) -> ContractRef:
        item = self.find(name)
        if item is None:
            raise InvalidReferenceError(f"Named key {name!r} not present in contract info")
        return ContractRef.parse(item.key)


def encode_metadata(metadata: dict[str, Any] | str) -> str:
    """Metadata tal y como la guarda el contrato (string JSON)."""

    if isinstance(metadata, str):
        return metadata
    return json.dumps(metadata, separators=(",", ":"), ensure_ascii=False)
