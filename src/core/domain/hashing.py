"""Hashes usados para direccionar estado on-chain.

No es criptografía de firmado (eso es del SDK): solo derivación de claves de
diccionario e identificadores que el contrato calcula de la misma manera.
"""

from __future__ import annotations

import hashlib

ALGORITHM_PREFIXES = {
    "01": "ed25519",
    "02": "secp256k1",
}

PUBLIC_KEY_HEX_LENGTHS = {
    "01": 66,
    "02": 68,
}


def blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


def account_hash_from_public_key(public_key_hex: str) -> str:
    """Account hash (hex) de una clave pública con prefijo de algoritmo.

    `blake2b-256(nombre_algoritmo || 0x00 || clave_sin_prefijo)`
    """

    raw = public_key_hex.strip().lower()
    algo = ALGORITHM_PREFIXES.get(raw[:2])
    if algo is None or len(raw) != PUBLIC_KEY_HEX_LENGTHS[raw[:2]]:
        raise ValueError(f"Not a Casper public key: {public_key_hex!r}")
    key_bytes = bytes.fromhex(raw[2:])
    return blake2b256(algo.encode("utf-8") + b"\x00" + key_bytes).hex()


def hash_token_uri(uri: str) -> str:
    """sha256 hex de una URI de token (p.ej. `ipfs://.../10`)."""

    return hashlib.sha256(uri.encode("utf-8")).hexdigest()


def token_hash_for_metadata(metadata: str) -> str:
    """Identificador de token en modo hash: blake2b-256 de la metadata tal cual."""

    return blake2b256(metadata.encode("utf-8")).hex()


def operator_dictionary_key(owner_bytes: bytes, operator_bytes: bytes) -> str:
    return blake2b256(owner_bytes + operator_bytes).hex()
