"""Lectura de la clave privada local.

Formatos soportados:
- `keys.json`: `{"key": "<cuerpo base64 del PEM>"}` (lo que usaban los scripts)
- fichero PEM completo (`secret_key.pem` de casper-client)

Solo Ed25519. Devuelve los 32 bytes crudos; el SDK construye la clave.
"""

from __future__ import annotations

import base64
import binascii
import json
from pathlib import Path

from core.domain.errors import ConfigurationError

# Prefijo DER PKCS#8 de una clave privada Ed25519 (48 bytes en total).
_ED25519_PKCS8_PREFIX = bytes.fromhex("302e020100300506032b657004220420")


def _pem_body(text: str) -> str:
    lines = [line.strip() for line in text.strip().splitlines()]
    return "".join(line for line in lines if line and not line.startswith("-----"))


def decode_private_key(body: str) -> bytes:
    """Clave Ed25519 cruda (32 bytes) desde el base64 de un PEM."""

    try:
        der = base64.b64decode(_pem_body(body), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError("Private key is not valid base64") from exc

    if len(der) == 32:
        return der
    if len(der) == 48 and der.startswith(_ED25519_PKCS8_PREFIX):
        return der[-32:]
    raise ConfigurationError(f"Unsupported private key encoding ({len(der)} bytes)")


def load_private_key_bytes(path: Path) -> bytes:
    if not path.exists():
        raise ConfigurationError(f"Key file not found: {path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Key file is not valid JSON: {path}") from exc
        key = data.get("key") if isinstance(data, dict) else None
        if not isinstance(key, str) or not key.strip():
            raise ConfigurationError(f"Key file has no 'key' entry: {path}")
        return decode_private_key(key)

    return decode_private_key(text)
