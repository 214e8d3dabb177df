"""Carga de `contractinfo.json`.

Formato (lo que devuelve `state_get_item` sobre la cuenta instaladora):
- {"namedKeys": [{"name": "...", "key": "hash-..."}, ...]}
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from core.domain.errors import ConfigurationError
from core.domain.models import ContractInfo


def load_contract_info(path: Path) -> ContractInfo:
    if not path.exists():
        raise ConfigurationError(f"Contract info file not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Contract info is not valid JSON: {path}") from exc
    try:
        return ContractInfo.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Contract info has an unexpected shape: {path}") from exc
