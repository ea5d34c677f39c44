from __future__ import annotations

import json
from collections import Counter
from functools import lru_cache
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from condosplit.models import AppConfig
from condosplit.sample_config import sample_config_data
from condosplit.services.rules import ConfigError

REQUIRED_KEYS = ("condomini", "tables", "billTypes")


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def _ensure_unique(ids: Iterable[str], what: str) -> None:
    duplicates = sorted(key for key, count in Counter(ids).items() if count > 1)
    if duplicates:
        raise ConfigError(f"Id duplicati in {what}: {', '.join(duplicates)}")


def load_config(data: Mapping[str, Any]) -> AppConfig:
    """Build an :class:`AppConfig` from the JSON export shape.

    Unknown keys are ignored and optional fields take their defaults.
    Missing or malformed required data raises :class:`ConfigError`.
    """
    if not isinstance(data, Mapping):
        raise ConfigError("La configurazione deve essere un oggetto JSON")

    missing = [key for key in REQUIRED_KEYS if not isinstance(data.get(key), list)]
    if missing:
        raise ConfigError(f"Configurazione non valida, elenchi mancanti: {', '.join(missing)}")

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Configurazione non valida: {_format_validation_error(exc)}") from exc

    _ensure_unique((c.id for c in config.condomini), "condomini")
    _ensure_unique((t.id for t in config.tables), "tables")
    _ensure_unique((bt.id for bt in config.bill_types), "billTypes")
    for bill_type in config.bill_types:
        _ensure_unique((s.id for s in bill_type.subtypes), f"billTypes.{bill_type.id}.subtypes")

    return config


def load_config_json(text: str | bytes) -> AppConfig:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"JSON non valido: {exc.msg} (riga {exc.lineno})") from exc
    return load_config(data)


def dump_config(config: AppConfig) -> dict[str, Any]:
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


def dump_config_json(config: AppConfig) -> str:
    return json.dumps(dump_config(config), ensure_ascii=False, indent=2)


def merge_imported(data: Mapping[str, Any]) -> AppConfig:
    """Import semantics of the editing surface: absent lists keep the sample ones."""
    if not isinstance(data, Mapping):
        raise ConfigError("La configurazione deve essere un oggetto JSON")

    merged = {**sample_config_data(), **data}
    sample = sample_config_data()
    for key in REQUIRED_KEYS:
        if merged.get(key) is None:
            merged[key] = sample[key]
    return load_config(merged)


@lru_cache(maxsize=1)
def sample_config() -> AppConfig:
    return load_config(sample_config_data())
