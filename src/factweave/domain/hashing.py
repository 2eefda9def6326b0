"""Canonical hashing for recognising the same underlying fact.

Two hashes live here:
- ``canonical_hash``: short fingerprint of free text within a grouping and kind,
  used to match findings across runs and across target fields
- ``dedupe_key``: full fingerprint of one proposed value for one field, used to tell
  whether a record came from a given proposal
"""

from __future__ import annotations

import hashlib
import json
import unicodedata
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from factweave.domain.model import EntityId, FieldKey, JsonValue

CANONICAL_HASH_LENGTH: Final[int] = 16


def normalize_text(text: str | None) -> str:
    """Case-fold, collapse whitespace runs to one space and trim."""

    if not text:
        return ""
    value = unicodedata.normalize("NFKC", text).casefold()
    return " ".join(value.split())


def canonical_hash(text: str | None, group_key: str, kind: str) -> str:
    """Return a 16-hex-char fingerprint of ``text`` scoped to ``group_key`` and ``kind``."""

    payload = f"{normalize_text(text)}|{group_key}|{kind}"
    digest = hashlib.sha1(payload.encode("utf-8"), usedforsecurity=False).hexdigest()
    return digest[:CANONICAL_HASH_LENGTH]


def dedupe_key(
    *,
    entity_id: EntityId,
    field_key: FieldKey,
    source: str,
    source_id: str | None,
    value: JsonValue,
) -> str:
    """Return a 40-hex-char fingerprint of one proposal, stable under key/list ordering."""

    payload = {
        "entity_id": entity_id,
        "field_key": field_key,
        "source": source,
        "source_id": source_id or "",
        "value": _normalize_value(value),
    }
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha1(encoded.encode("utf-8"), usedforsecurity=False).hexdigest()


def _normalize_value(value: object) -> object:
    if isinstance(value, str):
        return value.strip().lower()
    if isinstance(value, Mapping):
        return {str(key): _normalize_value(item) for key, item in value.items()}  # pyright: ignore[reportUnknownVariableType]
    if isinstance(value, Sequence):
        items = [_normalize_value(item) for item in value]  # pyright: ignore[reportUnknownVariableType]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, default=str))
    return value
