"""Domain-level exceptions raised by stores and proposal inputs."""

from __future__ import annotations

from enum import StrEnum


class FieldKeyError(ValueError):
    """Raised when a field key is not a ``<domain>.<field>`` dotted path."""

    def __init__(self, key: object) -> None:
        super().__init__(f"Invalid field key {key!r}: expected '<domain>.<field>'")
        self.key = key


class StoreLoadErrorKind(StrEnum):
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    UNKNOWN = "UNKNOWN"


class StoreLoadError(RuntimeError):
    """Raised when a persisted field store exists but cannot be read."""

    def __init__(self, entity_id: str, kind: StoreLoadErrorKind, message: str) -> None:
        super().__init__(f"Failed to load field store for {entity_id} ({kind}): {message}")
        self.entity_id = entity_id
        self.kind = kind
        self.message = message


class StoreSaveError(RuntimeError):
    """Raised when the whole field store could not be written."""


class StaleStoreError(StoreSaveError):
    """Raised when the persisted store changed since it was loaded."""

    def __init__(self, entity_id: str, expected_version: int, actual_version: int) -> None:
        super().__init__(
            f"Field store for {entity_id} is stale: loaded version {expected_version}, "
            f"persisted version {actual_version}"
        )
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
