"""Stored document schemas for field stores and context graphs."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field

from factweave.domain.model import (  # noqa: TC001
    FieldSource,
    FieldStatus,
    JsonValue,
)

FIELD_STORE_SCHEMA_VERSION = 1


class StoredModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EvidencePayload(StoredModel):
    source: FieldSource
    source_id: str | None = Field(default=None, alias="sourceId")
    importer_id: str | None = Field(default=None, alias="importerId")
    original_source: str | None = Field(default=None, alias="originalSource")
    text: str | None = None
    pointer: str | None = None
    is_inferred: bool = Field(default=False, alias="isInferred")
    finding_hash: str | None = Field(default=None, alias="findingHash")


class FieldRecordPayload(StoredModel):
    key: str
    value: JsonValue = None
    status: FieldStatus
    confidence: float = Field(ge=0.0, le=1.0)
    evidence: EvidencePayload
    updated_at: datetime = Field(alias="updatedAt")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    dedupe_key: str | None = Field(default=None, alias="dedupeKey")
    locked_at: datetime | None = Field(default=None, alias="lockedAt")
    locked_by: str | None = Field(default=None, alias="lockedBy")
    rejected_at: datetime | None = Field(default=None, alias="rejectedAt")
    rejected_reason: str | None = Field(default=None, alias="rejectedReason")
    rejected_source_id: str | None = Field(default=None, alias="rejectedSourceId")
    previous_value: JsonValue = Field(default=None, alias="previousValue")
    previous_source: FieldSource | None = Field(default=None, alias="previousSource")


class StoreMetaPayload(StoredModel):
    last_updated: datetime = Field(alias="lastUpdated")


class FieldStorePayload(StoredModel):
    schema_version: int = Field(default=FIELD_STORE_SCHEMA_VERSION, alias="schemaVersion")
    entity_id: str = Field(alias="entityId")
    fields: dict[str, FieldRecordPayload] = Field(default_factory=dict[str, FieldRecordPayload])
    meta: StoreMetaPayload


class GraphNodePayload(StoredModel):
    value: JsonValue = None
    source: FieldSource
    confidence: float
    confirmed_at: datetime | None = Field(default=None, alias="confirmedAt")
    source_id: str | None = Field(default=None, alias="sourceId")


class ProvenancePayload(StoredModel):
    key: str
    source: FieldSource
    source_id: str | None = Field(default=None, alias="sourceId")


class ContextGraphPayload(StoredModel):
    entity_id: str = Field(alias="entityId")
    domains: dict[str, dict[str, GraphNodePayload]] = Field(
        default_factory=dict[str, dict[str, GraphNodePayload]]
    )
    provenance: list[ProvenancePayload] = Field(default_factory=list[ProvenancePayload])
    updated_at: datetime = Field(alias="updatedAt")
