"""Translate between domain aggregates and their stored JSON documents."""

from __future__ import annotations

from factweave.domain.model import (
    ContextGraph,
    FieldEvidence,
    FieldRecord,
    FieldStore,
    GraphNode,
    StoreMeta,
)

from .schema import (
    ContextGraphPayload,
    EvidencePayload,
    FieldRecordPayload,
    FieldStorePayload,
    GraphNodePayload,
    ProvenancePayload,
    StoreMetaPayload,
)


def dump_field_store(store: FieldStore) -> str:
    payload = FieldStorePayload(
        entity_id=store.entity_id,
        fields={key: _record_payload(record) for key, record in store.fields.items()},
        meta=StoreMetaPayload(last_updated=store.meta.last_updated),
    )
    return payload.model_dump_json(by_alias=True)


def load_field_store(document: str, *, version: int) -> FieldStore:
    """Parse a stored document; raises ``pydantic.ValidationError`` when malformed."""

    payload = FieldStorePayload.model_validate_json(document)
    return FieldStore(
        entity_id=payload.entity_id,
        fields={key: _record(key, item) for key, item in payload.fields.items()},
        meta=StoreMeta(last_updated=payload.meta.last_updated),
        version=version,
    )


def _record_payload(record: FieldRecord) -> FieldRecordPayload:
    evidence = record.evidence
    return FieldRecordPayload(
        key=record.key,
        value=record.value,
        status=record.status,
        confidence=record.confidence,
        evidence=EvidencePayload(
            source=evidence.source,
            source_id=evidence.source_id,
            importer_id=evidence.importer_id,
            original_source=evidence.original_source,
            text=evidence.text,
            pointer=evidence.pointer,
            is_inferred=evidence.is_inferred,
            finding_hash=evidence.finding_hash,
        ),
        updated_at=record.updated_at,
        created_at=record.created_at,
        dedupe_key=record.dedupe_key,
        locked_at=record.locked_at,
        locked_by=record.locked_by,
        rejected_at=record.rejected_at,
        rejected_reason=record.rejected_reason,
        rejected_source_id=record.rejected_source_id,
        previous_value=record.previous_value,
        previous_source=record.previous_source,
    )


def _record(key: str, payload: FieldRecordPayload) -> FieldRecord:
    evidence = payload.evidence
    return FieldRecord(
        key=key,
        value=payload.value,
        status=payload.status,
        confidence=payload.confidence,
        evidence=FieldEvidence(
            source=evidence.source,
            source_id=evidence.source_id,
            importer_id=evidence.importer_id,
            original_source=evidence.original_source,
            text=evidence.text,
            pointer=evidence.pointer,
            is_inferred=evidence.is_inferred,
            finding_hash=evidence.finding_hash,
        ),
        updated_at=payload.updated_at,
        created_at=payload.created_at or payload.updated_at,
        dedupe_key=payload.dedupe_key,
        locked_at=payload.locked_at,
        locked_by=payload.locked_by,
        rejected_at=payload.rejected_at,
        rejected_reason=payload.rejected_reason,
        rejected_source_id=payload.rejected_source_id,
        previous_value=payload.previous_value,
        previous_source=payload.previous_source,
    )


def dump_context_graph(graph: ContextGraph) -> str:
    flat = graph.flatten()
    payload = ContextGraphPayload(
        entity_id=graph.entity_id,
        domains={
            domain: {
                name: GraphNodePayload(
                    value=node.value,
                    source=node.source,
                    confidence=node.confidence,
                    confirmed_at=node.confirmed_at,
                    source_id=node.source_id,
                )
                for name, node in nodes.items()
            }
            for domain, nodes in graph.domains.items()
        },
        provenance=[
            ProvenancePayload(key=key, source=node.source, source_id=node.source_id)
            for key, node in sorted(flat.items())
        ],
        updated_at=graph.updated_at,
    )
    return payload.model_dump_json(by_alias=True)


def load_context_graph(document: str) -> ContextGraph:
    payload = ContextGraphPayload.model_validate_json(document)
    return ContextGraph(
        entity_id=payload.entity_id,
        domains={
            domain: {
                name: GraphNode(
                    value=node.value,
                    source=node.source,
                    confidence=node.confidence,
                    confirmed_at=node.confirmed_at,
                    source_id=node.source_id,
                )
                for name, node in nodes.items()
            }
            for domain, nodes in payload.domains.items()
        },
        updated_at=payload.updated_at,
    )
