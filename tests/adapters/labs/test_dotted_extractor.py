from __future__ import annotations

from factweave.adapters.labs import DottedFieldExtractor, get_extractor


def test_allow_list_filters_foreign_domains() -> None:
    extractor = DottedFieldExtractor("website_only", frozenset({"website"}))

    result = extractor({"brand.positioning": "Premium", "website.score": 81})

    assert result.extraction_path == "direct"
    assert result.keys == ["website.score"]
    assert result.skipped.wrong_domain >= 1
    assert result.skipped_wrong_domain_keys == ["brand.positioning"]


def test_candidates_layout_keeps_confidence_and_evidence() -> None:
    extractor = DottedFieldExtractor("gap_plan", frozenset({"identity", "audience"}))

    result = extractor(
        {
            "candidates": [
                {"key": "identity.businessModel", "value": "Marketplace", "confidence": 0.9},
                {"key": "audience.primaryAudience", "value": "", "confidence": 0.9},
                {"key": "audience.painPoints", "value": ["Churn"], "evidence": "Interview notes"},
                "not-a-mapping",
            ]
        }
    )

    by_key = {candidate.key: candidate for candidate in result.candidates}
    assert result.extraction_path == "candidates"
    assert by_key["identity.businessModel"].confidence == 0.9
    assert by_key["audience.painPoints"].confidence == 0.7
    assert by_key["audience.painPoints"].evidence_text == "Interview notes"
    assert result.skipped.empty_value == 1
    assert result.skipped.no_mapping == 1


def test_fields_layout() -> None:
    extractor = DottedFieldExtractor("gap_plan", frozenset({"objectives"}), default_confidence=0.6)

    result = extractor({"fields": {"objectives.primary": "Grow pipeline", "nodot": "x"}})

    assert result.extraction_path == "fields"
    assert [(c.key, c.confidence) for c in result.candidates] == [("objectives.primary", 0.6)]
    assert result.skipped.no_mapping == 1


def test_payload_without_dotted_keys_fails_softly() -> None:
    result = DottedFieldExtractor("gap_plan", frozenset({"brand"}))({"plain": "value"})

    assert result.candidates == []
    assert result.failure_reason == "No dotted field keys found in raw data"


def test_registry_lookup() -> None:
    assert get_extractor("gap_plan") is not None
    assert get_extractor("website_lab") is not None
    assert get_extractor("unknown_lab") is None
