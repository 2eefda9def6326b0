from __future__ import annotations

import json
from typing import Any

from factweave.adapters.labs import WebsiteLabExtractor


def _lab_result() -> dict[str, Any]:
    return {
        "siteAssessment": {
            "score": 68,
            "executiveSummary": "A solid B2B site with weak calls to action on key pages.",
            "keyIssues": [{"title": "No primary CTA above the fold"}, "Slow pricing page"],
            "quickWins": [{"title": "Add demo button", "quickWin": True}, {"title": "Other"}],
            "businessModel": "B2B SaaS",
        },
        "trustAnalysis": {"trustScore": 55},
        "personas": [{"name": "Ops lead"}],
        "siteGraph": {"pages": [{"url": "/"}, {"url": "/pricing"}]},
    }


def test_maps_nested_lab_result() -> None:
    result = WebsiteLabExtractor()({"rawEvidence": {"labResultV4": _lab_result()}})

    values = {candidate.key: candidate.value for candidate in result.candidates}
    assert result.extraction_path == "rawEvidence.labResultV4"
    assert values["website.websiteScore"] == 68
    assert values["website.conversionBlocks"] == [
        "No primary CTA above the fold",
        "Slow pricing page",
    ]
    assert values["website.quickWins"] == ["Add demo button"]
    assert values["website.pageCount"] == 2
    assert values["identity.businessModel"] == "B2B SaaS"


def test_cross_domain_data_is_counted_not_emitted() -> None:
    result = WebsiteLabExtractor()(_lab_result())

    keys = set(result.keys)
    assert result.extraction_path == "direct"
    assert "brand.trustScore" not in keys
    assert "audience.personas" not in keys
    assert result.skipped.wrong_domain >= 2
    assert "brand.trustScore" in result.skipped_wrong_domain_keys


def test_inferred_candidates_are_flagged() -> None:
    result = WebsiteLabExtractor()(_lab_result())

    inferred = {c.key: c for c in result.candidates if c.is_inferred}
    assert "identity.businessModel" in inferred
    assert inferred["identity.businessModel"].confidence < 0.8


def test_accepts_json_text_and_vnext_layout() -> None:
    raw = json.dumps(
        {
            "score": 74,
            "summary": {"headline": "Decent site"},
            "issues": [{"title": "Form too long", "page": "/contact"}],
        }
    )

    result = WebsiteLabExtractor()(raw)

    values = {candidate.key: candidate.value for candidate in result.candidates}
    assert result.extraction_path == "direct (fallback)"
    assert values["website.websiteScore"] == 74
    assert values["website.websiteSummary"] == "Decent site"
    assert values["website.pageAssessments"] == {"/contact": ["Form too long"]}


def test_unknown_shape_yields_no_candidates() -> None:
    result = WebsiteLabExtractor()({"something": {"else": 1}})

    assert result.extraction_path == "unknown"
    assert result.candidates == []
    assert result.failure_reason is not None
    assert result.top_level_keys == ["something"]


def test_empty_and_garbage_input_never_raise() -> None:
    extractor = WebsiteLabExtractor()

    for raw in (None, {}, "", "not json", [1, 2, 3]):
        result = extractor(raw)  # type: ignore[arg-type]
        assert result.candidates == []
        assert result.failure_reason is not None


def test_failed_run_reports_error_state() -> None:
    result = WebsiteLabExtractor()({"status": "failed", "siteAssessment": {"score": 10}})

    assert result.candidates == []
    assert result.error_state is not None
    assert result.error_state.error_type == "DIAGNOSTIC_FAILED"
