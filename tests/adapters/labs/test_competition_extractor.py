from __future__ import annotations

from typing import Any

from factweave.adapters.labs import CompetitionLabExtractor
from factweave.adapters.labs.competition import PRIMARY_CAP


def _competitor(name: str, kind: str, *, threat: float, relevance: float = 0, **extra: Any) -> dict[str, Any]:
    return {
        "name": name,
        "domain": f"{name.lower()}.com",
        "classification": {"type": kind, "confidence": 0.8},
        "scores": {"threatScore": threat, "relevanceScore": relevance},
        **extra,
    }


def test_quality_gates_primary_competitors() -> None:
    raw = {
        "run": {
            "status": "completed",
            "competitors": [
                _competitor("Alpha", "direct", threat=80, analysis={"whyCompetitor": "Same buyers"}),
                _competitor("Beta", "direct", threat=10, relevance=5),
                _competitor("Gamma", "platform", threat=5, relevance=40),
                _competitor(
                    "Delta",
                    "partial",
                    threat=30,
                    classification={
                        "type": "partial",
                        "signals": {
                            "businessModelMatch": True,
                            "sameMarket": True,
                            "serviceOverlap": True,
                        },
                    },
                ),
            ],
        }
    }

    result = CompetitionLabExtractor()(raw)

    values = {candidate.key: candidate.value for candidate in result.candidates}
    primary_names = [item["name"] for item in values["competition.primaryCompetitors"]]
    assert result.extraction_path == "run"
    assert primary_names == ["Alpha", "Delta"]
    assert values["competition.marketAlternatives"] == [
        {"name": "Gamma", "domain": "gamma.com", "type": "Platform/Tool"}
    ]
    assert values["competition.threatSummary"].startswith("Alpha (threat: 80%): Same buyers")


def test_primary_competitors_are_capped() -> None:
    raw = {
        "competitors": [
            _competitor(f"C{index}", "direct", threat=30 + index) for index in range(8)
        ]
    }

    result = CompetitionLabExtractor()(raw)

    [primary] = [c for c in result.candidates if c.key == "competition.primaryCompetitors"]
    assert len(primary.value) == PRIMARY_CAP
    assert primary.value[0]["name"] == "C7"


def test_low_confidence_run_is_an_error_state() -> None:
    raw = {
        "status": "completed",
        "competitors": [],
        "errorInfo": {"type": "LOW_CONFIDENCE_CONTEXT", "message": "Not enough context"},
    }

    result = CompetitionLabExtractor()(raw)

    assert result.candidates == []
    assert result.error_state is not None
    assert result.error_state.error_type == "LOW_CONFIDENCE_CONTEXT"


def test_running_run_is_incomplete() -> None:
    result = CompetitionLabExtractor()({"status": "running", "competitors": []})

    assert result.error_state is not None
    assert result.error_state.error_type == "INCOMPLETE"


def test_invalid_payload_degrades_to_zero_candidates() -> None:
    result = CompetitionLabExtractor()({"competitors": [{"domain": "no-name.com"}]})

    assert result.candidates == []
    assert result.failure_reason == "Competition run payload did not validate"
