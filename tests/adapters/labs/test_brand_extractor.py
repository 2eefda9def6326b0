from __future__ import annotations

from factweave.adapters.labs import BrandLabExtractor


def test_maps_findings_layout() -> None:
    raw = {
        "brandLab": {
            "findings": {
                "valueProp": {"headline": "Ship faster", "description": "Release weekly."},
                "positioning": {"statement": "The ops platform for mid-market teams"},
                "icp": {"primaryAudience": "Heads of operations", "buyerRoles": ["COO", "VP Ops"]},
                "differentiators": {"bullets": ["Fast setup", {"title": "Native integrations"}]},
                "toneOfVoice": {"descriptor": "Confident and plain"},
                "messaging": {
                    "pillars": [{"title": "Speed", "support": "Days not months"}, {"title": "Trust"}]
                },
            }
        }
    }

    result = BrandLabExtractor()(raw)

    values = {candidate.key: candidate.value for candidate in result.candidates}
    assert result.extraction_path == "brandLab.findings"
    assert values["productOffer.valueProposition"] == "Ship faster: Release weekly."
    assert values["brand.positioning"] == "The ops platform for mid-market teams"
    assert values["audience.primaryAudience"] == "Heads of operations"
    assert values["audience.buyerRoles"] == ["COO", "VP Ops"]
    assert values["brand.differentiators"] == ["Fast setup", "Native integrations"]
    assert values["brand.messagingPillars"] == ["Speed: Days not months", "Trust"]


def test_positioning_summary_is_a_lower_confidence_fallback() -> None:
    raw = {"findings": {"positioning": {"summary": "Mid-market ops tooling"}}}

    result = BrandLabExtractor()(raw)

    [candidate] = [c for c in result.candidates if c.key == "brand.positioning"]
    assert result.extraction_path == "findings"
    assert candidate.value == "Mid-market ops tooling"
    assert candidate.confidence == 0.75


def test_maps_legacy_layout() -> None:
    raw = {
        "result": {
            "positioning": "Affordable analytics",
            "strengths": ["Price", ""],
            "competitivePosition": "Challenger",
        }
    }

    result = BrandLabExtractor()(raw)

    values = {candidate.key: candidate.value for candidate in result.candidates}
    assert result.extraction_path == "result (fallback)"
    assert values == {
        "brand.positioning": "Affordable analytics",
        "brand.brandStrengths": ["Price"],
        "brand.competitivePosition": "Challenger",
    }


def test_no_brand_data_yields_no_candidates() -> None:
    result = BrandLabExtractor()({"website": {"score": 50}})

    assert result.candidates == []
    assert result.extraction_path == "unknown"
