from __future__ import annotations

from factweave.adapters.labs import extract_findings, recommend_target_fields
from factweave.domain.hashing import canonical_hash
from factweave.domain.model import FindingImpact


def test_website_findings_by_kind() -> None:
    raw = {
        "rawEvidence": {
            "labResultV4": {
                "siteAssessment": {
                    "criticalIssues": [{"title": "Checkout broken", "description": "Cart 500s"}],
                    "issues": [{"title": "Small fonts", "severity": "low"}],
                    "quickWins": ["Add a demo CTA"],
                }
            }
        }
    }

    findings = extract_findings("website_lab", "run-1", raw)

    by_kind = {finding.kind: finding for finding in findings}
    assert set(by_kind) == {"critical_issue", "issue", "quick_win"}
    critical = by_kind["critical_issue"]
    assert critical.finding_id == f"wl-crit-{canonical_hash('Cart 500s', 'website_lab', 'critical_issue')}"
    assert critical.impact is FindingImpact.HIGH
    assert by_kind["issue"].impact is FindingImpact.LOW
    assert by_kind["quick_win"].title == "Add a demo CTA"
    assert critical.run_id == "run-1"


def test_same_text_across_runs_shares_hash() -> None:
    first = extract_findings("brand_lab", "run-1", {"issues": ["Tone is inconsistent"]})
    second = extract_findings("brand_lab", "run-2", {"issues": ["tone is  INCONSISTENT"]})

    assert first[0].canonical_hash == second[0].canonical_hash
    assert first[0].finding_id == second[0].finding_id


def test_competitor_findings_scale_impact_with_threat() -> None:
    raw = {
        "run": {
            "competitors": [
                {"name": "Alpha", "domain": "alpha.io", "scores": {"threatScore": 75}},
                {"name": "Beta", "scores": {"threatScore": 35}},
                {"name": "Gamma"},
                {"domain": "nameless.io"},
            ],
            "insights": [{"title": "Everyone competes on price"}],
        }
    }

    findings = extract_findings("competition_lab", None, raw)

    competitors = {f.title: f for f in findings if f.kind == "competitor"}
    assert competitors["Competitor: Alpha"].impact is FindingImpact.HIGH
    assert competitors["Competitor: Alpha"].evidence_url == "https://alpha.io"
    assert competitors["Competitor: Beta"].impact is FindingImpact.MEDIUM
    assert competitors["Competitor: Gamma"].impact is FindingImpact.LOW
    assert len(competitors) == 3
    assert any(f.kind == "insight" for f in findings)


def test_titles_are_truncated() -> None:
    findings = extract_findings("brand_lab", "r", {"quickWins": [{"title": "x" * 150}]})

    assert len(findings[0].title) == 100


def test_unknown_lab_or_bad_payload_yields_nothing() -> None:
    assert extract_findings("crm", "r", {"issues": ["x"]}) == []
    assert extract_findings("website_lab", "r", "not json") == []


def test_recommendations_rank_lab_domain_and_title_matches() -> None:
    recommendations = recommend_target_fields(
        lab_key="website_lab",
        title="Add quickWins to homepage",
        description="Improve the website hero",
        category="conversion",
    )

    assert recommendations[0].field_key == "website.quickWins"
    assert recommendations[0].match_score == 100
    assert len(recommendations) == 3
    assert all(item.match_score >= 50 for item in recommendations)
