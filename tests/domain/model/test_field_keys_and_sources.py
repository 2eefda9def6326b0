from __future__ import annotations

import pytest

from factweave.domain.model import (
    FieldKeyError,
    FieldSource,
    clamp_confidence,
    compute_confidence,
    field_domain,
    map_source,
    parse_field_key,
    preview_value,
)


def test_parse_field_key_splits_on_first_dot() -> None:
    assert parse_field_key("website.scores.seo") == ("website", "scores.seo")


@pytest.mark.parametrize("key", ["website", ".score", "website.", "website..score", 42])
def test_parse_field_key_rejects_malformed_keys(key: object) -> None:
    with pytest.raises(FieldKeyError):
        parse_field_key(key)


def test_field_domain_returns_none_for_malformed_key() -> None:
    assert field_domain("brand.positioning") == "brand"
    assert field_domain("nodot") is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("manual", FieldSource.USER),
        ("QBR", FieldSource.USER),
        ("website_lab", FieldSource.LAB),
        ("fcb", FieldSource.LAB),
        ("gap_plan", FieldSource.GAP),
        ("brain", FieldSource.AI),
        ("airtable", FieldSource.CRM),
        ("spreadsheet", FieldSource.IMPORT),
        (None, FieldSource.IMPORT),
    ],
)
def test_map_source_normalizes_producers(raw: str | None, expected: FieldSource) -> None:
    assert map_source(raw) is expected


def test_compute_confidence_adds_bonus_for_long_evidence() -> None:
    assert compute_confidence(FieldSource.LAB) == pytest.approx(0.8)
    assert compute_confidence(FieldSource.LAB, "x" * 101) == pytest.approx(0.9)
    assert compute_confidence(FieldSource.USER, "x" * 101) == 1.0


def test_clamp_confidence_bounds_values() -> None:
    assert clamp_confidence(1.7) == 1.0
    assert clamp_confidence(-0.2) == 0.0
    assert clamp_confidence(float("nan")) == 0.0


def test_preview_value_truncates_long_values() -> None:
    preview = preview_value("word " * 50, max_len=20)

    assert len(preview) == 20
    assert preview.endswith("...")
    assert preview_value({"a": 1}) == '{"a": 1}'
