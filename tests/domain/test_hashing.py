from __future__ import annotations

from factweave.domain.hashing import canonical_hash, dedupe_key, normalize_text


def test_canonical_hash_ignores_case_and_whitespace() -> None:
    expected = canonical_hash("Missing CTA button", "website_lab", "issue")

    assert canonical_hash("missing  cta   button", "website_lab", "issue") == expected
    assert canonical_hash("MISSING CTA BUTTON", "website_lab", "issue") == expected
    assert canonical_hash("  Missing\tCTA\nbutton ", "website_lab", "issue") == expected


def test_canonical_hash_is_sixteen_hex_chars() -> None:
    value = canonical_hash("anything", "group", "kind")

    assert len(value) == 16
    int(value, 16)


def test_canonical_hash_discriminates_group_and_kind() -> None:
    base = canonical_hash("A", "k1", "t")

    assert canonical_hash("A", "k2", "t") != base
    assert canonical_hash("A", "k1", "u") != base


def test_normalize_text_handles_empty_input() -> None:
    assert normalize_text(None) == ""
    assert normalize_text("   ") == ""


def test_dedupe_key_is_stable_under_ordering_and_case() -> None:
    first = dedupe_key(
        entity_id="acme",
        field_key="brand.differentiators",
        source="lab",
        source_id="run-1",
        value=["Fast", "cheap"],
    )
    second = dedupe_key(
        entity_id="acme",
        field_key="brand.differentiators",
        source="lab",
        source_id="run-1",
        value=[" cheap", "FAST "],
    )

    assert first == second
    assert len(first) == 40


def test_dedupe_key_changes_with_source_id() -> None:
    kwargs = {"entity_id": "acme", "field_key": "website.websiteScore", "source": "lab"}

    assert dedupe_key(**kwargs, source_id="a", value=70) != dedupe_key(
        **kwargs, source_id="b", value=70
    )
