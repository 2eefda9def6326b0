from __future__ import annotations

from factweave.adapters.memory import InMemoryDebounceStore
from tests.helpers.fakes import FakeMonotonic


def test_marker_blocks_until_ttl_expires() -> None:
    ticks = FakeMonotonic()
    store = InMemoryDebounceStore(clock=ticks)

    assert store.set_if_absent("autopropose:acme:website_lab", 60)
    assert not store.set_if_absent("autopropose:acme:website_lab", 60)
    assert "autopropose:acme:website_lab" in store

    ticks.advance(60)

    assert "autopropose:acme:website_lab" not in store
    assert store.set_if_absent("autopropose:acme:website_lab", 60)


def test_keys_are_independent() -> None:
    store = InMemoryDebounceStore(clock=FakeMonotonic())

    assert store.set_if_absent("a", 10)
    assert store.set_if_absent("b", 10)


def test_clear_releases_marker() -> None:
    store = InMemoryDebounceStore(clock=FakeMonotonic())
    store.set_if_absent("a", 10)

    store.clear("a")
    store.clear("missing")

    assert store.set_if_absent("a", 10)
