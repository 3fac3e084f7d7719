"""Tests for the Aggregator snapshot store."""

from __future__ import annotations

import pytest

from depstatus.aggregator import Aggregator
from depstatus.models import CheckKind, Ecosystem, PackageRecord


def _records(*names: str, version: str = "2.0") -> dict[str, PackageRecord]:
    return {n: PackageRecord(n, "1.0", version) for n in names}


@pytest.fixture
def aggregator() -> Aggregator:
    return Aggregator()


class TestStoreAndQuery:
    def test_absent_before_first_store(self, aggregator):
        assert aggregator.query(Ecosystem.GO, CheckKind.OUTDATED) is None

    def test_store_then_query(self, aggregator):
        aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("a"), ["a: 1.0 → 2.0"])
        snap = aggregator.query(Ecosystem.GO, CheckKind.OUTDATED)
        assert snap is not None
        assert "a" in snap
        assert snap.display == ("a: 1.0 → 2.0",)

    def test_replacement_never_mixes(self, aggregator):
        aggregator.store(Ecosystem.NPM, CheckKind.OUTDATED, _records("old1", "shared"))
        aggregator.store(Ecosystem.NPM, CheckKind.OUTDATED, _records("shared", "new1", version="3.0"))
        snap = aggregator.query(Ecosystem.NPM, CheckKind.OUTDATED)
        assert set(snap.packages) == {"shared", "new1"}
        assert snap.packages["shared"].available_version == "3.0"

    def test_old_snapshot_unchanged_after_replacement(self, aggregator):
        aggregator.store(Ecosystem.NPM, CheckKind.OUTDATED, _records("a"))
        before = aggregator.query(Ecosystem.NPM, CheckKind.OUTDATED)
        aggregator.store(Ecosystem.NPM, CheckKind.OUTDATED, _records("b"))
        assert set(before.packages) == {"a"}

    def test_snapshot_is_read_only(self, aggregator):
        packages = _records("a")
        aggregator.store(Ecosystem.CARGO, CheckKind.OUTDATED, packages)
        snap = aggregator.query(Ecosystem.CARGO, CheckKind.OUTDATED)
        with pytest.raises(TypeError):
            snap.packages["b"] = PackageRecord("b", "1", "2")  # type: ignore[index]
        packages["c"] = PackageRecord("c", "1", "2")
        assert "c" not in snap

    def test_kinds_are_independent(self, aggregator):
        aggregator.store(Ecosystem.PYTHON, CheckKind.OUTDATED, _records("a"))
        assert aggregator.query(Ecosystem.PYTHON, CheckKind.VULNERABILITIES) is None
        aggregator.store(Ecosystem.PYTHON, CheckKind.VULNERABILITIES, {})
        assert len(aggregator.query(Ecosystem.PYTHON, CheckKind.OUTDATED)) == 1

    def test_ecosystems_are_independent(self, aggregator):
        aggregator.store(Ecosystem.PYTHON, CheckKind.OUTDATED, _records("a"))
        aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("b"))
        assert set(aggregator.query(Ecosystem.PYTHON, CheckKind.OUTDATED).packages) == {"a"}

    def test_reset_clears_everything(self, aggregator):
        aggregator.store(Ecosystem.PYTHON, CheckKind.OUTDATED, _records("a"))
        aggregator.store(Ecosystem.GO, CheckKind.VULNERABILITIES, {})
        aggregator.reset()
        assert aggregator.snapshots() == {}


class TestTickets:
    def test_stale_store_discarded(self, aggregator):
        first = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        second = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        assert aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("new"), ticket=second)
        assert not aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("old"), ticket=first)
        assert set(aggregator.query(Ecosystem.GO, CheckKind.OUTDATED).packages) == {"new"}

    def test_in_order_completion_accepted(self, aggregator):
        first = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        second = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        assert aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("a"), ticket=first)
        assert aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("b"), ticket=second)
        assert set(aggregator.query(Ecosystem.GO, CheckKind.OUTDATED).packages) == {"b"}

    def test_tickets_are_per_key(self, aggregator):
        go = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        npm = aggregator.begin(Ecosystem.NPM, CheckKind.OUTDATED)
        assert aggregator.store(Ecosystem.NPM, CheckKind.OUTDATED, {}, ticket=npm)
        assert aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, {}, ticket=go)

    def test_unticketed_store_always_applies(self, aggregator):
        ticket = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("a"), ticket=ticket)
        assert aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, _records("b"))


class TestListeners:
    def test_notified_on_store_and_reset(self, aggregator):
        events = []
        aggregator.subscribe(events.append)
        aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, {})
        aggregator.reset()
        assert events == [(Ecosystem.GO, CheckKind.OUTDATED), None]

    def test_not_notified_for_discarded_store(self, aggregator):
        events = []
        old = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        new = aggregator.begin(Ecosystem.GO, CheckKind.OUTDATED)
        aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, {}, ticket=new)
        aggregator.subscribe(events.append)
        aggregator.store(Ecosystem.GO, CheckKind.OUTDATED, {}, ticket=old)
        assert events == []

    def test_unsubscribe(self, aggregator):
        events = []
        unsubscribe = aggregator.subscribe(events.append)
        unsubscribe()
        aggregator.reset()
        assert events == []
