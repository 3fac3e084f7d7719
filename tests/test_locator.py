"""Tests for ManifestLocator — pure filesystem logic."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from depstatus.locator import ManifestLocator
from depstatus.models import Ecosystem


@pytest.fixture
def locator(tmp_path: Path) -> ManifestLocator:
    return ManifestLocator(tmp_path)


class TestLocate:
    def test_empty_file_set(self, locator):
        assert locator.locate(Ecosystem.GO) == []

    def test_tracked_manifest_located(self, tmp_path, locator):
        path = tmp_path / "go.mod"
        path.write_text("module x\n")
        handle = locator.track(path)
        entries = locator.locate(Ecosystem.GO)
        assert len(entries) == 1
        assert entries[0].container_id == handle
        assert entries[0].absolute_path == str(path.resolve())
        assert entries[0].file_name == "go.mod"

    def test_file_name_must_match_exactly(self, tmp_path, locator):
        locator.track(tmp_path / "requirements-dev.txt")
        locator.track(tmp_path / "old.package.json")
        locator.track(tmp_path / "Cargo.toml.bak")
        assert all(locator.locate(eco) == [] for eco in Ecosystem)

    def test_multiple_manifests_per_ecosystem(self, tmp_path, locator):
        (tmp_path / "a").mkdir()
        locator.track(tmp_path / "package.json")
        locator.track(tmp_path / "a" / "package.json")
        assert len(locator.locate(Ecosystem.NPM)) == 2
        assert locator.locate(Ecosystem.COMPOSER) == []

    def test_track_same_path_twice(self, tmp_path, locator):
        first = locator.track(tmp_path / "go.mod")
        second = locator.track(tmp_path / "go.mod")
        assert first == second
        assert len(locator.locate(Ecosystem.GO)) == 1

    def test_untrack_invalidates(self, tmp_path, locator):
        handle = locator.track(tmp_path / "go.mod")
        assert len(locator.locate(Ecosystem.GO)) == 1
        locator.untrack(handle)
        assert locator.locate(Ecosystem.GO) == []

    def test_cache_is_reused_until_invalidated(self, tmp_path, locator):
        locator.track(tmp_path / "go.mod")
        with patch.object(locator, "_build", wraps=locator._build) as build:
            locator.locate(Ecosystem.GO)
            locator.locate(Ecosystem.NPM)
            assert build.call_count == 1
            locator.invalidate()
            locator.locate(Ecosystem.GO)
            assert build.call_count == 2

    def test_returned_list_is_a_copy(self, tmp_path, locator):
        locator.track(tmp_path / "go.mod")
        locator.locate(Ecosystem.GO).clear()
        assert len(locator.locate(Ecosystem.GO)) == 1

    def test_discover(self, tmp_path, locator):
        (tmp_path / "Cargo.toml").write_text("")
        (tmp_path / "composer.json").write_text("{}")
        (tmp_path / "go.mod").mkdir()  # a directory is not a manifest
        locator.discover()
        assert len(locator.locate(Ecosystem.CARGO)) == 1
        assert len(locator.locate(Ecosystem.COMPOSER)) == 1
        assert locator.locate(Ecosystem.GO) == []


class TestExists:
    def test_memoized_until_invalidate(self, tmp_path, locator):
        path = tmp_path / "requirements.txt"
        assert locator.exists(path) is False
        path.write_text("flask\n")
        assert locator.exists(path) is False
        locator.invalidate()
        assert locator.exists(path) is True

    def test_directories_count(self, tmp_path, locator):
        (tmp_path / "node_modules").mkdir()
        assert locator.exists(tmp_path / "node_modules")

    def test_track_clears_existence_memo(self, tmp_path, locator):
        path = tmp_path / "go.mod"
        assert not locator.exists(path)
        path.write_text("")
        locator.track(path)
        assert locator.exists(path)
