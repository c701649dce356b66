# tests/core/test_scan_state_manager.py
import json
import os
import tempfile

import pytest

from a11y_auditor.managers.scan_state_manager import ScanStateManager


@pytest.fixture
def manager(tmp_path):
    return ScanStateManager(tmp_path / "tmp" / "state.json")


@pytest.fixture
def template(tmp_path):
    path = tmp_path / "index.html.erb"
    path.write_text("<p>x</p>", encoding="utf-8")
    return str(path)


def test_new_files_are_changed(manager, template):
    """Test dat een bestand zonder state als gewijzigd geldt."""
    assert manager.changed_files([template]) == [template]


def test_update_then_unchanged(manager, template):
    manager.update_state([template])
    assert manager.changed_files([template]) == []


def test_touched_file_is_changed(manager, template):
    manager.update_state([template])
    stat = os.stat(template)
    os.utime(template, (stat.st_atime, stat.st_mtime + 10))

    assert manager.changed_files([template]) == [template]


def test_missing_candidates_are_ignored(manager, tmp_path):
    assert manager.changed_files([str(tmp_path / "weg.html.erb")]) == []


def test_corrupt_state_means_full_scan(manager, template):
    """Test dat een corrupt state file als lege state wordt gelezen."""
    manager.state_file.parent.mkdir(parents=True)
    manager.state_file.write_text("{niet json", encoding="utf-8")

    assert manager.load_state() == {}
    assert manager.changed_files([template]) == [template]


def test_non_object_state_is_ignored(manager):
    manager.state_file.parent.mkdir(parents=True)
    manager.state_file.write_text("[1, 2]", encoding="utf-8")
    assert manager.load_state() == {}


def test_vanished_files_are_dropped(manager, template, tmp_path):
    other = tmp_path / "other.html.erb"
    other.write_text("", encoding="utf-8")
    manager.update_state([template, str(other)])

    other.unlink()
    manager.update_state([template])

    assert list(manager.load_state()) == [template]


def test_save_leaves_no_temporary_files(manager, template):
    manager.update_state([template])

    leftovers = [p.name for p in manager.state_file.parent.iterdir() if p.name != "state.json"]
    assert leftovers == []
    assert json.loads(manager.state_file.read_text(encoding="utf-8"))[template] == os.path.getmtime(template)


def test_save_failure_returns_false(manager, monkeypatch):
    """Test dat een mislukte schrijfactie gelogd wordt en False teruggeeft."""
    def broken_mkstemp(*args, **kwargs):
        raise OSError("disk vol")

    monkeypatch.setattr(tempfile, "mkstemp", broken_mkstemp)

    assert manager.save_state({"a": 1.0}) is False
    assert not manager.state_file.exists()


def test_clear_state(manager, template):
    manager.update_state([template])
    manager.clear_state()

    assert not manager.state_file.exists()
    assert manager.changed_files([template]) == [template]
    # Nogmaals wissen is geen fout
    manager.clear_state()
