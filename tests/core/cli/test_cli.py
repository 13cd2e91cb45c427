"""Tests for the CLI entry point."""

import json
import os
import sys

import pytest
from click.testing import CliRunner
from loguru import logger

from tabby.core.cli import main
from tabby.core.exceptions import StorageFailure
from tabby.journal.store import EntryStore


@pytest.fixture(autouse=True)
def _restore_logging():
    """Commands reconfigure loguru against the runner's stderr; put it back."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def invoke(tmp_dir):
    runner = CliRunner()
    base = ["--config", os.path.join(tmp_dir, "config.yaml"), "--data-dir", tmp_dir]

    def _invoke(*args, **kwargs):
        return runner.invoke(main, [*base, *args], **kwargs)

    return _invoke


class TestCliGroup:
    def test_help(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Tabby Journal" in result.output
        for command in ("today", "write", "show", "export", "import", "reminders"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestEntryCommands:
    def test_today_creates_empty_entry(self, invoke):
        result = invoke("today")
        assert result.exit_code == 0
        assert "Intention:  (empty)" in result.output

    def test_write_and_show(self, invoke):
        result = invoke("write", "--day", "2024-03-01", "--intention", "Walk the dog", "--goal", "Finish report")
        assert result.exit_code == 0, result.output
        assert "Intention:  Walk the dog" in result.output

        result = invoke("show", "2024-03-01")
        assert result.exit_code == 0
        assert "# 2024-03-01" in result.output
        assert "Goal:       Finish report" in result.output
        assert "Reflection: (empty)" in result.output

    def test_write_same_value_reports_no_changes(self, invoke):
        invoke("write", "--day", "2024-03-01", "--mood", "calm")
        result = invoke("write", "--day", "2024-03-01", "--mood", "calm")
        assert "(no changes)" in result.output
        assert "Mood:       calm" in result.output

    def test_write_requires_a_field(self, invoke):
        result = invoke("write", "--day", "2024-03-01")
        assert result.exit_code == 2

    def test_bad_day(self, invoke):
        result = invoke("show", "03/01/2024")
        assert result.exit_code == 2

    def test_show_missing(self, invoke):
        result = invoke("show", "2024-03-01")
        assert result.exit_code == 0
        assert "No entry for 2024-03-01" in result.output

    def test_range(self, invoke):
        invoke("write", "--day", "2024-03-03", "--intention", "later")
        invoke("write", "--day", "2024-03-01", "--goal", "earlier")
        result = invoke("range", "2024-03-01", "2024-03-31")
        lines = result.output.strip().splitlines()
        assert lines == ["2024-03-01  - | earlier", "2024-03-03  later | -"]

        assert "No entries in range." in invoke("range", "2020-01-01", "2020-01-31").output

    def test_delete(self, invoke):
        invoke("write", "--day", "2024-03-01", "--goal", "g")
        assert "Deleted entry for 2024-03-01" in invoke("delete", "2024-03-01").output
        assert "No entry for 2024-03-01" in invoke("delete", "2024-03-01").output

    def test_reset(self, invoke):
        invoke("write", "--day", "2024-03-01", "--goal", "g")
        invoke("write", "--day", "2024-03-02", "--goal", "g")
        result = invoke("reset", "--yes")
        assert result.exit_code == 0
        assert "Deleted 2 entries." in result.output

    def test_reset_aborts_without_confirmation(self, invoke):
        invoke("write", "--day", "2024-03-01", "--goal", "g")
        result = invoke("reset", input="n\n")
        assert result.exit_code == 1
        assert "No entry" not in invoke("show", "2024-03-01").output

    def test_widget(self, invoke):
        result = invoke("widget")
        assert "INTENTION  Set your intention" in result.output
        assert "GOALS      Set your goal" in result.output

        invoke("write", "--intention", "Walk the dog")
        result = invoke("widget")
        assert "INTENTION  Walk the dog" in result.output
        assert "GOALS      No goal set" in result.output


class TestBackupCommands:
    def test_export_then_import(self, invoke, tmp_dir):
        invoke("write", "--day", "2024-03-01", "--intention", "Walk the dog", "--goal", "Finish report")
        result = invoke("export")
        assert result.exit_code == 0
        backup_path = os.path.join(tmp_dir, "documents", "journal_backup.json")
        assert f"Backup saved to {backup_path}" in result.output

        with open(backup_path, encoding="utf-8") as f:
            assert len(json.load(f)) == 1

        invoke("reset", "--yes")
        result = invoke("import")
        assert result.exit_code == 0
        assert "Restored 1 entries (1 new, 0 updated)." in result.output
        assert "Walk the dog" in invoke("show", "2024-03-01").output

    def test_import_file(self, invoke, tmp_dir):
        path = os.path.join(tmp_dir, "manual.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump([{"day": "2024-03-01", "reflection": "from file"}], f)
        result = invoke("import", path)
        assert result.exit_code == 0
        assert "Reflection: from file" in invoke("show", "2024-03-01").output

    def test_import_without_backup_fails(self, invoke):
        result = invoke("import")
        assert result.exit_code == 1

    def test_import_malformed_fails_and_changes_nothing(self, invoke, tmp_dir):
        invoke("write", "--day", "2024-03-01", "--goal", "kept")
        path = os.path.join(tmp_dir, "bad.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write('[{"day": "2024-03-02", "goal": "new"}, {"goal": "no day"}]')
        result = invoke("import", path)
        assert result.exit_code == 1
        assert "No entry for 2024-03-02" in invoke("show", "2024-03-02").output

    def test_export_failure(self, invoke, tmp_dir):
        blocker = os.path.join(tmp_dir, "blocker")
        with open(blocker, "w") as f:
            f.write("x")
        result = invoke("export", os.path.join(blocker, "backup.json"))
        assert result.exit_code == 1

    def test_export_with_failing_store(self, invoke, monkeypatch):
        def locked(self):
            raise StorageFailure("fetch_all", "database is locked")

        monkeypatch.setattr(EntryStore, "fetch_all", locked)
        result = invoke("export")
        assert result.exit_code == 1
        assert "Export failed: fetch_all failed: database is locked" in result.output
        assert "Traceback" not in result.output

    def test_import_with_failing_store(self, invoke, tmp_dir, monkeypatch):
        path = os.path.join(tmp_dir, "manual.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump([{"day": "2024-03-01", "goal": "never lands"}], f)

        def locked(self, records):
            raise StorageFailure("merge", "database is locked")

        monkeypatch.setattr(EntryStore, "merge", locked)
        result = invoke("import", path)
        assert result.exit_code == 1
        assert "Import failed: merge failed: database is locked" in result.output
        assert not isinstance(result.exception, StorageFailure)


class TestRemindersCommand:
    def test_lists_defaults(self, invoke):
        result = invoke("reminders")
        assert result.exit_code == 0
        assert "intention_reminder: off" in result.output
        assert "reflection_reminder: off" in result.output

    def test_enabled_from_config(self, invoke, monkeypatch):
        monkeypatch.setenv("TABBY_REMINDERS__REFLECTION__ENABLED", "yes")
        result = invoke("reminders")
        assert "reflection_reminder: 21:00  Reflect on your day" in result.output

    def test_watch_with_nothing_enabled(self, invoke):
        result = invoke("reminders", "--watch")
        assert result.exit_code == 0
        assert "No reminders enabled." in result.output
