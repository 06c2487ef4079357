"""Unit tests for the notes CLI (guest mode, file storage in a temp directory)."""

import re
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from notesync.cli import app

runner = CliRunner(env={"COLUMNS": "200"})


@pytest.fixture(autouse=True)
def local_directory(tmp_path: Path):
    with patch("notesync.cli.get_storage_directory", return_value=tmp_path):
        yield tmp_path


def _add(title: str, *extra: str) -> str:
    result = runner.invoke(app, ["add", title, *extra])
    assert result.exit_code == 0, result.stdout
    match = re.search(r"Created (\S+)", result.stdout)
    assert match is not None
    return match.group(1)


class TestMainApp:
    def test_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Notes CLI" in result.stdout

    def test_debug_flag(self) -> None:
        result = runner.invoke(app, ["--debug", "list"])
        assert result.exit_code == 0
        assert "Debug mode enabled" in result.stdout


class TestGuestCommands:
    def test_empty_list(self) -> None:
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "nothing here" in result.stdout

    def test_add_and_list(self, local_directory: Path) -> None:
        note_id = _add("Groceries", "-c", "milk")

        assert note_id.startswith("guest-")
        assert (local_directory / "guestNotes.json").exists()
        result = runner.invoke(app, ["list"])
        assert "Groceries" in result.stdout

    def test_show_and_search(self) -> None:
        note_id = _add("Groceries", "-c", "milk and eggs")

        shown = runner.invoke(app, ["show", note_id])
        assert shown.exit_code == 0
        assert "milk and eggs" in shown.stdout

        found = runner.invoke(app, ["search", "EGGS"])
        assert "Groceries" in found.stdout

    def test_trash_restore_purge(self) -> None:
        note_id = _add("Old")

        assert runner.invoke(app, ["trash", note_id]).exit_code == 0
        assert "Old" in runner.invoke(app, ["list", "--trash"]).stdout
        assert runner.invoke(app, ["restore", note_id]).exit_code == 0
        assert runner.invoke(app, ["trash", note_id]).exit_code == 0

        purged = runner.invoke(app, ["purge", note_id])
        assert purged.exit_code == 0
        assert "nothing here" in runner.invoke(app, ["list", "--trash"]).stdout

    def test_empty_trash(self) -> None:
        for title in ("a", "b"):
            runner.invoke(app, ["trash", _add(title)])

        result = runner.invoke(app, ["empty-trash"])

        assert result.exit_code == 0
        assert "Removed 2 note(s)" in result.stdout

    def test_purge_active_note_fails(self) -> None:
        note_id = _add("Keep")

        result = runner.invoke(app, ["purge", note_id])

        assert result.exit_code == 1
        assert "RES_CONFLICT" in result.stdout

    def test_pin(self) -> None:
        note_id = _add("Pin me")
        result = runner.invoke(app, ["pin", note_id])
        assert "Pinned" in result.stdout

    def test_unknown_note(self) -> None:
        result = runner.invoke(app, ["show", "guest-missing"])
        assert result.exit_code == 1
        assert "RES_NOT_FOUND" in result.stdout

    def test_sync_requires_user(self) -> None:
        result = runner.invoke(app, ["sync"])
        assert result.exit_code == 1
        assert "sync needs --user" in result.stdout
