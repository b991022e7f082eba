# noqa: D401
"""Tests for the ``sc`` command line."""

from __future__ import annotations

from pathlib import Path
from typing import List

import pytest
from typer.testing import CliRunner

from service_commander import __version__
from service_commander.main import app

runner = CliRunner()


@pytest.fixture
def services_dir(tmp_path: Path) -> Path:
    """Directory with two JOBNAME services that are never running."""
    directory = tmp_path / "services"
    directory.mkdir()
    (directory / "db.yaml").write_text(
        "name: Database\nstart_cmd: ./db\ncheck_alive: sc-test-no-such-db-job\n"
    )
    (directory / "web.yaml").write_text(
        "name: Web\nstart_cmd: ./web\ncheck_alive: sc-test-no-such-web-job\n"
        "service_dependencies:\n  - ghost\n  - db\n"
    )
    return directory


def _invoke(services_dir: Path, tmp_path: Path, *args: str):
    argv: List[str] = ["--services-dir", str(services_dir), "--logs-dir", str(tmp_path / "logs")]
    return runner.invoke(app, [*argv, *args])


class TestCli:
    """Test CLI commands against definitions on disk."""

    def test_version(self) -> None:
        """Test --version."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_list(self, services_dir: Path, tmp_path: Path) -> None:
        """Test listing services with status."""
        result = _invoke(services_dir, tmp_path, "list")

        assert result.exit_code == 0
        assert "db" in result.output
        assert "web" in result.output
        assert "stopped" in result.output

    def test_list_empty(self, tmp_path: Path) -> None:
        """Test listing with no definitions."""
        result = _invoke(tmp_path / "empty", tmp_path, "list")

        assert result.exit_code == 0
        assert "No services defined" in result.output

    def test_info(self, services_dir: Path, tmp_path: Path) -> None:
        """Test showing a definition."""
        result = _invoke(services_dir, tmp_path, "info", "db")

        assert result.exit_code == 0
        assert "Database" in result.output
        assert "./db" in result.output

    def test_check_not_running(self, services_dir: Path, tmp_path: Path) -> None:
        """Test that a stopped service exits non-zero."""
        result = _invoke(services_dir, tmp_path, "check", "db")

        assert result.exit_code == 1
        assert "NOT RUNNING" in result.output

    def test_unknown_service(self, services_dir: Path, tmp_path: Path) -> None:
        """Test operations on an undefined service."""
        for command in ("start", "stop", "check", "info"):
            result = _invoke(services_dir, tmp_path, command, "nope")

            assert result.exit_code == 1, command
            assert "Error" in result.output

    def test_start_with_unresolved_dependency(self, services_dir: Path, tmp_path: Path) -> None:
        """Test that a missing dependency fails the start."""
        result = _invoke(services_dir, tmp_path, "start", "web")

        assert result.exit_code == 1
        assert "ghost" in result.output
