# noqa: D401
"""Unit tests for the shell launcher."""

from __future__ import annotations

import shlex
import time
from pathlib import Path

from service_commander.launcher import ProcessLauncher, background_command, build_environment


def _wait_for_text(path: Path, timeout: float = 5.0) -> str:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if path.exists() and path.read_text().strip():
            return path.read_text()
        time.sleep(0.05)
    return path.read_text() if path.exists() else ""


class TestBuildEnvironment:
    """Test child environment construction."""

    def test_inherit(self) -> None:
        """Test that the base environment is copied."""
        env = build_environment(True, ["B=2"], base={"A": "1"})

        assert env == {"A": "1", "B": "2"}

    def test_no_inherit(self) -> None:
        """Test a clean environment."""
        env = build_environment(False, ["B=2"], base={"A": "1"})

        assert env == {"B": "2"}

    def test_last_write_wins(self) -> None:
        """Test duplicate keys and overriding inherited values."""
        env = build_environment(True, ["A=x", "A=y", "C=a=b"], base={"A": "1"})

        assert env == {"A": "y", "C": "a=b"}

    def test_empty_value(self) -> None:
        """Test KEY= clears a value."""
        assert build_environment(False, ["EMPTY="]) == {"EMPTY": ""}


class TestBackgroundCommand:
    """Test detached command lines."""

    def test_redirects_and_detaches(self) -> None:
        """Test nohup, append redirection and backgrounding."""
        line = background_command("./run.sh --port 80", Path("/var/log/sc/x.log"))

        assert line == "nohup ./run.sh --port 80 >> /var/log/sc/x.log 2>&1 &"

    def test_log_path_is_quoted(self) -> None:
        """Test a log path with spaces survives the shell."""
        line = background_command("run", Path("/tmp/my logs/a.log"))

        tokens = shlex.split(line)
        assert tokens[tokens.index(">>") + 1] == "/tmp/my logs/a.log"


class TestProcessLauncher:
    """Test launching through a real shell."""

    def test_launch_writes_to_log(self, tmp_path: Path) -> None:
        """Test that a backgrounded command appends to the log file."""
        log_file = tmp_path / "op.log"

        ProcessLauncher().launch(
            background_command('echo "$GREETING from $PWD"', log_file),
            tmp_path,
            {"GREETING": "hello", "PATH": "/usr/bin:/bin"},
            service_name="echo",
        )

        assert _wait_for_text(log_file).strip() == f"hello from {tmp_path}"

    def test_launch_does_not_wait(self, tmp_path: Path) -> None:
        """Test that launch returns before a long-running command ends."""
        started = time.monotonic()

        ProcessLauncher().launch(
            background_command("sleep 3", tmp_path / "sleep.log"),
            tmp_path,
            {"PATH": "/usr/bin:/bin"},
        )

        assert time.monotonic() - started < 2.0
