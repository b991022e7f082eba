# noqa: D401
"""Shell launcher for service start/stop commands.

Commands are written to a shell's stdin. The command line itself takes care of
backgrounding and redirecting output to the operation log file, so the
launcher never waits on the launched work.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import threading
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional

from .logging import get_logger

LOGGER = get_logger(__name__)


def build_environment(
    inherit: bool,
    custom_vars: Iterable[str],
    base: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Build a child environment.

    Args:
        inherit: Seed with ``base`` (defaults to ``os.environ``)
        custom_vars: KEY=VALUE entries applied in order, last write wins

    Returns:
        Environment mapping for the child process
    """
    env: Dict[str, str] = dict(os.environ if base is None else base) if inherit else {}
    for entry in custom_vars:
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def background_command(command: str, log_file: Path) -> str:
    """Command line that runs ``command`` detached, appending output to ``log_file``."""
    return f"nohup {command} >> {shlex.quote(str(log_file))} 2>&1 &"


class ProcessLauncher:
    """Fire-and-forget command launcher."""

    def __init__(self, shell: str = "/bin/sh"):
        self.shell = shell

    def launch(
        self,
        command_line: str,
        working_directory: Path,
        environment: Mapping[str, str],
        service_name: Optional[str] = None,
    ) -> None:
        """Run ``command_line`` in a fresh shell.

        Args:
            command_line: Full shell command line, including redirection
            working_directory: Directory the shell starts in
            environment: Complete environment for the shell
            service_name: Service name, used to tag forwarded shell output

        Raises:
            OSError: If the shell cannot be spawned
        """
        LOGGER.debug("Running command", service=service_name, command=command_line)

        proc = subprocess.Popen(
            [self.shell],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=str(working_directory),
            env=dict(environment),
        )

        # Drain before writing so a chatty shell never blocks on a full pipe
        threading.Thread(
            target=self._forward_output,
            args=(proc, service_name),
            name=f"sc-shell-{service_name or proc.pid}",
            daemon=True,
        ).start()

        try:
            proc.stdin.write(command_line.encode("utf-8"))
            proc.stdin.write(b"\n")
            proc.stdin.flush()
        finally:
            proc.stdin.close()

    @staticmethod
    def _forward_output(proc: subprocess.Popen, service_name: Optional[str]) -> None:
        with proc.stdout:
            for raw in iter(proc.stdout.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    LOGGER.info("Shell output", service=service_name, line=line)
        proc.wait()


__all__ = ["ProcessLauncher", "background_command", "build_environment"]
