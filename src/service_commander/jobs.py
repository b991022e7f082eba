# noqa: D401
"""Job lookups backed by psutil.

A job identifier is an OS process id.
"""

from __future__ import annotations

import fnmatch
import os
from typing import List

import psutil


class JobQuery:
    """Finds running jobs by listening port or by name pattern."""

    def listening_jobs_for_port(self, port: int) -> List[int]:
        """Return PIDs of processes listening on ``port``.

        Listeners owned by processes we may not inspect have no PID and are
        left out.

        Raises:
            psutil.Error: If the connection table cannot be read
        """
        pids: List[int] = []
        for conn in self._listeners(port):
            if conn.pid is not None and conn.pid not in pids:
                pids.append(conn.pid)
        return pids

    def is_listening(self, port: int) -> bool:
        """Whether anything at all is listening on ``port``."""
        return any(True for _ in self._listeners(port))

    def jobs_matching(self, pattern: str) -> List[int]:
        """Return PIDs of processes whose name matches a glob ``pattern``.

        The current process is never reported.
        """
        own_pid = os.getpid()
        pids: List[int] = []
        for proc in psutil.process_iter(["pid", "name"]):
            name = proc.info.get("name") or ""
            if proc.info["pid"] != own_pid and fnmatch.fnmatchcase(name, pattern):
                pids.append(proc.info["pid"])
        return pids

    @staticmethod
    def _listeners(port: int):
        return (
            conn
            for conn in psutil.net_connections(kind="inet")
            if conn.status == psutil.CONN_LISTEN and conn.laddr and conn.laddr.port == port
        )


__all__ = ["JobQuery"]
