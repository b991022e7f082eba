"""Forced termination of running jobs."""

from __future__ import annotations

from typing import List, Optional

import psutil

from .errors import UnsupportedOperation
from .jobs import JobQuery
from .liveness import parse_port
from .logging import get_logger
from .types import CheckAliveType

LOGGER = get_logger(__name__)


class ForcedTerminator:
    """Ends the jobs behind a service's liveness criteria."""

    def __init__(self, job_query: Optional[JobQuery] = None):
        self._jobs = job_query or JobQuery()

    def terminate(
        self,
        criteria: str,
        check_alive_type: CheckAliveType,
        grace_period_seconds: float,
    ) -> None:
        """Terminate the job(s) identified by ``criteria``.

        JOBNAME criteria matching more than one job terminates nothing: the
        target is ambiguous.

        Args:
            criteria: Port number or job-name pattern
            check_alive_type: How to interpret ``criteria``
            grace_period_seconds: <= 0 kills immediately, > 0 asks nicely first
        """
        if check_alive_type is CheckAliveType.PORT:
            jobs = self._jobs.listening_jobs_for_port(parse_port(criteria))
        elif check_alive_type is CheckAliveType.JOBNAME:
            jobs = self._jobs.jobs_matching(criteria.strip())
            if len(jobs) > 1:
                LOGGER.warning(
                    "Multiple jobs found matching job name criteria, not ending any",
                    criteria=criteria,
                    jobs=jobs,
                )
                return
        else:
            raise UnsupportedOperation(f"Unsupported check-alive type: {check_alive_type}")

        if not jobs:
            LOGGER.info("No jobs to end", criteria=criteria)
            return
        self._end_jobs(jobs, grace_period_seconds)

    def _end_jobs(self, jobs: List[int], grace_period_seconds: float) -> None:
        graded = grace_period_seconds > 0
        for job in jobs:
            self.request(job, graded=graded, delay_seconds=max(grace_period_seconds, 0))

    def request(self, job: int, graded: bool, delay_seconds: float) -> None:
        """End one job, blocking until the request has completed.

        Args:
            job: Process id
            graded: Send SIGTERM and wait ``delay_seconds`` before SIGKILL
            delay_seconds: Grace period for a graded request
        """
        mode = f"controlled, delay {delay_seconds:g}s" if graded else "immediate"
        LOGGER.info("Ending job", job=job, mode=mode)
        try:
            proc = psutil.Process(job)
            if graded:
                proc.terminate()
                try:
                    proc.wait(timeout=delay_seconds)
                    return
                except psutil.TimeoutExpired:
                    LOGGER.warning(
                        "Job did not end within grace period, killing", job=job, delay=delay_seconds
                    )
            proc.kill()
            proc.wait(timeout=5)
        except psutil.NoSuchProcess:
            LOGGER.info("Job already ended", job=job)
        except psutil.TimeoutExpired:
            LOGGER.warning("Job still present after kill", job=job)


__all__ = ["ForcedTerminator"]
