"""Module to wait for BigQuery jobs to complete."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from .errors import JobTimeoutError

log = logging.getLogger("bqext/jobs")

JOB_STATE_DONE = "DONE"


class Job(Protocol):
    """The subset of bigquery.QueryJob we use."""

    @property
    def job_id(self) -> str: ...

    @property
    def state(self) -> str | None: ...

    @property
    def error_result(self) -> dict[str, Any] | None: ...

    @property
    def errors(self) -> list[dict[str, Any]] | None: ...

    def reload(self) -> None: ...


@dataclass(frozen=True, kw_only=True)
class JobStatus:
    """
    Snapshot of the status of a job.

    Attributes:
        job_id: the BigQuery job ID.
        state: the job state (e.g., `DONE`).
        error_result: the error that made the job fail, if any.
        errors: all the errors encountered, including non-fatal ones.
    """

    job_id: str
    state: str | None
    error_result: dict[str, Any] | None = None
    errors: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_job(cls, job: Job) -> JobStatus:
        """Create a snapshot of the current job status."""
        return cls(
            job_id=job.job_id,
            state=job.state,
            error_result=job.error_result,
            errors=list(job.errors or []),
        )

    @property
    def done(self) -> bool:
        """Whether the job reached its terminal state."""
        return self.state == JOB_STATE_DONE

    @property
    def failed(self) -> bool:
        """Whether the job is done and failed."""
        return self.done and self.error_result is not None


def wait_for_job(
    job: Job,
    *,
    timeout: float | None = None,
    _sleep_secs: int | float = 1,  # used for shorter testing
) -> JobStatus:
    """
    Block until the job is done and return its terminal status.

    A failed job is not an error here: inspect `JobStatus.failed`.

    Args:
        job: the job to wait for.
        timeout: maximum number of seconds to wait, or None.

    Returns:
        The terminal JobStatus.

    Raises:
        JobTimeoutError if the timeout expires. The job keeps running
            remotely: we only stop waiting for it.
    """
    deadline = None if timeout is None else time.monotonic() + timeout
    log.info("waiting for job %s... start", job.job_id)
    with (
        logging_redirect_tqdm(),
        tqdm(
            desc=f"BigQuery job {job.job_id}",
            total=10,
            bar_format="{l_bar}{bar}| [{elapsed}] {postfix}",
        ) as pbar,
    ):
        while job.state != JOB_STATE_DONE:
            if deadline is not None and time.monotonic() >= deadline:
                log.warning("waiting for job %s... timeout", job.job_id)
                raise JobTimeoutError(job.job_id, timeout)
            time.sleep(_sleep_secs)
            factor = 2 if (pbar.n / pbar.total) >= 0.8 else 1
            pbar.total *= factor
            job.reload()
            pbar.update(1)

        pbar.n = pbar.total

    status = JobStatus.from_job(job)
    log.info("waiting for job %s... %s", job.job_id, "failure" if status.failed else "ok")
    return status
