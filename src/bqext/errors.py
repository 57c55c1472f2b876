"""Errors raised by the bqext library.

Every error derives from `BQExtError`, so callers that do not care about
the specific kind can catch the base class. Errors raised by the BigQuery
client itself (`google.api_core.exceptions.GoogleAPIError`) are not wrapped
and propagate unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .jobs import JobStatus


class BQExtError(Exception):
    """Base class for all bqext errors."""


class BuildError(BQExtError):
    """We cannot build a query or open the dataset handle."""


class NoRowsError(BQExtError, LookupError):
    """A single-row query returned no rows."""

    def __init__(self, query: str):
        super().__init__("query returned no rows")
        self.query = query


class MultipleRowsError(BQExtError, LookupError):
    """A single-row query returned more than one row."""

    def __init__(self, query: str):
        super().__init__("query returned multiple rows")
        self.query = query


class TypeMismatchError(BQExtError, TypeError):
    """A column value cannot be copied into the field bound to it."""

    def __init__(self, *, field: str, column: str, expected: Any, value: Any):
        super().__init__(
            f"cannot assign column {column!r} of type {type(value).__name__} "
            f"to field {field!r} of type {_type_name(expected)}"
        )
        self.field = field
        self.column = column
        self.expected = expected
        self.value = value


class MissingPartitionQualifierError(BQExtError, ValueError):
    """The destination table does not name a partition."""

    def __init__(self, table: str):
        super().__init__(f"destination table {table!r} does not specify a partition")
        self.table = table


class JobFailureError(BQExtError):
    """A BigQuery job reached the DONE state with an error.

    Attributes:
        status: the terminal JobStatus, for inspecting the error details.
    """

    def __init__(self, status: JobStatus):
        message = "unknown error"
        if status.error_result:
            message = status.error_result.get("message", message)
        super().__init__(f"job {status.job_id} failed: {message}")
        self.status = status


class JobTimeoutError(BQExtError, TimeoutError):
    """We stopped waiting for a job that is still running remotely."""

    def __init__(self, job_id: str, timeout: float):
        super().__init__(f"job {job_id} not done after {timeout}s")
        self.job_id = job_id
        self.timeout = timeout


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp)
