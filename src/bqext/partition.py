"""Module for partition metadata and partition deduplication.

Destination tables are date-partitioned, so `dedup` requires the destination
to name the partition explicitly (e.g., `ndt$20230101`). Writing into the
bare table name would target today's partition instead.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Final

from .dataset import Dataset
from .errors import BuildError, JobFailureError, MissingPartitionQualifierError
from .jobs import JobStatus, wait_for_job
from .mapper import qfield
from .query import QueryContext, TableRef, WriteDisposition

log = logging.getLogger("bqext/partition")

PARTITION_QUALIFIER: Final[str] = "$"

# PARTITIONS_SUMMARY is only available in legacy SQL.
_PARTITION_INFO_TEMPLATE: Final[str] = """#legacySQL
SELECT
  partition_id AS PartitionID,
  MSEC_TO_TIMESTAMP(creation_time) AS CreationTime,
  MSEC_TO_TIMESTAMP(last_modified_time) AS LastModified
FROM
  [{table}$__PARTITIONS_SUMMARY__]
WHERE partition_id = "{partition}"
"""

# TODO: keep the row that was parsed last instead of an arbitrary one.
_DEDUP_TEMPLATE: Final[str] = """#standardSQL
# Delete all duplicate rows based on {key}
SELECT * EXCEPT (row_number)
FROM (
  SELECT *, ROW_NUMBER() OVER (PARTITION BY {key}) row_number
  FROM `{source}`)
WHERE row_number = 1
"""

_LEGACY_NAME_RE = re.compile(r"^[A-Za-z0-9_.:\-]+$")
_COLUMN_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")


@dataclass(frozen=True)
class PartitionInfo:
    """
    Basic information about a partition.

    Attributes:
        partition_id: the partition ID (e.g., `20230101`).
        creation_time: when the partition was created.
        last_modified: when the partition was last modified.
    """

    partition_id: str = qfield("PartitionID", default="")
    creation_time: datetime | None = qfield("CreationTime", default=None)
    last_modified: datetime | None = qfield("LastModified", default=None)


@dataclass(frozen=True, kw_only=True)
class DedupRequest:
    """
    Request to deduplicate a table into a destination partition.

    Attributes:
        source_table: the table to deduplicate, relative to the dataset
            unless qualified.
        dedup_key: the column identifying duplicate rows.
        overwrite: whether to replace the destination partition content.
        destination_project: project of the destination table.
        destination_dataset: dataset of the destination table.
        destination_table: destination table including the partition
            qualifier (e.g., `ndt$20230101`).
    """

    source_table: str
    dedup_key: str
    overwrite: bool = False
    destination_project: str
    destination_dataset: str
    destination_table: str

    @property
    def destination(self) -> TableRef:
        return TableRef(
            project_id=self.destination_project,
            dataset_id=self.destination_dataset,
            table_id=self.destination_table,
        )


def dedup_request_for(
    source: str,
    key: str,
    destination: str,
    context: QueryContext,
    overwrite: bool = False,
) -> DedupRequest:
    """
    Create a DedupRequest from a textual destination table name.

    The destination accepts the forms supported by `TableRef.parse` and
    missing components default to the given context.

    Raises:
        ValueError if the destination name is invalid.
    """
    ref = TableRef.parse(destination, context)
    return DedupRequest(
        source_table=source,
        dedup_key=key,
        overwrite=overwrite,
        destination_project=ref.project_id,
        destination_dataset=ref.dataset_id,
        destination_table=ref.table_id,
    )


def get_partition_info(dataset: Dataset, table: str, partition_id: str) -> PartitionInfo:
    """
    Return basic information about a table partition.

    Args:
        dataset: the dataset handle to query with.
        table: the partitioned table, relative to the dataset unless qualified.
        partition_id: the partition ID (e.g., `20230101`).

    Raises:
        BuildError if the table or partition ID cannot be safely quoted.
        NoRowsError if the partition does not exist.
        MultipleRowsError, TypeMismatchError, GoogleAPIError as query_one.
    """
    if not _LEGACY_NAME_RE.match(table):
        raise BuildError(f"invalid table name: {table!r}")
    if not _LEGACY_NAME_RE.match(partition_id):
        raise BuildError(f"invalid partition ID: {partition_id!r}")
    query = _PARTITION_INFO_TEMPLATE.format(table=table, partition=partition_id)
    return dataset.query_one(query, PartitionInfo)


def dedup(
    dataset: Dataset,
    request: DedupRequest,
    *,
    timeout: float | None = None,
    _sleep_secs: int | float = 1,  # used for shorter testing
) -> JobStatus:
    """
    Deduplicate the source table and write into a destination partition.

    We keep one row per distinct value of the dedup key. With overwrite we
    replace the partition content; otherwise we use the service default
    write disposition, so writing into a non-empty partition fails.

    Args:
        dataset: the dataset handle; the source is relative to it.
        request: what to deduplicate and where to write.
        timeout: maximum number of seconds to wait for the job, or None.

    Returns:
        The terminal JobStatus of the successful job.

    Raises:
        MissingPartitionQualifierError if the destination has no partition.
        BuildError if the source name is invalid or the dedup key cannot
            be safely quoted.
        JobFailureError if the job failed: its `status` has the details.
        JobTimeoutError if the timeout expired; the job keeps running.
        google.api_core.exceptions.GoogleAPIError if submitting fails.
    """
    if PARTITION_QUALIFIER not in request.destination_table:
        raise MissingPartitionQualifierError(request.destination_table)
    if not _COLUMN_RE.match(request.dedup_key):
        raise BuildError(f"invalid dedup key: {request.dedup_key!r}")
    try:
        source = str(TableRef.parse(request.source_table, dataset.context))
    except ValueError as exc:
        raise BuildError(f"invalid source table: {request.source_table!r}") from exc
    if "`" in source:
        raise BuildError(f"invalid source table: {request.source_table!r}")

    query = _DEDUP_TEMPLATE.format(key=request.dedup_key, source=source)
    descriptor = dataset.destination_query(
        query,
        request.destination,
        WriteDisposition.TRUNCATE if request.overwrite else None,
    )

    log.info(
        "removing dups (of %s) and writing to %s... start",
        request.dedup_key,
        request.destination,
    )
    job = dataset.submit(descriptor)
    log.info("removing dups: job ID %s", job.job_id)

    status = wait_for_job(job, timeout=timeout, _sleep_secs=_sleep_secs)
    if status.failed:
        log.warning(
            "removing dups (of %s) and writing to %s... failure",
            request.dedup_key,
            request.destination,
        )
        raise JobFailureError(status)

    log.info(
        "removing dups (of %s) and writing to %s... ok",
        request.dedup_key,
        request.destination,
    )
    return status
