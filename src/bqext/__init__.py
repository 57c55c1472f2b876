"""BigQuery extensions library.

This library streamlines common BigQuery actions: building queries that
resolve unqualified table names against a default dataset, running queries
that must return exactly one row into tagged dataclasses, reading partition
metadata, and deduplicating tables into explicit partitions.
"""

from ._version import __version__
from .dataset import Dataset, QueryClient, TableInfo
from .errors import (
    BQExtError,
    BuildError,
    JobFailureError,
    JobTimeoutError,
    MissingPartitionQualifierError,
    MultipleRowsError,
    NoRowsError,
    TypeMismatchError,
)
from .jobs import JobStatus, wait_for_job
from .mapper import map_row, qfield, shape_columns
from .partition import (
    DedupRequest,
    PartitionInfo,
    dedup,
    dedup_request_for,
    get_partition_info,
)
from .query import (
    QueryContext,
    QueryDescriptor,
    TableRef,
    WriteDisposition,
    build_destination_query,
    build_query,
)

__all__ = [
    "BQExtError",
    "BuildError",
    "Dataset",
    "DedupRequest",
    "JobFailureError",
    "JobStatus",
    "JobTimeoutError",
    "MissingPartitionQualifierError",
    "MultipleRowsError",
    "NoRowsError",
    "PartitionInfo",
    "QueryClient",
    "QueryContext",
    "QueryDescriptor",
    "TableInfo",
    "TableRef",
    "TypeMismatchError",
    "WriteDisposition",
    "build_destination_query",
    "build_query",
    "dedup",
    "dedup_request_for",
    "get_partition_info",
    "map_row",
    "qfield",
    "shape_columns",
    "wait_for_job",
    "__version__",
]
