"""Module implementing the Dataset type."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, TypeVar, overload, runtime_checkable

from google.auth.exceptions import DefaultCredentialsError
from google.cloud import bigquery

from .errors import BuildError, MultipleRowsError, NoRowsError
from .mapper import map_row, shape_type
from .query import (
    QueryContext,
    QueryDescriptor,
    TableRef,
    WriteDisposition,
    build_destination_query,
    build_query,
)

log = logging.getLogger("bqext/dataset")

T = TypeVar("T")

_DONE = object()


@runtime_checkable
class QueryClient(Protocol):
    """
    The subset of bigquery.Client used by Dataset.

    Methods:
        query: submit a query job.
        get_table: fetch table metadata.
    """

    def query(self, query: str, job_config: bigquery.QueryJobConfig | None = None) -> Any: ...

    def get_table(self, table: Any) -> Any: ...


@dataclass(frozen=True, kw_only=True)
class TableInfo:
    """
    Critical stats of a table or partition.

    Attributes:
        name: the fully qualified table name.
        is_partitioned: whether the table uses time or range partitioning.
        num_bytes: the table size in bytes.
        num_rows: the number of rows.
        creation_time: when the table was created.
        last_modified_time: when the table was last modified.
    """

    name: str
    is_partitioned: bool
    num_bytes: int | None
    num_rows: int | None
    creation_time: datetime | None
    last_modified_time: datetime | None


class Dataset:
    """Handle on a BigQuery dataset streamlining common actions."""

    def __init__(
        self,
        project: str,
        dataset: str,
        client: QueryClient | None = None,
    ):
        """
        Initialize the dataset handle.

        Parameters:
            project: the project owning the dataset, which is also the
                billing project for the queries we run.
            dataset: the dataset used for unqualified table names.
            client: optional client to use instead of a bigquery.Client
                created on first use.
        """
        self.context = QueryContext(default_project_id=project, default_dataset_id=dataset)
        self._client = client

    @property
    def client(self) -> QueryClient:
        """Lazy initialization of the BigQuery Client"""
        if self._client is None:
            try:
                self._client = bigquery.Client(project=self.context.default_project_id)
            except DefaultCredentialsError as exc:
                raise BuildError(f"cannot create BigQuery client: {exc}") from exc
        return self._client

    @property
    def project_id(self) -> str:
        return self.context.default_project_id

    @property
    def dataset_id(self) -> str:
        return self.context.default_dataset_id

    def result_query(self, query: str, dry_run: bool = False) -> QueryDescriptor:
        """Build a descriptor for reading results using our defaults."""
        return build_query(query, dry_run, self.context)

    def destination_query(
        self,
        query: str,
        destination: TableRef | None,
        write_disposition: WriteDisposition | None = None,
    ) -> QueryDescriptor:
        """Build a descriptor for writing results using our defaults."""
        return build_destination_query(query, destination, self.context, write_disposition)

    def submit(self, descriptor: QueryDescriptor) -> Any:
        """Submit the descriptor and return the corresponding job."""
        return self.client.query(descriptor.text, job_config=descriptor.job_config())

    @overload
    def query_one(self, query: str, shape: type[dict]) -> dict[str, Any]: ...

    @overload
    def query_one(self, query: str, shape: type[T] | T) -> T: ...

    def query_one(self, query, shape):
        """
        Execute a query that should return a single row.

        Args:
            query: the query text. Unqualified table names resolve against
                this dataset. Start with `#legacySQL` to use legacy SQL.
            shape: `dict` to get the row as a dict, or a dataclass type (or
                instance) whose fields are bound to the result columns.

        Returns:
            The row as a dict, or a new instance of the shape.

        Raises:
            NoRowsError if the query returned no rows.
            MultipleRowsError if the query returned more than one row.
            TypeMismatchError if a column does not fit the bound field.
            TypeError if the shape is neither dict nor a dataclass.
            google.api_core.exceptions.GoogleAPIError if the query fails.
        """
        if shape is not dict:
            shape_type(shape)

        # 1. build and submit the query
        descriptor = self.result_query(query)
        log.debug("single-row query... start")
        job = self.submit(descriptor)

        # 2. we expect a single row, so never fetch more than two
        rows = iter(job.result(max_results=2))
        first = next(rows, _DONE)
        if first is _DONE:
            raise NoRowsError(query)
        row = _row_dict(first)
        result = row if shape is dict else map_row(row, shape)

        # 3. if there are more rows, then something is wrong
        if next(rows, _DONE) is not _DONE:
            raise MultipleRowsError(query)

        log.debug("single-row query... ok")
        return result

    def get_table_info(self, table: str) -> TableInfo:
        """
        Return the critical stats of the given table.

        Args:
            table: table name, relative to this dataset unless qualified.

        Raises:
            ValueError if the table name is invalid.
            google.api_core.exceptions.NotFound if the table does not exist.
        """
        ref = TableRef.parse(table, self.context)
        meta = self.client.get_table(ref.to_bigquery())
        return TableInfo(
            name=str(ref),
            is_partitioned=(
                meta.time_partitioning is not None or meta.range_partitioning is not None
            ),
            num_bytes=meta.num_bytes,
            num_rows=meta.num_rows,
            creation_time=meta.created,
            last_modified_time=meta.modified,
        )

    def __repr__(self) -> str:
        return f"Dataset({self.project_id!r}, {self.dataset_id!r})"


def _row_dict(row: Any) -> dict[str, Any]:
    if isinstance(row, Mapping):
        return dict(row)
    return dict(row.items())
