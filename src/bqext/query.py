"""Module to build BigQuery query descriptors.

A `QueryDescriptor` is the fully resolved description of a query: its text,
the SQL dialect, the default project and dataset used to resolve unqualified
table names, and the optional destination table. Building a descriptor does
not touch the network; use `QueryDescriptor.job_config` to obtain the
`bigquery.QueryJobConfig` to submit.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from google.cloud import bigquery

LEGACY_SQL_PREFIX: Final[str] = "#legacySQL"
"""Queries starting with this marker use the legacy SQL dialect."""


@dataclass(frozen=True, kw_only=True)
class QueryContext:
    """
    Defaults for unqualified table names.

    Attributes:
        default_project_id: project owning the default dataset.
        default_dataset_id: dataset used for unqualified table names.
    """

    default_project_id: str
    default_dataset_id: str


class WriteDisposition(str, Enum):
    """Enumerate how a query writes into an existing destination."""

    APPEND = "WRITE_APPEND"
    TRUNCATE = "WRITE_TRUNCATE"
    EMPTY = "WRITE_EMPTY"


@dataclass(frozen=True, kw_only=True)
class TableRef:
    """
    Reference to a table, possibly including a partition decorator.

    Attributes:
        project_id: the project owning the dataset.
        dataset_id: the dataset containing the table.
        table_id: the table name (e.g., `ndt` or `ndt$20230101`).
    """

    project_id: str
    dataset_id: str
    table_id: str

    @classmethod
    def parse(cls, text: str, context: QueryContext) -> TableRef:
        """
        Parse a table name, filling missing parts from context.

        Accepted forms are `table`, `dataset.table`, `project.dataset.table`,
        and `project:dataset.table`. Domain-scoped projects work in both
        forms (`example.com:proj.dataset.table` and
        `example.com:proj:dataset.table`).

        Raises:
            ValueError if the name has too many components or empty ones.
        """
        project_id = context.default_project_id
        parts = text.split(".")
        if ":" in text:
            # `p:d.t` or a domain-scoped project such as `example.com:p.d.t`
            domain, rest = text.rsplit(":", 1)
            parts = rest.split(".")
            if not domain:
                raise ValueError(f"invalid table name: {text}")
            if len(parts) == 3:
                parts[0] = f"{domain}:{parts[0]}"
            elif len(parts) == 2:
                project_id = domain
            else:
                raise ValueError(f"invalid table name: {text}")

        if len(parts) == 1:
            ref = cls(
                project_id=project_id,
                dataset_id=context.default_dataset_id,
                table_id=parts[0],
            )
        elif len(parts) == 2:
            ref = cls(project_id=project_id, dataset_id=parts[0], table_id=parts[1])
        elif len(parts) == 3:
            ref = cls(project_id=parts[0], dataset_id=parts[1], table_id=parts[2])
        else:
            raise ValueError(f"invalid table name: {text}")

        if not (ref.project_id and ref.dataset_id and ref.table_id):
            raise ValueError(f"invalid table name: {text}")
        return ref

    @property
    def partition_id(self) -> str | None:
        """The partition decorator without `$`, or None."""
        if "$" not in self.table_id:
            return None
        return self.table_id.split("$", 1)[1]

    def to_bigquery(self) -> bigquery.TableReference:
        """Return the equivalent bigquery.TableReference."""
        return bigquery.TableReference(
            bigquery.DatasetReference(self.project_id, self.dataset_id),
            self.table_id,
        )

    def __str__(self) -> str:
        return f"{self.project_id}.{self.dataset_id}.{self.table_id}"


@dataclass(frozen=True, kw_only=True)
class QueryDescriptor:
    """
    Fully resolved description of a query to run.

    Attributes:
        text: the query text.
        dry_run: whether to only validate and estimate the query.
        use_legacy_sql: whether the text uses the legacy dialect.
        default_project_id: project for unqualified dataset references.
        default_dataset_id: dataset for unqualified table references.
        destination: optional table where to write results.
        write_disposition: optional policy for existing destinations,
            where None means the service default.
        allow_large_results: allow results larger than the response limit.
        flatten_results: flatten nested and repeated fields.
    """

    text: str
    dry_run: bool = False
    use_legacy_sql: bool = False
    default_project_id: str
    default_dataset_id: str
    destination: TableRef | None = None
    write_disposition: WriteDisposition | None = None
    allow_large_results: bool = False
    flatten_results: bool = True

    def job_config(self) -> bigquery.QueryJobConfig:
        """Return the bigquery.QueryJobConfig implementing this descriptor."""
        config = bigquery.QueryJobConfig()
        config.dry_run = self.dry_run
        config.use_legacy_sql = self.use_legacy_sql
        config.default_dataset = bigquery.DatasetReference(
            self.default_project_id, self.default_dataset_id
        )
        if self.destination is not None:
            config.destination = self.destination.to_bigquery()
        if self.write_disposition is not None:
            config.write_disposition = self.write_disposition.value
        if self.allow_large_results:
            config.allow_large_results = True
            config.flatten_results = self.flatten_results
        return config


def is_legacy_sql(text: str) -> bool:
    """Tell whether the query text selects the legacy dialect."""
    return text.startswith(LEGACY_SQL_PREFIX)


def build_query(text: str, dry_run: bool, context: QueryContext) -> QueryDescriptor:
    """
    Build a descriptor for reading query results.

    Args:
        text: the query text.
        dry_run: whether to only validate the query.
        context: defaults for unqualified table names.

    Returns:
        The corresponding QueryDescriptor.
    """
    return QueryDescriptor(
        text=text,
        dry_run=dry_run,
        use_legacy_sql=is_legacy_sql(text),
        default_project_id=context.default_project_id,
        default_dataset_id=context.default_dataset_id,
    )


def build_destination_query(
    text: str,
    destination: TableRef | None,
    context: QueryContext,
    write_disposition: WriteDisposition | None = None,
) -> QueryDescriptor:
    """
    Build a descriptor for writing query results into a table.

    Without a destination the descriptor is a dry run, because there is
    nowhere to materialize the results.

    Args:
        text: the query text.
        destination: the table where to write, or None.
        context: defaults for unqualified table names.
        write_disposition: policy for an existing destination, or None
            to use the service default.

    Returns:
        The corresponding QueryDescriptor.
    """
    return QueryDescriptor(
        text=text,
        dry_run=destination is None,
        use_legacy_sql=is_legacy_sql(text),
        default_project_id=context.default_project_id,
        default_dataset_id=context.default_dataset_id,
        destination=destination,
        write_disposition=write_disposition,
        allow_large_results=True,
        flatten_results=False,
    )
