"""Shared pytest fixtures for bqext tests."""

from __future__ import annotations

import re
from types import SimpleNamespace
from typing import Any

import pytest
from google.api_core.exceptions import NotFound
from google.cloud import bigquery


class FakeJob:
    """Implement the subset of bigquery.QueryJob used by bqext."""

    def __init__(
        self,
        *,
        job_id: str = "job-1",
        rows: list[Any] | None = None,
        error_result: dict[str, Any] | None = None,
        pending_reloads: int = 0,
    ) -> None:
        self.job_id = job_id
        self.error_result = error_result
        self.errors = [error_result] if error_result else []
        self.state = "RUNNING" if pending_reloads > 0 else "DONE"
        self.reload_count = 0
        self.rows_read = 0
        self.result_kwargs: dict[str, Any] | None = None
        self._rows = list(rows or [])
        self._pending_reloads = pending_reloads

    def reload(self) -> None:
        self.reload_count += 1
        if self.reload_count >= self._pending_reloads:
            self.state = "DONE"

    def result(self, max_results: int | None = None, **kwargs: Any):
        self.result_kwargs = {"max_results": max_results, **kwargs}
        rows = self._rows if max_results is None else self._rows[:max_results]
        return self._iterate(rows)

    def _iterate(self, rows: list[Any]):
        for row in rows:
            self.rows_read += 1
            yield row


class FakeBigQuery:
    """
    In-memory query service understanding the queries bqext issues.

    It executes partition summary queries against `partitions` and dedup
    queries against `tables`, honoring the write disposition the way
    BigQuery does. Any other query must be queued in `jobs`.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.partitions: dict[str, dict[str, dict[str, Any]]] = {}
        self.metadata: dict[str, Any] = {}
        self.jobs: list[FakeJob] = []
        self.queries: list[tuple[str, bigquery.QueryJobConfig | None]] = []

    def query(self, query: str, job_config: bigquery.QueryJobConfig | None = None) -> FakeJob:
        self.queries.append((query, job_config))
        if self.jobs:
            return self.jobs.pop(0)
        if "__PARTITIONS_SUMMARY__" in query:
            return self._partition_summary(query, job_config)
        if "ROW_NUMBER() OVER" in query:
            return self._dedup(query, job_config)
        raise AssertionError(f"unexpected query: {query}")

    def get_table(self, ref: bigquery.TableReference) -> Any:
        key = f"{ref.project}.{ref.dataset_id}.{ref.table_id}"
        if key not in self.metadata:
            raise NotFound(f"Not found: Table {key}")
        return self.metadata[key]

    def _job_id(self) -> str:
        return f"job-{len(self.queries)}"

    def _partition_summary(self, query, job_config) -> FakeJob:
        table = re.search(r"\[(.+?)\$__PARTITIONS_SUMMARY__\]", query).group(1)
        partition_id = re.search(r'partition_id = "(.*?)"', query).group(1)
        row = self.partitions.get(_resolve(table, job_config), {}).get(partition_id)
        return FakeJob(job_id=self._job_id(), rows=[row] if row else [])

    def _dedup(self, query, job_config) -> FakeJob:
        key = re.search(r"PARTITION BY (\w+)", query).group(1)
        source = _resolve(re.search(r"FROM `([^`]+)`", query).group(1), job_config)
        if source not in self.tables:
            return FakeJob(
                job_id=self._job_id(),
                error_result={"reason": "notFound", "message": f"Not found: Table {source}"},
                pending_reloads=1,
            )

        dest = job_config.destination
        dest_key = f"{dest.project}.{dest.dataset_id}.{dest.table_id}"
        disposition = job_config.write_disposition or "WRITE_EMPTY"
        if disposition == "WRITE_EMPTY" and self.tables.get(dest_key):
            return FakeJob(
                job_id=self._job_id(),
                error_result={"reason": "duplicate", "message": f"Already Exists: Table {dest_key}"},
                pending_reloads=1,
            )

        seen = set()
        rows = []
        for row in self.tables[source]:
            if row[key] in seen:
                continue
            seen.add(row[key])
            rows.append(dict(row))

        if disposition == "WRITE_APPEND":
            self.tables.setdefault(dest_key, []).extend(rows)
        else:
            self.tables[dest_key] = rows
        return FakeJob(job_id=self._job_id(), pending_reloads=1)


def _resolve(name: str, job_config: bigquery.QueryJobConfig | None) -> str:
    name = name.replace(":", ".", 1)
    parts = name.split(".")
    default = job_config.default_dataset if job_config is not None else None
    if len(parts) == 1:
        return f"{default.project}.{default.dataset_id}.{name}"
    if len(parts) == 2:
        return f"{default.project}.{name}"
    return name


@pytest.fixture
def fake_bq() -> FakeBigQuery:
    """Return an empty in-memory query service."""
    return FakeBigQuery()


@pytest.fixture
def make_job():
    """Return a factory creating FakeJob instances."""
    return FakeJob


@pytest.fixture
def table_metadata():
    """Return a factory creating fake bigquery.Table metadata."""

    def factory(**kwargs: Any) -> Any:
        defaults = {
            "time_partitioning": None,
            "range_partitioning": None,
            "num_bytes": 0,
            "num_rows": 0,
            "created": None,
            "modified": None,
        }
        defaults.update(kwargs)
        return SimpleNamespace(**defaults)

    return factory
