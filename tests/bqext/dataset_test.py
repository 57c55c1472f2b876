"""Tests for the bqext.dataset module."""

from dataclasses import dataclass
from datetime import UTC, datetime
from unittest.mock import Mock, patch

import pytest
from google.api_core.exceptions import BadRequest, NotFound
from google.auth.exceptions import DefaultCredentialsError

from bqext.dataset import Dataset, QueryClient
from bqext.errors import BuildError, MultipleRowsError, NoRowsError, TypeMismatchError
from bqext.mapper import qfield

_CREATED = datetime(2023, 1, 1, tzinfo=UTC)


@dataclass
class Summary:
    test_count: int = qfield("TestCount")
    first: datetime | None = qfield("First", default=None)


@dataclass
class Partition:
    partition_id: str = qfield("PartitionID")
    created: datetime = qfield("CreationTime")


class FakeRow:
    """Mimic bigquery.Row, which is not a Mapping but has items()."""

    def __init__(self, values):
        self._values = values

    def items(self):
        return self._values.items()


class TestDatasetClient:
    """Test for the lazy Dataset.client property."""

    @patch("bqext.dataset.bigquery.Client")
    def test_lazy_client(self, mock_client):
        ds = Dataset("mlab-sandbox", "batch")
        mock_client.assert_not_called()

        _ = ds.client
        mock_client.assert_called_once_with(project="mlab-sandbox")

        _ = ds.client
        mock_client.assert_called_once()

    @patch("bqext.dataset.bigquery.Client")
    def test_credentials_error_is_build_error(self, mock_client):
        mock_client.side_effect = DefaultCredentialsError("no credentials")
        ds = Dataset("mlab-sandbox", "batch")
        with pytest.raises(BuildError) as info:
            _ = ds.client
        assert isinstance(info.value.__cause__, DefaultCredentialsError)

    def test_injected_client(self, fake_bq):
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        assert ds.client is fake_bq
        assert isinstance(fake_bq, QueryClient)

    def test_context(self):
        ds = Dataset("mlab-sandbox", "batch", client=Mock())
        assert ds.context.default_project_id == "mlab-sandbox"
        assert ds.context.default_dataset_id == "batch"
        assert ds.project_id == "mlab-sandbox"
        assert ds.dataset_id == "batch"
        assert repr(ds) == "Dataset('mlab-sandbox', 'batch')"


class TestDatasetQueries:
    """Test for Dataset.result_query and Dataset.destination_query."""

    def test_result_query(self):
        ds = Dataset("mlab-sandbox", "batch", client=Mock())
        desc = ds.result_query("#legacySQL\nSELECT 1", dry_run=True)
        assert desc.dry_run is True
        assert desc.use_legacy_sql is True
        assert desc.default_project_id == "mlab-sandbox"
        assert desc.default_dataset_id == "batch"

    def test_destination_query_without_destination(self):
        ds = Dataset("mlab-sandbox", "batch", client=Mock())
        desc = ds.destination_query("SELECT 1", None)
        assert desc.dry_run is True
        assert desc.allow_large_results is True


class TestQueryOne:
    """Test for Dataset.query_one."""

    def test_one_row(self, fake_bq, make_job):
        job = make_job(rows=[{"TestCount": 3, "First": _CREATED}])
        fake_bq.jobs.append(job)
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)

        got = ds.query_one("SELECT COUNT(*) AS TestCount FROM ndt", Summary)

        assert got == Summary(test_count=3, first=_CREATED)
        assert job.result_kwargs == {"max_results": 2}
        query, config = fake_bq.queries[0]
        assert query == "SELECT COUNT(*) AS TestCount FROM ndt"
        assert config.default_dataset.dataset_id == "batch"
        assert config.use_legacy_sql is False
        assert config.dry_run is False

    def test_unmatched_field_without_default(self, fake_bq, make_job):
        fake_bq.jobs.append(make_job(rows=[{"PartitionID": "20230101"}]))
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        got = ds.query_one("SELECT '20230101' AS PartitionID", Partition)
        assert got == Partition(partition_id="20230101", created=None)

    def test_legacy_query(self, fake_bq, make_job):
        fake_bq.jobs.append(make_job(rows=[{"TestCount": 1}]))
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        ds.query_one("#legacySQL\nSELECT 1 AS TestCount", Summary)
        assert fake_bq.queries[0][1].use_legacy_sql is True

    def test_bigquery_row(self, fake_bq, make_job):
        fake_bq.jobs.append(make_job(rows=[FakeRow({"TestCount": 7})]))
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        assert ds.query_one("SELECT 7 AS TestCount", Summary).test_count == 7

    def test_dict_shape(self, fake_bq, make_job):
        fake_bq.jobs.append(make_job(rows=[FakeRow({"a": 1, "b": "x"})]))
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        got = ds.query_one("SELECT 1 AS a, 'x' AS b", dict)
        assert got == {"a": 1, "b": "x"}
        assert type(got) is dict

    def test_no_rows(self, fake_bq, make_job):
        fake_bq.jobs.append(make_job(rows=[]))
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        with pytest.raises(NoRowsError) as info:
            ds.query_one("SELECT 1 AS TestCount LIMIT 0", Summary)
        assert info.value.query == "SELECT 1 AS TestCount LIMIT 0"

    def test_multiple_rows(self, fake_bq, make_job):
        job = make_job(rows=[{"TestCount": 1}, {"TestCount": 2}, {"TestCount": 3}])
        fake_bq.jobs.append(job)
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        with pytest.raises(MultipleRowsError):
            ds.query_one("SELECT TestCount FROM ndt", Summary)
        # we never read beyond the second row
        assert job.rows_read == 2

    def test_multiple_rows_dict(self, fake_bq, make_job):
        fake_bq.jobs.append(make_job(rows=[{"a": 1}, {"a": 2}]))
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        with pytest.raises(MultipleRowsError):
            ds.query_one("SELECT a FROM t", dict)

    def test_type_mismatch(self, fake_bq, make_job):
        fake_bq.jobs.append(make_job(rows=[{"TestCount": "three"}]))
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        with pytest.raises(TypeMismatchError):
            ds.query_one("SELECT 'three' AS TestCount", Summary)

    def test_invalid_shape_submits_nothing(self, fake_bq):
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        with pytest.raises(TypeError):
            ds.query_one("SELECT 1", 42)
        assert fake_bq.queries == []

    def test_query_error_propagates(self):
        client = Mock()
        client.query.side_effect = BadRequest("Syntax error")
        ds = Dataset("mlab-sandbox", "batch", client=client)
        with pytest.raises(BadRequest):
            ds.query_one("SELEC 1", Summary)
        client.query.assert_called_once()

    def test_no_retry_on_result_error(self):
        client = Mock()
        job = Mock()
        job.result.side_effect = BadRequest("Resources exceeded")
        client.query.return_value = job
        ds = Dataset("mlab-sandbox", "batch", client=client)
        with pytest.raises(BadRequest):
            ds.query_one("SELECT 1", Summary)
        client.query.assert_called_once()
        job.result.assert_called_once()


class TestGetTableInfo:
    """Test for Dataset.get_table_info."""

    def test_partitioned_table(self, fake_bq, table_metadata):
        fake_bq.metadata["mlab-sandbox.batch.ndt"] = table_metadata(
            time_partitioning=Mock(),
            num_bytes=2048,
            num_rows=10,
            created=_CREATED,
            modified=_CREATED,
        )
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)

        info = ds.get_table_info("ndt")

        assert info.name == "mlab-sandbox.batch.ndt"
        assert info.is_partitioned is True
        assert info.num_bytes == 2048
        assert info.num_rows == 10
        assert info.creation_time == _CREATED
        assert info.last_modified_time == _CREATED

    def test_range_partitioned_table(self, fake_bq, table_metadata):
        fake_bq.metadata["mlab-oti.base.ndt"] = table_metadata(range_partitioning=Mock())
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        assert ds.get_table_info("mlab-oti.base.ndt").is_partitioned is True

    def test_unpartitioned_table(self, fake_bq, table_metadata):
        fake_bq.metadata["mlab-sandbox.other.t"] = table_metadata()
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        assert ds.get_table_info("other.t").is_partitioned is False

    def test_missing_table(self, fake_bq):
        ds = Dataset("mlab-sandbox", "batch", client=fake_bq)
        with pytest.raises(NotFound):
            ds.get_table_info("missing")
