"""Tests for row decoding."""

from datetime import datetime

import pytest

from pipelinedash.errors import ScanError, StorageError
from pipelinedash.models import BuildStatus
from pipelinedash.scan import scan_build, scan_job, scan_jobs


class FakeRow:
    """Stands in for a SQLAlchemy Row; only _mapping is used."""

    def __init__(self, **columns):
        self._mapping = columns


def job_row(**overrides):
    columns = {
        "id": 4,
        "name": "unit",
        "pipeline_id": 2,
        "pipeline_name": "website",
        "team_name": "dev",
        "public": 1,
        "active": 1,
        "paused": 0,
        "next_build_id": None,
        "latest_completed_build_id": 12,
        "transition_build_id": None,
    }
    columns.update(overrides)
    return FakeRow(**columns)


def build_row(**overrides):
    columns = {
        "id": 12,
        "name": "7",
        "job_id": 4,
        "job_name": "unit",
        "pipeline_name": "website",
        "team_name": "dev",
        "status": "succeeded",
        "start_time": datetime(2024, 1, 1, 12, 0),
        "end_time": datetime(2024, 1, 1, 12, 5),
    }
    columns.update(overrides)
    return FakeRow(**columns)


class TestScanJobs:

    def test_scan_job(self):
        job = scan_job(job_row())

        assert job.id == 4
        assert job.public is True
        assert job.paused is False
        assert job.next_build_id is None
        assert job.latest_completed_build_id == 12

    def test_scan_jobs_keeps_row_order(self):
        jobs = scan_jobs([job_row(id=9), job_row(id=2), job_row(id=5)])

        assert [job.id for job in jobs] == [9, 2, 5]

    def test_missing_column(self):
        row = job_row()
        del row._mapping["team_name"]

        with pytest.raises(ScanError):
            scan_job(row)

    def test_not_a_row(self):
        with pytest.raises(ScanError):
            scan_jobs([("not", "a", "row")])


class TestScanBuild:

    def test_scan_build(self):
        build = scan_build(build_row())

        assert build.id == 12
        assert build.job_id == 4
        assert build.status is BuildStatus.SUCCEEDED
        assert not build.is_running()

    def test_pending_build_is_running(self):
        build = scan_build(build_row(status="pending", start_time=None, end_time=None))

        assert build.is_running()

    def test_unknown_status(self):
        """Decode failures are storage errors, not absence."""
        with pytest.raises(ScanError) as exc_info:
            scan_build(build_row(status="exploded"))

        assert isinstance(exc_info.value, StorageError)
        assert exc_info.value.operation == "scan build"
