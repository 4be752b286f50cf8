"""
Row decoding for job and build queries.

Rows come from queries.jobs_query() and queries.builds_query(); columns are
looked up by label so the decoders do not depend on SELECT order.
"""

from typing import Iterable, List

from .errors import ScanError
from .models import Build, BuildStatus, Job


def _optional_int(value):
    return int(value) if value is not None else None


def scan_job(row) -> Job:
    """Decode a single jobs_query() row."""
    try:
        m = row._mapping
        return Job(
            id=int(m["id"]),
            name=m["name"],
            pipeline_id=int(m["pipeline_id"]),
            pipeline_name=m["pipeline_name"],
            team_name=m["team_name"],
            public=bool(m["public"]),
            active=bool(m["active"]),
            paused=bool(m["paused"]),
            next_build_id=_optional_int(m["next_build_id"]),
            latest_completed_build_id=_optional_int(m["latest_completed_build_id"]),
            transition_build_id=_optional_int(m["transition_build_id"]),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ScanError("scan job", message=str(e)) from e


def scan_jobs(rows: Iterable) -> List[Job]:
    """
    Decode every row of a job query, preserving row order.

    Raises:
        ScanError: If any row cannot be decoded
    """
    return [scan_job(row) for row in rows]


def scan_build(row) -> Build:
    """
    Decode a single builds_query() row.

    Raises:
        ScanError: If the row is missing a column or has an unknown status
    """
    try:
        m = row._mapping
        return Build(
            id=int(m["id"]),
            name=m["name"],
            job_id=int(m["job_id"]),
            job_name=m["job_name"],
            pipeline_name=m["pipeline_name"],
            team_name=m["team_name"],
            status=BuildStatus(m["status"]),
            start_time=m["start_time"],
            end_time=m["end_time"],
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ScanError("scan build", message=str(e)) from e
