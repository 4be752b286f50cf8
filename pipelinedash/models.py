"""
In-memory entities returned by the dashboard layer.

These are plain frozen dataclasses decoded from rows (see scan.py) so that
callers never hold on to a live database cursor or session.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class BuildStatus(str, Enum):
    PENDING = "pending"
    STARTED = "started"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ERRORED = "errored"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Job:
    id: int
    name: str
    pipeline_id: int
    pipeline_name: str
    team_name: str
    public: bool
    active: bool
    paused: bool = False
    next_build_id: Optional[int] = None
    latest_completed_build_id: Optional[int] = None
    transition_build_id: Optional[int] = None


@dataclass(frozen=True)
class Build:
    id: int
    name: str
    job_id: int
    job_name: str
    pipeline_name: str
    team_name: str
    status: BuildStatus
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def is_running(self) -> bool:
        return self.status in (BuildStatus.PENDING, BuildStatus.STARTED)


@dataclass(frozen=True)
class DashboardJob:
    """A job with its next, latest completed and transition builds."""

    job: Job
    next_build: Optional[Build] = None
    finished_build: Optional[Build] = None
    transition_build: Optional[Build] = None


Dashboard = List[DashboardJob]


def _build_to_dict(build: Optional[Build]) -> Optional[Dict[str, Any]]:
    if build is None:
        return None
    return {
        "id": build.id,
        "name": build.name,
        "job_id": build.job_id,
        "status": build.status.value,
        "start_time": build.start_time.isoformat() if build.start_time else None,
        "end_time": build.end_time.isoformat() if build.end_time else None,
    }


def dashboard_to_dicts(dashboard: Dashboard) -> List[Dict[str, Any]]:
    """
    Convert a dashboard into JSON-serializable dicts, preserving order.

    Args:
        dashboard: Dashboard returned by a JobFactory entry point

    Returns:
        List with one dict per DashboardJob
    """
    return [
        {
            "id": entry.job.id,
            "name": entry.job.name,
            "pipeline_name": entry.job.pipeline_name,
            "team_name": entry.job.team_name,
            "public": entry.job.public,
            "paused": entry.job.paused,
            "next_build": _build_to_dict(entry.next_build),
            "finished_build": _build_to_dict(entry.finished_build),
            "transition_build": _build_to_dict(entry.transition_build),
        }
        for entry in dashboard
    ]
