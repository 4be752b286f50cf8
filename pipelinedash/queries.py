"""Base SELECT statements shared by the job and build lookups."""

from sqlalchemy import select
from sqlalchemy.sql import Select

from .database import Build, Job, Pipeline, Team

POINTER_COLUMNS = ("next_build_id", "latest_completed_build_id", "transition_build_id")


def jobs_query() -> Select:
    """Jobs joined to their pipeline and team, one row per job."""
    return (
        select(
            Job.id,
            Job.name,
            Job.pipeline_id,
            Pipeline.name.label("pipeline_name"),
            Team.name.label("team_name"),
            Pipeline.public,
            Job.active,
            Job.paused,
            Job.next_build_id,
            Job.latest_completed_build_id,
            Job.transition_build_id,
        )
        .join_from(Job, Pipeline, Pipeline.id == Job.pipeline_id)
        .join(Team, Team.id == Pipeline.team_id)
    )


def builds_query() -> Select:
    """Builds joined to the job that owns them, plus pipeline and team names."""
    return (
        select(
            Build.id,
            Build.name,
            Build.job_id,
            Job.name.label("job_name"),
            Pipeline.name.label("pipeline_name"),
            Team.name.label("team_name"),
            Build.status,
            Build.start_time,
            Build.end_time,
        )
        .join_from(Build, Job, Job.id == Build.job_id)
        .join(Pipeline, Pipeline.id == Job.pipeline_id)
        .join(Team, Team.id == Pipeline.team_id)
    )


def pointer_column(column: str):
    """Return the jobs column for a pointer name, rejecting anything else."""
    if column not in POINTER_COLUMNS:
        raise ValueError(f"Unknown pointer column: {column}")
    return getattr(Job, column)
