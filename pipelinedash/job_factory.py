"""
Dashboard read layer.

Answers "what is the current state of each job this caller may see?" by
selecting visible jobs and attaching each job's next, latest completed and
transition builds.

Every public call issues at most five queries (two job queries for
visible_jobs, one for all_active_jobs, then one per pointer column) and either
returns a complete Dashboard or raises. Nothing is cached and nothing is
retried here; wrap calls with retry.exponential_backoff if you want that.
"""

from concurrent.futures import ThreadPoolExecutor
from contextlib import closing
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Select

from .database import Build as BuildRow, Job as JobRow, Pipeline, Team, get_engine
from .env import Settings
from .errors import PipelineDashError, StorageError
from .logger import get_logger
from .models import Build, Dashboard, DashboardJob, Job
from .queries import POINTER_COLUMNS, builds_query, jobs_query, pointer_column
from .scan import scan_build, scan_jobs


class JobFactory:
    """
    Builds dashboards from the jobs and builds tables.

    Holds no state between calls besides the engine, so one instance can
    serve concurrent requests.
    """

    def __init__(self, engine: Engine, parallel: bool = True):
        """
        Args:
            engine: SQLAlchemy engine for the pipeline database
            parallel: Resolve the three pointer columns on worker threads
        """
        self.engine = engine
        self.parallel = parallel

    def visible_jobs(self, team_names: Iterable[str]) -> Dashboard:
        """
        Dashboard of every active job the given teams may see.

        Jobs of the caller's teams come first (ascending id), followed by
        public jobs of all other teams (ascending id). The two halves are not
        merged by id.

        Args:
            team_names: Teams the caller belongs to; may be empty

        Raises:
            TypeError: If team_names is a single string
            StorageError: If any query fails
        """
        if isinstance(team_names, str):
            raise TypeError("team_names must be a collection of names, not a string")
        names = sorted(set(team_names))
        return self._run(
            "visible_jobs",
            lambda: self._team_jobs(names) + self._other_team_public_jobs(names),
        )

    def all_active_jobs(self) -> Dashboard:
        """
        Dashboard of every active job regardless of team or visibility.

        Raises:
            StorageError: If any query fails
        """
        return self._run("all_active_jobs", self._active_jobs)

    def build_dashboard(self, jobs: Sequence[Job]) -> Dashboard:
        """
        Attach pointer builds to an arbitrary job list, keeping its order.

        Raises:
            StorageError: If any pointer lookup fails
        """
        return self._run("build_dashboard", lambda: list(jobs))

    def _run(self, operation: str, load_jobs: Callable[[], List[Job]]) -> Dashboard:
        logger = get_logger()
        try:
            dashboard = self._assemble(load_jobs())
        except PipelineDashError as e:
            logger.record_dashboard_failure(type(e).__name__)
            logger.error(f"{operation} failed", error=str(e))
            raise

        logger.record_dashboard(len(dashboard))
        logger.debug(f"{operation} complete", jobs=len(dashboard))
        return dashboard

    # Job selection

    def _team_jobs(self, team_names: List[str]) -> List[Job]:
        if not team_names:
            return []
        statement = (
            jobs_query()
            .where(Team.name.in_(team_names), JobRow.active.is_(True))
            .order_by(JobRow.id.asc())
        )
        return self._fetch_jobs("team_jobs", statement)

    def _other_team_public_jobs(self, team_names: List[str]) -> List[Job]:
        statement = (
            jobs_query()
            .where(Team.name.not_in(team_names))
            .where(Pipeline.public.is_(True), JobRow.active.is_(True))
            .order_by(JobRow.id.asc())
        )
        return self._fetch_jobs("other_team_public_jobs", statement)

    def _active_jobs(self) -> List[Job]:
        statement = (
            jobs_query()
            .where(JobRow.active.is_(True))
            .order_by(JobRow.id.asc())
        )
        return self._fetch_jobs("active_jobs", statement)

    def _fetch_jobs(self, kind: str, statement: Select) -> List[Job]:
        get_logger().record_query(kind)
        try:
            with self.engine.connect() as conn:
                with closing(conn.execute(statement)) as result:
                    return scan_jobs(result)
        except SQLAlchemyError as e:
            raise StorageError(kind, message=str(e)) from e

    # Pointer builds

    def _assemble(self, jobs: List[Job]) -> Dashboard:
        if not jobs:
            return []

        job_ids = [job.id for job in jobs]
        next_builds, finished_builds, transition_builds = self._resolve_pointers(job_ids)

        dashboard = []
        for job in jobs:
            dashboard.append(
                DashboardJob(
                    job=job,
                    next_build=next_builds.get(job.id),
                    finished_build=finished_builds.get(job.id),
                    transition_build=transition_builds.get(job.id),
                )
            )
        return dashboard

    def _resolve_pointers(self, job_ids: List[int]) -> List[Dict[int, Build]]:
        """Look up all three pointer columns; returned in POINTER_COLUMNS order."""
        if not self.parallel:
            return [self._builds_from(column, job_ids) for column in POINTER_COLUMNS]

        with ThreadPoolExecutor(max_workers=len(POINTER_COLUMNS)) as pool:
            futures = [
                pool.submit(self._builds_from, column, job_ids)
                for column in POINTER_COLUMNS
            ]
            # Leaving the block waits for every lookup, failed or not
            return [future.result() for future in futures]

    def _builds_from(self, column: str, job_ids: Iterable[int]) -> Dict[int, Build]:
        """
        Builds referenced by `column` for the given jobs, keyed by job id.

        Only builds owned by the pointing job are returned. Jobs with no
        pointer, or whose pointer names a missing build, are left out.

        Raises:
            ValueError: If column is not a pointer column
            StorageError: If the query fails
        """
        pointer = pointer_column(column)
        ids = list(job_ids)
        if not ids:
            return {}

        statement = (
            builds_query()
            .where(JobRow.id.in_(ids))
            .where(pointer == BuildRow.id)
        )

        get_logger().record_query(column)
        builds: Dict[int, Build] = {}
        try:
            with self.engine.connect() as conn:
                with closing(conn.execute(statement)) as result:
                    for row in result:
                        build = scan_build(row)
                        builds[build.job_id] = build
        except SQLAlchemyError as e:
            raise StorageError("resolve builds", column=column, message=str(e)) from e

        return builds


def new_job_factory(database_url: Optional[str] = None, parallel: Optional[bool] = None) -> JobFactory:
    """
    Create a JobFactory from settings.

    Args:
        database_url: SQLAlchemy URL (default: PIPELINEDASH_DATABASE_URL)
        parallel: Parallel pointer lookups (default: PIPELINEDASH_PARALLEL_LOOKUPS)

    Returns:
        JobFactory bound to a new engine
    """
    settings = Settings.from_env()
    engine = get_engine(database_url or settings.database_url)
    if parallel is None:
        parallel = settings.parallel_lookups
    return JobFactory(engine, parallel=parallel)
