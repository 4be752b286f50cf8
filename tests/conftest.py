"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import event

from pipelinedash.database import Build, Job, Pipeline, Team, get_engine, get_session, init_database
from pipelinedash.job_factory import JobFactory
from pipelinedash.logger import reset_logger


class PipelineSeeder:
    """Writes teams, pipelines, jobs and builds the way the scheduler would."""

    def __init__(self, db_path: Path):
        self.session = get_session(db_path)
        self._started = datetime(2024, 1, 1, 12, 0, 0)

    def team(self, name: str) -> Team:
        team = Team(name=name)
        self.session.add(team)
        self.session.commit()
        return team

    def pipeline(self, team: Team, name: str, public: bool = False) -> Pipeline:
        pipeline = Pipeline(team_id=team.id, name=name, public=public)
        self.session.add(pipeline)
        self.session.commit()
        return pipeline

    def job(self, pipeline: Pipeline, name: str, job_id: int = None, active: bool = True) -> Job:
        job = Job(id=job_id, pipeline_id=pipeline.id, name=name, active=active)
        self.session.add(job)
        self.session.commit()
        return job

    def build(self, job: Job, name: str, status: str = "succeeded", build_id: int = None) -> Build:
        finished = status not in ("pending", "started")
        build = Build(
            id=build_id,
            job_id=job.id,
            name=name,
            status=status,
            start_time=self._started if status != "pending" else None,
            end_time=self._started + timedelta(minutes=5) if finished else None,
        )
        self.session.add(build)
        self.session.commit()
        return build

    def point(self, job: Job, next_build=None, finished=None, transition=None) -> None:
        """Set pointer columns; accepts Build rows or raw ids."""
        def _id(value):
            return value.id if isinstance(value, Build) else value

        job.next_build_id = _id(next_build)
        job.latest_completed_build_id = _id(finished)
        job.transition_build_id = _id(transition)
        self.session.commit()

    def close(self):
        self.session.close()


class QueryCounter:
    """Collects every SQL statement sent to the database."""

    def __init__(self, engine):
        self.statements = []
        event.listen(engine, "before_cursor_execute", self._record)

    def _record(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    def jobs_queries(self):
        return [s for s in self.statements if "FROM jobs" in s]

    def builds_queries(self):
        return [s for s in self.statements if "FROM builds" in s]


@pytest.fixture(autouse=True)
def fresh_logger(monkeypatch):
    """Keep log output on the console only, at the default level."""
    # setenv first so values written by load_dotenv are undone after the test
    for name in ("PIPELINEDASH_LOG_DIR", "PIPELINEDASH_LOG_LEVEL"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    reset_logger()
    yield
    reset_logger()


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Create an empty database and return its path."""
    path = tmp_path / "pipelines.db"
    init_database(path)
    return path


@pytest.fixture
def seeder(db_path):
    """Seeder bound to the temporary database."""
    s = PipelineSeeder(db_path)
    yield s
    s.close()


@pytest.fixture(params=[True, False], ids=["parallel", "sequential"])
def factory(request, db_path):
    """JobFactory over the temporary database, in both lookup modes."""
    engine = get_engine(db_path)
    yield JobFactory(engine, parallel=request.param)
    engine.dispose()


@pytest.fixture
def query_counter(factory):
    return QueryCounter(factory.engine)
