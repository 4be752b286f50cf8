"""
Tests for database.py - schema creation and connections.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from pipelinedash.database import Job, Pipeline, Team, database_url, get_session, init_database


class TestDatabaseInit:
    """Test database initialization."""

    def test_init_creates_database_file(self, tmp_path):
        """Test that init_database creates the database file."""
        db_path = tmp_path / "test.db"
        assert not db_path.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_creates_tables(self, tmp_path):
        """Test that init_database creates every table."""
        db_path = tmp_path / "test.db"
        init_database(db_path)

        session = get_session(db_path)
        assert session.query(Team).count() == 0
        assert session.query(Pipeline).count() == 0
        assert session.query(Job).count() == 0
        session.close()

    def test_init_creates_parent_directories(self, tmp_path):
        """Test that init_database creates parent directories if missing."""
        db_path = tmp_path / "nested" / "dir" / "test.db"
        assert not db_path.parent.exists()

        init_database(db_path)

        assert db_path.exists()

    def test_init_accepts_url(self, tmp_path):
        """A sqlite URL works like a path, parent directories included."""
        db_path = tmp_path / "from_url" / "test.db"

        init_database(f"sqlite:///{db_path}")

        assert db_path.exists()


class TestDatabaseUrl:

    def test_path_becomes_sqlite_url(self, tmp_path):
        assert database_url(tmp_path / "x.db") == f"sqlite:///{tmp_path / 'x.db'}"

    def test_url_is_returned_unchanged(self):
        url = "postgresql://ci@localhost/concourse"
        assert database_url(url) == url

    def test_memory_url(self):
        assert database_url("sqlite://") == "sqlite://"


class TestSchema:
    """Test table constraints."""

    @pytest.fixture
    def db_session(self, tmp_path):
        db_path = tmp_path / "test.db"
        init_database(db_path)
        session = get_session(db_path)
        yield session
        session.close()

    def test_team_names_are_unique(self, db_session):
        db_session.add(Team(name="main"))
        db_session.commit()

        db_session.add(Team(name="main"))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_job_defaults(self, db_session):
        """New jobs are active, unpaused and have no pointer builds."""
        team = Team(name="main")
        db_session.add(team)
        db_session.commit()
        pipeline = Pipeline(team_id=team.id, name="ci")
        db_session.add(pipeline)
        db_session.commit()
        job = Job(pipeline_id=pipeline.id, name="test")
        db_session.add(job)
        db_session.commit()

        saved = db_session.query(Job).filter_by(name="test").first()
        assert saved.active is True
        assert saved.paused is False
        assert saved.next_build_id is None
        assert saved.latest_completed_build_id is None
        assert saved.transition_build_id is None
        assert db_session.get(Pipeline, pipeline.id).public is False
