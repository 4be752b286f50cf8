"""
Database schema and connection management.

Uses SQLAlchemy over any supported backend (SQLite by default). The tables are
written by the pipeline loader and build scheduler; this package only reads them.
"""

from pathlib import Path
from typing import Union

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()

DatabaseTarget = Union[str, Path]


class Team(Base):
    """Team model."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False, unique=True)


class Pipeline(Base):
    """Pipeline model. Jobs of a public pipeline are visible to every team."""

    __tablename__ = "pipelines"

    id = Column(Integer, primary_key=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    name = Column(String, nullable=False)
    public = Column(Boolean, nullable=False, default=False)
    paused = Column(Boolean, nullable=False, default=False)


class Job(Base):
    """Job model with its three pointer builds."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True)
    pipeline_id = Column(Integer, ForeignKey("pipelines.id"), nullable=False)
    name = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    paused = Column(Boolean, nullable=False, default=False)
    # Pointers into builds; no foreign keys since builds.job_id points back here
    next_build_id = Column(Integer, nullable=True)
    latest_completed_build_id = Column(Integer, nullable=True)
    transition_build_id = Column(Integer, nullable=True)


class Build(Base):
    """Build model."""

    __tablename__ = "builds"

    id = Column(Integer, primary_key=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")  # pending, started, succeeded, ...
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)


def database_url(target: DatabaseTarget) -> str:
    """
    Turn a SQLite file path or a database URL into a URL.

    Args:
        target: Path to SQLite database file, or a full SQLAlchemy URL

    Returns:
        SQLAlchemy database URL
    """
    if isinstance(target, Path):
        target.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{target}"

    url = make_url(target)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return target


def get_engine(target: DatabaseTarget) -> Engine:
    """
    Create an engine for a path or URL.

    Args:
        target: Path to SQLite database file, or a full SQLAlchemy URL

    Returns:
        SQLAlchemy engine
    """
    return create_engine(database_url(target))


def init_database(target: DatabaseTarget) -> None:
    """
    Initialize database and create tables.

    Args:
        target: Path to SQLite database file, or a full SQLAlchemy URL
    """
    engine = get_engine(target)
    Base.metadata.create_all(engine)
    engine.dispose()


def get_session(target: DatabaseTarget):
    """
    Get database session.

    Args:
        target: Path to SQLite database file, or a full SQLAlchemy URL

    Returns:
        SQLAlchemy session
    """
    engine = get_engine(target)
    Session = sessionmaker(bind=engine)
    return Session()
