import argparse
import json
from typing import Callable, Optional

from . import __version__
from .database import init_database
from .env import Settings, load_env
from .errors import PipelineDashError
from .job_factory import JobFactory, new_job_factory
from .models import Build, Dashboard, dashboard_to_dicts
from .retry import RetryError, exponential_backoff, is_transient_error


def _factory(args: argparse.Namespace) -> JobFactory:
    return new_job_factory(database_url=args.db, parallel=False if args.sequential else None)


def _with_retries(call: Callable[[], Dashboard], retries: int) -> Dashboard:
    if retries <= 0:
        return call()

    def announce(attempt, error, delay):
        print(f"[retry {attempt}/{retries}] {error} (waiting {delay:.1f}s)")

    retrying = exponential_backoff(
        max_retries=retries,
        base_delay=0.5,
        exceptions=(PipelineDashError,),
        retry_if=is_transient_error,
        on_retry=announce,
    )(call)
    return retrying()


def _load(args: argparse.Namespace, call: Callable[[], Dashboard]) -> Dashboard:
    try:
        return _with_retries(call, args.retries)
    except (PipelineDashError, RetryError) as e:
        raise SystemExit(f"Dashboard unavailable: {e}")


def _describe(build: Optional[Build]) -> str:
    if build is None:
        return "-"
    return f"#{build.name} {build.status.value}"


def print_dashboard(dashboard: Dashboard, as_json: bool = False) -> None:
    if as_json:
        print(json.dumps(dashboard_to_dicts(dashboard), indent=2))
        return
    if not dashboard:
        print("No jobs.")
        return
    print(f"Found {len(dashboard)} jobs:\n")
    for entry in dashboard:
        job = entry.job
        flags = " (public)" if job.public else ""
        if job.paused:
            flags += " (paused)"
        print(f"{job.team_name}/{job.pipeline_name}/{job.name}{flags}")
        print(f"  Next: {_describe(entry.next_build)}")
        print(f"  Finished: {_describe(entry.finished_build)}")
        print(f"  Transition: {_describe(entry.transition_build)}")
        print()


def cmd_init_db(args: argparse.Namespace) -> None:
    url = args.db or Settings.from_env().database_url
    init_database(url)
    print(f"Initialized database: {url}")


def cmd_visible(args: argparse.Namespace) -> None:
    factory = _factory(args)
    teams = args.team or []
    dashboard = _load(args, lambda: factory.visible_jobs(teams))
    print_dashboard(dashboard, as_json=args.json)


def cmd_all(args: argparse.Namespace) -> None:
    factory = _factory(args)
    dashboard = _load(args, factory.all_active_jobs)
    print_dashboard(dashboard, as_json=args.json)


def main(argv=None):
    # Load .env if present (PIPELINEDASH_DATABASE_URL, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="pipelinedash", description="Pipeline job dashboard")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--db", help="Database URL (default: PIPELINEDASH_DATABASE_URL)")
    parser.add_argument("--retries", type=int, default=0, help="Retry transient storage errors this many times")
    parser.add_argument("--sequential", action="store_true", help="Resolve pointer builds one column at a time")

    subparsers = parser.add_subparsers(dest="command")
    ini = subparsers.add_parser("init-db", help="Create the database tables")
    ini.set_defaults(func=cmd_init_db)

    vis = subparsers.add_parser("visible", help="Jobs visible to the given teams, then public jobs of other teams")
    vis.add_argument("--team", action="append", help="Team name (repeatable; omit for public jobs only)")
    vis.add_argument("--json", action="store_true", help="Print JSON instead of text")
    vis.set_defaults(func=cmd_visible)

    al = subparsers.add_parser("all", help="All active jobs of every team")
    al.add_argument("--json", action="store_true", help="Print JSON instead of text")
    al.set_defaults(func=cmd_all)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            Settings.from_env()
        except ValueError as e:
            raise SystemExit(f"Invalid configuration: {e}")
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
