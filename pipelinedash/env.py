import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///data/pipelines.db"

_FALSE_VALUES = {"0", "false", "no", "off"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env() -> None:
    """Load .env from the working directory if present.
    Variables already set in the environment win.
    """
    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    parallel_lookups: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        log_dir = os.getenv("PIPELINEDASH_LOG_DIR")
        parallel = os.getenv("PIPELINEDASH_PARALLEL_LOOKUPS", "true")
        log_level = os.getenv("PIPELINEDASH_LOG_LEVEL", "INFO").strip().upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(
                f"PIPELINEDASH_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}"
            )
        return cls(
            database_url=os.getenv("PIPELINEDASH_DATABASE_URL", DEFAULT_DATABASE_URL),
            log_level=log_level,
            log_dir=Path(log_dir) if log_dir else None,
            parallel_lookups=parallel.strip().lower() not in _FALSE_VALUES,
        )
