import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DB_PATH = "data/microblog.db"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Settings:
    db_path: Path
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    batch_size: int = 500
    max_retries: int = 3


def load_env() -> None:
    """Load .env from project root if present. Existing variables win."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise SystemExit(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise SystemExit(f"{name} must not be negative, got {value}")
    return value


def load_settings() -> Settings:
    """Build settings from MICROBLOG_* environment variables."""
    batch_size = _int_env("MICROBLOG_BATCH_SIZE", 500)
    if batch_size == 0:
        raise SystemExit("MICROBLOG_BATCH_SIZE must be at least 1")
    log_level = (os.getenv("MICROBLOG_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        raise SystemExit(f"MICROBLOG_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")
    return Settings(
        db_path=Path(os.getenv("MICROBLOG_DB") or DEFAULT_DB_PATH),
        log_level=log_level,
        log_dir=Path(os.getenv("MICROBLOG_LOG_DIR") or "logs"),
        batch_size=batch_size,
        max_retries=_int_env("MICROBLOG_MAX_RETRIES", 3),
    )
