import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        log_level: str,
        scheduler_enabled: bool,
        sync_hour: int,
        sync_minute: int,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.log_level = log_level
        self.scheduler_enabled = scheduler_enabled
        self.sync_hour = sync_hour
        self.sync_minute = sync_minute


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("SPENDWATCH_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "spendwatch.db"
    database_url = os.getenv("SPENDWATCH_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("SPENDWATCH_TIMEZONE", "Europe/Berlin")
    log_level = os.getenv("SPENDWATCH_LOG_LEVEL", "INFO").upper()
    scheduler_enabled = _env_flag("SPENDWATCH_SCHEDULER_ENABLED", "1")
    sync_hour = int(os.getenv("SPENDWATCH_SYNC_HOUR", "3"))
    sync_minute = int(os.getenv("SPENDWATCH_SYNC_MINUTE", "15"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        log_level=log_level,
        scheduler_enabled=scheduler_enabled,
        sync_hour=sync_hour,
        sync_minute=sync_minute,
    )
