from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


@dataclass(frozen=True)
class Settings:
    port: int
    database_url: str
    db_name: str
    log_level: str

    db_pool_timeout: int = 10


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("CRAGCROWD_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    port = int(os.getenv("PORT", "3000"))
    database_url = os.getenv("DATABASE_URL", "sqlite:///cragcrowd.db")
    db_name = os.getenv("DB_NAME", "cragcrowd")
    log_level = os.getenv("LOG_LEVEL", "info").strip().upper()

    db_pool_timeout = int(os.getenv("DB_POOL_TIMEOUT", "10"))

    return Settings(
        port=port,
        database_url=database_url,
        db_name=db_name,
        log_level=log_level,
        db_pool_timeout=db_pool_timeout,
    )
