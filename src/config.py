"""Utility helpers for loading project configuration.

This module is the single source of truth for environment-driven
configuration such as database connection details, the principal the
result store acts as, and the log level.

Usage:
- Call ``load_env_file()`` once at startup to load ``resources/.env``.
- Use ``get_env`` for simple lookups.
- Use the convenience helpers like ``get_database_url`` and
  ``get_db_principal`` for normalized access.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_PRINCIPAL = "hetzner-ci"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s %(message)s"
ROOT_LOGGER = "benchmarks"


def load_env_file(env_path: Optional[Path] = None) -> None:
    """
    Load environment variables from an .env file.

    Parameters:
        env_path: Optional path to the .env file. Defaults to resources/.env.
    """
    env_file = Path(env_path or "resources/.env")
    if env_file.exists():
        load_dotenv(env_file)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Fetch an environment variable with an optional default."""
    return os.getenv(name, default)


# ----- Database helpers -----

def get_database_url() -> Optional[str]:
    """Return a database URL for the benchmark result database.

    Prefers ``DATABASE_URL`` if present; otherwise constructs a DSN from:
    - DB_HOST, DB_PORT, DB_NAME, DB_USER, DB_PASSWORD
    """
    db_url = get_env("DATABASE_URL")
    if db_url:
        return db_url

    host = get_env("DB_HOST")
    port = get_env("DB_PORT") or "5432"
    name = get_env("DB_NAME")
    user = get_env("DB_USER")
    password = get_env("DB_PASSWORD")

    if not (host and name and user and password):
        return None

    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{name}"


def get_db_principal() -> str:
    """Return the principal used for authorization checks.

    ``DB_PRINCIPAL`` wins, then ``DB_USER``, then the CI role.
    """
    return get_env("DB_PRINCIPAL") or get_env("DB_USER") or DEFAULT_PRINCIPAL


# ----- Logging helpers -----

def get_log_level() -> int:
    name = (get_env("LOG_LEVEL") or "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """Attach a stream handler to the ``benchmarks`` logger once."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level if level is not None else get_log_level())
    if logger.handlers:
        return logger
    stream = logging.StreamHandler()
    stream.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream)
    logger.propagate = False
    return logger
