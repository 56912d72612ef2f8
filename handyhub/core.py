"""Application configuration and logging setup.

This module defines the application settings loaded from environment
variables, a helper returning the cached settings object, and the
one-time logging configuration used by the API process.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        SECRET_KEY: Secret key used for JWT signing.
        ALGORITHM: Algorithm used to encode JWT tokens.
        ACCESS_TOKEN_EXPIRE_MINUTES: Identity token lifetime in minutes.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        LOG_LEVEL: Root logger level name.
        LOG_FILE: Optional path of a log file.
    """

    DATABASE_URL: str = "sqlite:///./handyhub.db"
    SECRET_KEY: str = "dev-secret"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    ALLOWED_ORIGINS: List[str] = ["*"]
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is created once and shared for the whole process
    lifetime; nothing in the application mutates it.
    """

    return Settings()


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger.

    Attaches a console handler and, when ``logfile`` is given, a file
    handler. Does nothing if the root logger already has handlers, so it
    is safe to call more than once (tests import the app repeatedly).

    Args:
        level (str): Logging level name, case insensitive.
        logfile (str | None): Optional path of a log file.
    """
    logger = logging.getLogger()
    if logger.handlers:
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if logfile:
        file_handler = logging.FileHandler(Path(logfile).resolve(), encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
