"""
Configuration Module

This module contains configuration settings for the application.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

# Load environment variables from .env file
from dotenv import load_dotenv

# Base directory - one level up from this file
BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")

DATA_DIR = BASE_DIR / "data"
DEFAULT_DATABASE_URL = f"sqlite:///{DATA_DIR / 'zemon.db'}"

# Cache entries live for one hour unless invalidated earlier
DEFAULT_CACHE_EXPIRATION = 3600

# Pagination defaults
DEFAULT_PAGE_SIZE = 10
STORE_PAGE_SIZE = 12
# Larger query values are clamped so offsets stay within a 64-bit integer
MAX_PAGE_SIZE = 100
MAX_PAGE = 100000
UPCOMING_EVENTS_LIMIT = 5


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass
class Settings:
    """Runtime settings, resolved once at startup and passed to `create_app`."""

    database_url: str = DEFAULT_DATABASE_URL
    redis_url: str = "redis://localhost:6379/0"
    github_api_url: str = "https://api.github.com"
    github_token: str = ""
    github_timeout_seconds: float = 10.0
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    cache_expiration: int = DEFAULT_CACHE_EXPIRATION
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            github_api_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
            github_token=os.getenv("GITHUB_TOKEN", ""),  # Personal Access Token for GitHub API
            github_timeout_seconds=float(os.getenv("GITHUB_TIMEOUT_SECONDS", "10")),
            jwt_secret=os.getenv("JWT_SECRET", "change-me"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            cache_expiration=int(
                os.getenv("CACHE_EXPIRATION", str(DEFAULT_CACHE_EXPIRATION))
            ),
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "*")),
            api_prefix=os.getenv("API_PREFIX", "/api"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
