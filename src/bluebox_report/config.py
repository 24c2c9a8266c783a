"""Configuration loading from .env files."""

import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from dotenv import load_dotenv


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # Database
    db_name: str = "dvdrental"
    db_host: str = "localhost"
    db_user: str = "postgres"
    db_password: str = "password"
    db_port: int = 5432
    db_schema: str = "public"

    # Connection pool
    pool_min_size: int = 1
    pool_max_size: int = 4
    pool_timeout: float = 10.0

    # Report window (rental_date BETWEEN start AND end)
    window_start: date = date(2005, 6, 1)
    window_end: date = date(2005, 9, 1)
    top_genres: int = 3

    # OpenTelemetry (optional)
    otel_endpoint: str = ""
    otel_headers: str = ""
    otel_service_name: str = "bluebox-report"

    @property
    def otel_enabled(self) -> bool:
        """True when OTel tracing should be initialized."""
        return bool(self.otel_endpoint)

    @property
    def window(self) -> tuple[date, date]:
        return self.window_start, self.window_end

    def validate(self):
        """Raise ValueError if required config is missing or invalid."""
        if self.pool_min_size < 1:
            raise ValueError("POOL_MIN_SIZE must be >= 1")
        if self.pool_max_size < self.pool_min_size:
            raise ValueError("POOL_MAX_SIZE must be >= POOL_MIN_SIZE")
        if self.pool_timeout <= 0:
            raise ValueError("POOL_TIMEOUT must be > 0")
        if self.window_end < self.window_start:
            raise ValueError("WINDOW_END must not be before WINDOW_START")
        if self.top_genres < 1:
            raise ValueError("TOP_GENRES must be >= 1")


def _parse_date(name: str, default: str) -> date:
    value = os.getenv(name, default)
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}") from None


def load_config(env_file: str | None = None) -> Config:
    """Load configuration from environment variables and optional .env file.

    Args:
        env_file: Path to .env file. If None, searches for .env in the
                  project root.
    """
    if env_file:
        load_dotenv(env_file)
    else:
        project_root = Path(__file__).resolve().parent.parent.parent
        dotenv_path = project_root / ".env"
        if dotenv_path.exists():
            load_dotenv(dotenv_path)

    return Config(
        db_name=os.getenv("DB_NAME", "dvdrental"),
        db_host=os.getenv("DB_HOST", "localhost"),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "password"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_schema=os.getenv("DB_SCHEMA", "public"),
        pool_min_size=int(os.getenv("POOL_MIN_SIZE", "1")),
        pool_max_size=int(os.getenv("POOL_MAX_SIZE", "4")),
        pool_timeout=float(os.getenv("POOL_TIMEOUT", "10")),
        window_start=_parse_date("WINDOW_START", "2005-06-01"),
        window_end=_parse_date("WINDOW_END", "2005-09-01"),
        top_genres=int(os.getenv("TOP_GENRES", "3")),
        otel_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", ""),
        otel_headers=os.getenv("OTEL_EXPORTER_OTLP_HEADERS", ""),
        otel_service_name=os.getenv("OTEL_SERVICE_NAME", "bluebox-report"),
    )
