"""Application configuration builder.

Environment variables are read through :class:`TempdropSettings`
(``TEMPDROP_`` prefix, plus the conventional ``DATABASE_URL``); the
resulting :class:`AppConfig` also carries the SQLAlchemy engine and
session factory shared by every repository.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .archives.expiration import ExpirationPolicy
from .db.db_init import init_db


class TempdropSettings(BaseSettings):
    """Raw settings sourced from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="TEMPDROP_", extra="ignore", populate_by_name=True
    )

    database_url: str = Field(
        default="sqlite:///tempdrop.db",
        validation_alias=AliasChoices("DATABASE_URL", "TEMPDROP_DATABASE_URL"),
    )
    storage_root: Path = Path("uploads")
    public_base_url: str | None = None
    max_upload_bytes: int = Field(default=100 * 1024 * 1024, ge=1)
    default_lifetime_seconds: int = Field(default=7 * 24 * 3600, ge=1)
    min_lifetime_seconds: int = Field(default=10 * 60, ge=1)
    max_lifetime_seconds: int = Field(default=30 * 24 * 3600, ge=1)
    reclaim_interval_seconds: float = Field(default=1.0, gt=0)
    reclaim_batch_size: int = Field(default=500, ge=1)
    disable_reclaimer: bool = False


@dataclass(slots=True)
class ReclaimerSettings:
    interval_seconds: float
    batch_size: int
    enabled: bool


@dataclass(slots=True)
class AppConfig:
    storage_root: Path
    public_base_url: str | None
    max_upload_bytes: int
    expiration_policy: ExpirationPolicy
    reclaimer: ReclaimerSettings
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]


def create_session_factory(database_url: str) -> tuple[Engine, sessionmaker[Session]]:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(
        database_url, future=True, hide_parameters=True, connect_args=connect_args
    )
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)
    return engine, session_factory


def load_config(settings: TempdropSettings | None = None) -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    raw = settings or TempdropSettings()
    raw.storage_root.mkdir(parents=True, exist_ok=True)

    policy = ExpirationPolicy(
        default_lifetime=timedelta(seconds=raw.default_lifetime_seconds),
        min_lifetime=timedelta(seconds=raw.min_lifetime_seconds),
        max_lifetime=timedelta(seconds=raw.max_lifetime_seconds),
    )

    engine, session_factory = create_session_factory(raw.database_url)
    init_db(engine)

    return AppConfig(
        storage_root=raw.storage_root,
        public_base_url=raw.public_base_url or None,
        max_upload_bytes=raw.max_upload_bytes,
        expiration_policy=policy,
        reclaimer=ReclaimerSettings(
            interval_seconds=raw.reclaim_interval_seconds,
            batch_size=raw.reclaim_batch_size,
            enabled=not raw.disable_reclaimer,
        ),
        database_url=raw.database_url,
        engine=engine,
        session_factory=session_factory,
    )
