from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:8081", "http://localhost:19006"]


def _parse_cors_origins(v: Any) -> List[str]:
    try:
        if v is None or v == "":
            return _DEFAULT_CORS.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return _DEFAULT_CORS.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or _DEFAULT_CORS.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or _DEFAULT_CORS.copy()
    except ValueError:
        return _DEFAULT_CORS.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")
    secret_key: str = Field(default="change-me-in-production-min-32-chars")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="pawpaw", alias="MONGODB_DB_NAME")
    # Multi-document transactions need a replica set; standalone servers fall back to compensation
    mongodb_transactions: bool = Field(default=False, alias="MONGODB_TRANSACTIONS")

    # Redis (ARQ + realtime fan-out)
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    realtime_backend: str = Field(default="memory", alias="REALTIME_BACKEND")
    realtime_channel: str = Field(default="pawpaw:events", alias="REALTIME_CHANNEL")

    # Google Sign-In
    google_client_id: str = Field(default="", alias="GOOGLE_CLIENT_ID")

    # Storage
    storage_backend: str = Field(default="local", alias="STORAGE_BACKEND")
    storage_local_path: str = Field(default="./uploads", alias="STORAGE_LOCAL_PATH")
    storage_public_base_url: str = Field(default="/uploads", alias="STORAGE_PUBLIC_BASE_URL")
    gcs_bucket_name: str | None = Field(default=None, alias="GCS_BUCKET_NAME")
    signed_url_ttl_seconds: int = Field(default=7 * 24 * 3600, alias="SIGNED_URL_TTL_SECONDS")
    upload_max_bytes: int = Field(default=10 * 1024 * 1024, alias="UPLOAD_MAX_BYTES")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:8081,http://localhost:19006",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors_origins(getattr(self, "cors_origins_raw", None))

    # Wallet
    wallet_starting_balance: int = Field(default=100, alias="WALLET_STARTING_BALANCE")

    # Live streams
    live_stream_url_base: str = Field(default="wss://stream.pawpaw.live", alias="LIVE_STREAM_URL_BASE")
    live_stream_idle_hours: int = Field(default=12, alias="LIVE_STREAM_IDLE_HOURS")

    # Feeds
    leaderboard_size: int = 100


@lru_cache
def get_settings() -> Settings:
    return Settings()
