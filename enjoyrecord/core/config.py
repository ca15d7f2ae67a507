import json

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, Field, field_validator, model_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = Field(default="local", alias="ENV")
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/enjoyrecord.db",
        alias="DATABASE_URL",
    )

    cors_origins: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    # Write routes are open when this is unset.
    admin_password: str | None = Field(default=None, alias="ENJOYRECORD_ADMIN_PASSWORD")

    # ─────────────────────────────────────────────
    # Search providers
    # ─────────────────────────────────────────────
    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    omdb_api_key: str | None = Field(default=None, alias="OMDB_API_KEY")
    rawg_api_key: str | None = Field(default=None, alias="RAWG_API_KEY")
    search_timeout_seconds: float = Field(default=10.0, alias="SEARCH_TIMEOUT_SECONDS")

    # ─────────────────────────────────────────────
    # NeoDB
    # ─────────────────────────────────────────────
    neodb_api_base: str = Field(default="https://neodb.social/api", alias="NEODB_API_BASE")
    neodb_timeout_seconds: float = Field(default=30.0, alias="NEODB_TIMEOUT_SECONDS")

    # ─────────────────────────────────────────────
    # Image proxy
    # ─────────────────────────────────────────────
    image_timeout_seconds: float = Field(default=15.0, alias="IMAGE_TIMEOUT_SECONDS")
    http_proxy: str | None = Field(
        default=None,
        validation_alias=AliasChoices("HTTPS_PROXY", "HTTP_PROXY"),
    )

    # ─────────────────────────────────────────────
    # Logging
    # ─────────────────────────────────────────────
    log_path: str = Field(default="./data/enjoyrecord.log", alias="ENJOYRECORD_LOG_PATH")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_database_url(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        cleaned = value.strip()
        if cleaned.startswith("postgres://"):
            cleaned = f"postgresql://{cleaned[len('postgres://'):]}"
        if cleaned.startswith("postgresql://") and not cleaned.startswith("postgresql+"):
            cleaned = cleaned.replace("postgresql://", "postgresql+asyncpg://", 1)
        if cleaned.startswith("sqlite://") and not cleaned.startswith("sqlite+"):
            cleaned = cleaned.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return cleaned

    @field_validator(
        "admin_password",
        "tmdb_api_key",
        "omdb_api_key",
        "rawg_api_key",
        "http_proxy",
        mode="before",
    )
    @classmethod
    def blank_as_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        return value.strip().upper()

    @model_validator(mode="after")
    def validate_timeouts(self) -> "Settings":
        for name in ("search_timeout_seconds", "neodb_timeout_seconds", "image_timeout_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive")
        return self

    def admin_configured(self) -> bool:
        return bool(self.admin_password)

    def cors_origin_list(self) -> list[str]:
        raw = (self.cors_origins or "").strip()
        if not raw:
            return []

        values: list[str]
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                values = [str(v) for v in parsed if isinstance(v, str)]
            else:
                values = [raw]
        else:
            values = raw.split(",")

        normalized: list[str] = []
        seen: set[str] = set()
        for value in values:
            cleaned = value.strip().strip("\"'")
            if not cleaned:
                continue
            # CORS origins are scheme + host (+ optional port) with no path slash.
            if cleaned != "*" and cleaned.endswith("/"):
                cleaned = cleaned.rstrip("/")
            if cleaned in seen:
                continue
            seen.add(cleaned)
            normalized.append(cleaned)

        return normalized

settings = Settings()
