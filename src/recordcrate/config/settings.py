"""Application settings loaded from environment variables and .env files.

Hey future me - every sub-settings class has its OWN env prefix! So
SPOTIFY_CLIENT_ID lands in settings.spotify.client_id and DATABASE_URL in
settings.database.url. Existing deployments' .env files keep working as-is.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_FILES = (".env", ".env.local")


class ApiSettings(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="API_", env_file=_ENV_FILES, extra="ignore"
    )

    host: str = "0.0.0.0"  # nosec B104 - container deployment
    port: int = 4000
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"]
    )


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_", env_file=_ENV_FILES, extra="ignore"
    )

    url: str = "sqlite+aiosqlite:///./data/recordcrate.db"
    echo: bool = False
    pool_pre_ping: bool = True
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    # Alembic owns the schema in production; tests and local dev create tables directly
    auto_create_tables: bool = True


class SpotifySettings(BaseSettings):
    """Spotify Web API and Accounts service settings."""

    model_config = SettingsConfigDict(
        env_prefix="SPOTIFY_", env_file=_ENV_FILES, extra="ignore"
    )

    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "http://localhost:5173/callback"
    market: str = "US"
    # Subtracted from expires_in so we never hand out a token in its last seconds
    token_safety_margin_seconds: int = 60

    @field_validator("token_safety_margin_seconds")
    @classmethod
    def _margin_at_least_30s(cls, value: int) -> int:
        if value < 30:
            raise ValueError("token_safety_margin_seconds must be >= 30")
        return value

    @property
    def is_configured(self) -> bool:
        """True when both client credentials are present."""
        return bool(self.client_id.strip() and self.client_secret.strip())


class GeminiSettings(BaseSettings):
    """Generative text API settings for natural-language search."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_", env_file=_ENV_FILES, extra="ignore"
    )

    api_key: str = ""
    model: str = "gemini-2.5-flash"
    timeout_seconds: float = 20.0


class ChartSettings(BaseSettings):
    """Billboard chart ingest settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHARTS_", env_file=_ENV_FILES, extra="ignore"
    )

    rss_url: str = "https://www.billboard.com/charts/hot-100/feed/"
    html_url: str = "https://www.billboard.com/charts/hot-100/"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    cache_ttl_hours: int = 24
    max_entries: int = 100
    page_size: int = 20
    # Spotify daily top 200 (global) as CSV: Position,Track Name,Artist,Streams,URL
    streaming_csv_url: str = (
        "https://spotifycharts.com/regional/global/daily/latest/download"
    )


class HttpSettings(BaseSettings):
    """Shared outbound HTTP client settings."""

    model_config = SettingsConfigDict(
        env_prefix="HTTP_", env_file=_ENV_FILES, extra="ignore"
    )

    timeout: float = 15.0
    max_keepalive: int = 20
    max_connections: int = 50


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_", env_file=_ENV_FILES, extra="ignore"
    )

    log_json_format: bool = False


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(env_file=_ENV_FILES, extra="ignore")

    app_name: str = "recordcrate-api"
    log_level: str = "INFO"

    api: ApiSettings = Field(default_factory=ApiSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    spotify: SpotifySettings = Field(default_factory=SpotifySettings)
    gemini: GeminiSettings = Field(default_factory=GeminiSettings)
    charts: ChartSettings = Field(default_factory=ChartSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    observability: ObservabilitySettings = Field(
        default_factory=ObservabilitySettings
    )

    # Hey future me - returns None for anything that isn't a file-backed SQLite URL.
    # ":memory:" databases have no directory to validate.
    def _get_sqlite_db_path(self) -> Path | None:
        url = self.database.url
        if not url.startswith("sqlite"):
            return None
        _, _, path = url.partition(":///")
        if not path or path == ":memory:":
            return None
        return Path(path)

    def ensure_directories(self) -> None:
        """Create the parent directory of a file-backed SQLite database."""
        db_path = self._get_sqlite_db_path()
        if db_path is not None and str(db_path.parent) not in ("", "."):
            db_path.parent.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
