from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Route prefixes under api_prefix kept out of the RBAC catalog by default
DEFAULT_DENYLISTED_SEGMENTS = ("debug", "test-", "health")


class Settings(BaseSettings):
    # App
    app_name: str = "Clinic Access"
    app_version: str = "1.0.0"
    debug: bool = False

    # Database
    database_url: str = ""  # Loaded from environment, validated in model_validator
    database_echo: bool = False

    # Security
    secret_key: str = ""  # Loaded from environment, validated in model_validator
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours

    # CORS - comma-separated list of allowed origins
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Redis Cache
    redis_enabled: bool = True  # Enable/disable caching
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: str | None = None

    # Cache TTL (Time-To-Live) in seconds
    cache_ttl_permissions: int = 300  # 5 minutes

    # Rate limiting
    rate_limit_enabled: bool = True
    login_rate_limit: str = "5/minute"

    # Request limits
    max_request_size: int = 10 * 1024 * 1024  # 10MB

    # RBAC bootstrap
    api_prefix: str = "/api"
    # Comma-separated path prefixes left out of the route catalog.
    # Unset means the debug, test- and health prefixes under api_prefix.
    rbac_route_denylist: str | None = None
    rbac_seed_timeout_seconds: float = 60.0
    rbac_deactivate_missing_routes: bool = True

    @model_validator(mode="after")
    def validate_required_config(self) -> "Settings":
        """Validate required configuration"""
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set in environment or .env file.")
        if not self.secret_key:
            raise ValueError("SECRET_KEY is required. Generate with: openssl rand -hex 32")
        if self.rbac_seed_timeout_seconds <= 0:
            raise ValueError("RBAC_SEED_TIMEOUT_SECONDS must be positive")
        if not self.api_prefix.startswith("/"):
            raise ValueError(f"Invalid api_prefix '{self.api_prefix}'. Must start with '/'")
        return self

    @property
    def route_denylist(self) -> list[str]:
        """Denylisted route prefixes as a list"""
        if self.rbac_route_denylist is None:
            base = self.api_prefix.rstrip("/")
            return [f"{base}/{name}" for name in DEFAULT_DENYLISTED_SEGMENTS]
        return [p.strip() for p in self.rbac_route_denylist.split(",") if p.strip()]

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="allow", case_sensitive=False
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
