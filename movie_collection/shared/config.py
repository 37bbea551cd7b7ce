"""
Shared configuration for the movie collection service
"""
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Collection store configuration"""
    model_config = SettingsConfigDict(env_prefix="DB_", extra="ignore", populate_by_name=True)

    # Unset disables persistence; catalog routes keep working
    url: Optional[str] = Field(None, validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def is_configured(self) -> bool:
        return bool(self.url)

    @property
    def is_sqlite(self) -> bool:
        return bool(self.url) and self.url.startswith("sqlite")


class RedisConfig(BaseSettings):
    """Redis configuration"""
    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore", populate_by_name=True)

    host: Optional[str] = None
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    ttl_seconds: int = Field(3600, validation_alias=AliasChoices("REDIS_TTL", "REDIS_TTL_SECONDS"))  # 1 hour default

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    @property
    def url(self) -> str:
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class OmdbConfig(BaseSettings):
    """External movie catalog (OMDB) configuration"""
    model_config = SettingsConfigDict(env_prefix="OMDB_", extra="ignore")

    api_key: Optional[str] = None
    base_url: str = "https://www.omdbapi.com/"

    # Upstream rate limiting
    batch_size: int = Field(5, ge=1)
    batch_delay_seconds: float = Field(0.2, ge=0)
    search_delay_seconds: float = Field(0.1, ge=0)
    actor_delay_seconds: float = Field(0.2, ge=0)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


class AppConfig(BaseSettings):
    """Application configuration"""
    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field("movie-collection-api", validation_alias="APP_NAME")
    version: str = Field("1.0.0", validation_alias="APP_VERSION")
    environment: str = Field("dev", validation_alias="ENVIRONMENT")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    debug: bool = Field(False, validation_alias="DEBUG")
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(8000, validation_alias="PORT")

    # Security
    cors_origins: List[str] = Field(["*"], validation_alias="CORS_ORIGINS")


class Config:
    """Main configuration class"""

    def __init__(self):
        self.app = AppConfig()
        self.database = DatabaseConfig()
        self.redis = RedisConfig()
        self.omdb = OmdbConfig()

    @property
    def is_production(self) -> bool:
        return self.app.environment == "prod"

    @property
    def is_development(self) -> bool:
        return self.app.environment == "dev"


# Global config instance
config = Config()
