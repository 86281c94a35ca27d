"""
Configuration & Environment Management for the event registration service
"""

import secrets
from functools import lru_cache
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings
from pydantic_settings import SettingsConfigDict

ENV_CONFIG = SettingsConfigDict(case_sensitive=True, env_file=".env", extra="ignore")


class DatabaseSettings(PydanticBaseSettings):
    """Database configuration settings"""

    DATABASE_URL: str = "sqlite+aiosqlite:///./eventreg.db"

    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 30
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600
    DB_POOL_PRE_PING: bool = True
    DB_ECHO: bool = False

    DB_COMMAND_TIMEOUT: int = 60
    DB_SQLITE_BUSY_TIMEOUT: int = 20

    # Create missing tables on startup (development only)
    DB_CREATE_TABLES: bool = False

    model_config = ENV_CONFIG

    @property
    def database_url(self) -> str:
        """Database URL with the async driver for PostgreSQL"""
        if self.DATABASE_URL.startswith("postgresql://"):
            return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.DATABASE_URL


class SecuritySettings(PydanticBaseSettings):
    """Security and authentication settings"""

    SECRET_KEY: str = secrets.token_urlsafe(32)
    JWT_ALGORITHM: str = "HS256"

    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    BCRYPT_ROUNDS: int = 12

    model_config = ENV_CONFIG


class EventRuleSettings(PydanticBaseSettings):
    """Business rule constants for registration and cancellation"""

    DYNAMIC_PRICE_INCREMENT: float = 40.0
    CANCELLATION_LOCKOUT_DAYS: int = 7
    MIN_RATING: int = 1
    MAX_RATING: int = 5

    model_config = ENV_CONFIG


class WorkerSettings(PydanticBaseSettings):
    """Background worker settings"""

    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    CELERY_TASK_SERIALIZER: str = "json"
    CELERY_RESULT_SERIALIZER: str = "json"
    CELERY_ACCEPT_CONTENT: List[str] = ["json"]
    CELERY_TIMEZONE: str = "UTC"
    CELERY_ENABLE_UTC: bool = True
    REVOCATION_PURGE_INTERVAL_SECONDS: int = 3600

    model_config = ENV_CONFIG


class MonitoringSettings(PydanticBaseSettings):
    """Monitoring and observability settings"""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    ENABLE_PROMETHEUS: bool = True

    model_config = ENV_CONFIG


class Settings(PydanticBaseSettings):
    """Main application settings"""

    ENVIRONMENT: str = "development"
    VERSION: str = "1.0.0"

    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "Eventreg"

    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")  # type: ignore
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, list):
            return v
        return []

    # Nested groups read the same environment
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    rules: EventRuleSettings = EventRuleSettings()
    worker: WorkerSettings = WorkerSettings()
    monitoring: MonitoringSettings = MonitoringSettings()

    model_config = ENV_CONFIG


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
