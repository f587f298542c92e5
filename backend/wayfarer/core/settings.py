from functools import lru_cache
from pathlib import Path
from typing import Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Database
    DB_URL: str = "postgresql://postgres:password@db:5432/wayfarer"
    DB_ECHO: bool = False  # Set to True for SQL query logging in development

    # Connection Pool Settings
    DB_POOL_SIZE: int = 10  # Number of connections to maintain in pool
    DB_MAX_OVERFLOW: int = 20  # Maximum overflow connections beyond pool_size
    DB_POOL_TIMEOUT: int = 30  # Timeout in seconds to get connection from pool
    DB_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour

    # External services
    MAPBOX_ACCESS_TOKEN: str = ""
    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.7
    EXTERNAL_API_TIMEOUT_SECONDS: int = 15
    TIKTOK_OEMBED_URL: str = "https://www.tiktok.com/oembed"

    # Rate Limiting
    ENABLE_RATE_LIMITING: bool = True
    RATE_LIMIT_GENERATE: str = "5/minute"
    RATE_LIMIT_EXTRACT: str = "10/minute"
    RATE_LIMIT_READ: str = "60/minute"
    RATE_LIMIT_LIST: str = "30/minute"
    RATE_LIMIT_UPDATE: str = "30/minute"
    RATE_LIMIT_DELETE: str = "10/minute"

    # Application Settings
    MAX_ITINERARY_DAYS: int = 30
    MAX_REQUEST_LENGTH: int = 2000
    MAX_PARSE_TEXT_LENGTH: int = 20000
    MAX_TIKTOK_URLS: int = 10
    ITINERARY_LIST_LIMIT: int = 50
    # Map fallback when geocoding fails (New York)
    DEFAULT_LATITUDE: float = 40.7128
    DEFAULT_LONGITUDE: float = -74.0060

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"

    # CORS
    ALLOWED_ORIGINS: Union[list, str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    @field_validator('ALLOWED_ORIGINS', mode='before')
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse ALLOWED_ORIGINS from comma-separated string or list"""
        if isinstance(v, str):
            # Split by comma and strip whitespace
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    # Security
    JWT_SECRET: str = "change_me"
    JWT_REFRESH_SECRET: str = "refresh_change_me"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 1440  # 24 hours

    # Password Security
    PASSWORD_MIN_LENGTH: int = 6
    PASSWORD_REQUIRE_UPPERCASE: bool = True
    PASSWORD_REQUIRE_NUMBER: bool = True

    # Security Features
    ENABLE_TOKEN_BLACKLIST: bool = True

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parents[3] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()
