"""
Runtime configuration, read from the environment and an optional ``.env`` file.
"""
from functools import lru_cache
from typing import List, Union

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_DB_SCHEMES = ("postgresql://", "postgresql+psycopg2://", "sqlite:///")
MIN_SECRET_KEY_LENGTH = 32


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    database_url: str
    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 120
    env: str = "dev"

    api_title: str = "Reception Aid"
    api_version: str = "1.0.0"
    api_description: str = (
        "Front office and facility operations: visitors, gate log, calls, "
        "travel, parcels, appointments and clients"
    )
    cors_origins: Union[str, List[str]] = "http://localhost,http://localhost:5173,http://localhost:3000"

    default_page_size: int = 10
    max_page_size: int = 100

    # login lockout
    max_login_attempts: int = 5
    lockout_duration_minutes: int = 30

    # a vehicle is due at interval_km since last service, or interval_days;
    # "due soon" starts warning_km / warning_days before that
    service_interval_km: int = 10000
    service_warning_km: int = 1000
    service_interval_days: int = 180
    service_warning_days: int = 14

    audit_log_retention_months: int = 18

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, value):
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("secret_key")
    @classmethod
    def check_secret_key_length(cls, value: str) -> str:
        if len(value) < MIN_SECRET_KEY_LENGTH:
            raise ValueError(f"SECRET_KEY needs at least {MIN_SECRET_KEY_LENGTH} characters")
        return value

    @field_validator("database_url")
    @classmethod
    def check_database_scheme(cls, value: str) -> str:
        if not value.startswith(SUPPORTED_DB_SCHEMES):
            raise ValueError(f"DATABASE_URL must start with one of {', '.join(SUPPORTED_DB_SCHEMES)}")
        return value


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
