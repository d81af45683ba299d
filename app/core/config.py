from __future__ import annotations

import os
from decimal import Decimal
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "SpaBooker"
    ENV: str = "dev"
    DATABASE_URL: str | None = None
    REDIS_URL: str = "redis://localhost:6379/0"

    # UAE VAT rules
    DEFAULT_CURRENCY: str = "AED"
    STANDARD_VAT_RATE: Decimal = Decimal("5")
    VAT_REGISTRATION_THRESHOLD: Decimal = Decimal("375000")  # Mandatory registration, per calendar year
    FULL_TAX_INVOICE_THRESHOLD: Decimal = Decimal("10000")  # Below this a simplified tax invoice is allowed
    INVOICE_RETENTION_YEARS: int = 5

    CORS_ALLOW_ORIGINS: list[str] = ["*"]
    CORS_ALLOW_METHODS: list[str] = ["*"]
    CORS_ALLOW_HEADERS: list[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "60/minute"
    RATE_LIMIT_REPORTS: str = "20/minute"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "plain"

    @model_validator(mode="after")
    def _validate_required_fields(self) -> BaseAppSettings:
        # Heroku style URLs are rejected by SQLAlchemy 2.x
        if self.DATABASE_URL and self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)

        if self.ENV.lower() == "prod":
            missing = [name for name in ("DATABASE_URL", "REDIS_URL") if not getattr(self, name)]
            if missing:
                raise ValueError(f"Missing required production settings: {', '.join(missing)}")
        if self.VAT_REGISTRATION_THRESHOLD <= 0:
            raise ValueError("VAT_REGISTRATION_THRESHOLD must be positive")
        return self


class DevSettings(BaseAppSettings):
    ENV: str = "dev"
    DATABASE_URL: str = "sqlite:///./dev.db"


class TestSettings(BaseAppSettings):
    ENV: str = "test"
    DATABASE_URL: str = "sqlite:///:memory:"
    RATE_LIMIT_ENABLED: bool = False


class ProdSettings(BaseAppSettings):
    ENV: str = "prod"
    CORS_ALLOW_ORIGINS: list[str] = [
        "https://spabooker.ae",
        "https://admin.spabooker.ae",
    ]
    LOG_FORMAT: str = "json"


_ENV_TO_SETTINGS: dict[str, type[BaseAppSettings]] = {
    "dev": DevSettings,
    "development": DevSettings,
    "test": TestSettings,
    "testing": TestSettings,
    "prod": ProdSettings,
    "production": ProdSettings,
}


@lru_cache
def get_settings() -> BaseAppSettings:
    env_name = os.getenv("APP_ENV") or os.getenv("ENV") or "dev"
    settings_cls = _ENV_TO_SETTINGS.get(env_name.lower(), DevSettings)
    return settings_cls()


settings = get_settings()
