"""Central application configuration powered by Pydantic settings."""

from __future__ import annotations

from typing import List

from dotenv import load_dotenv
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    case_sensitive=False,
    extra="ignore",
)


class SupabaseSettings(BaseSettings):
    """Hosted backend (REST + auth) connection details."""

    url: str | None = Field(default=None, validation_alias="SUPABASE_URL")
    api_key: str | None = Field(default=None, validation_alias="SUPABASE_KEY")
    timeout_seconds: float = Field(default=10.0, validation_alias="SUPABASE_TIMEOUT")

    model_config = _ENV_CONFIG

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.api_key)

    @property
    def rest_url(self) -> str:
        return f"{(self.url or '').rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{(self.url or '').rstrip('/')}/auth/v1"


class BusinessSettings(BaseSettings):
    """Service-center business rules shared by the routers and the analytics."""

    vehicle_types: List[str] = Field(default_factory=lambda: ["bike", "car"], validation_alias="VEHICLE_TYPES")
    service_types: List[str] = Field(
        default_factory=lambda: [
            "General Service",
            "Oil Change",
            "Brake Service",
            "Tire Service",
            "Engine Repair",
        ],
        validation_alias="SERVICE_TYPES",
    )
    currency_symbol: str = Field(default="$", validation_alias="CURRENCY_SYMBOL")
    service_interval_km: int = Field(default=3000, validation_alias="SERVICE_INTERVAL_KM")
    upcoming_window_days: int = Field(default=30, validation_alias="UPCOMING_WINDOW_DAYS")
    call_window_days: int = Field(default=7, validation_alias="CALL_WINDOW_DAYS")

    model_config = _ENV_CONFIG


class AnalyticsSettings(BaseSettings):
    """Chart palette and recomputation cache for the dashboards."""

    chart_colors: List[str] = Field(
        default_factory=lambda: ["#0088FE", "#00C49F", "#FFBB28", "#FF8042"],
        validation_alias="CHART_COLORS",
    )
    cache_ttl_seconds: float = Field(default=300.0, validation_alias="ANALYTICS_CACHE_TTL")

    model_config = _ENV_CONFIG


class Settings(BaseSettings):
    """Application settings loaded from the environment with validation."""

    env: str = Field(default="development", validation_alias="ENV")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"], validation_alias="CORS_ORIGINS")

    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    business: BusinessSettings = Field(default_factory=BusinessSettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

    model_config = _ENV_CONFIG

    @field_validator("env", mode="before")
    @classmethod
    def _normalise_env(cls, value: str | None) -> str:
        if not value:
            return "development"
        return value.lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: str | None) -> str:
        if not value:
            return "INFO"
        return value.upper()

    @model_validator(mode="after")
    def _validate_requirements(self) -> "Settings":
        if not self.business.vehicle_types:
            raise ValueError("At least one vehicle type must be configured (VEHICLE_TYPES)")

        if self.env == "production":
            missing: List[str] = []
            if not self.supabase.url:
                missing.append("SUPABASE_URL")
            if not self.supabase.api_key:
                missing.append("SUPABASE_KEY")

            if missing:
                required = ", ".join(sorted(set(missing)))
                raise ValueError(
                    "Missing required environment variables for production: " + required
                )

        return self


settings = Settings()
