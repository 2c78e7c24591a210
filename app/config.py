"""Application configuration."""

from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.exceptions import ConfigurationException


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Clinic Scheduler API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # Redis (job queue)
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_password: str | None = Field(default=None, alias="REDIS_PASSWORD")
    redis_ssl: bool = Field(default=False, alias="REDIS_SSL")

    # JWT
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Operator login (single clinic staff account)
    operator_username: str = Field(default="recepcao", alias="OPERATOR_USERNAME")
    operator_password_hash: str | None = Field(default=None, alias="OPERATOR_PASSWORD_HASH")

    # Clinic
    clinic_timezone: str = Field(default="America/Sao_Paulo", alias="CLINIC_TIMEZONE")
    clinic_name: str = Field(default="Clínica Médica", alias="CLINIC_NAME")
    doctor_name: str = Field(default="Dr(a).", alias="DOCTOR_NAME")
    doctor_phone: str | None = Field(
        default=None,
        alias="DOCTOR_PHONE",
        description="WhatsApp number that receives escalation alerts",
    )

    # WhatsApp Cloud API
    whatsapp_api_url: str = Field(
        default="https://graph.facebook.com/v18.0", alias="WHATSAPP_API_URL"
    )
    whatsapp_phone_id: str | None = Field(default=None, alias="WHATSAPP_PHONE_ID")
    whatsapp_access_token: str | None = Field(default=None, alias="WHATSAPP_ACCESS_TOKEN")
    whatsapp_mock: bool = Field(default=False, alias="WHATSAPP_MOCK")
    whatsapp_timeout_seconds: float = Field(default=10.0, alias="WHATSAPP_TIMEOUT_SECONDS")

    # Notification queue
    notification_max_tries: int = Field(default=5, alias="NOTIFICATION_MAX_TRIES")
    notification_retry_delay_seconds: int = Field(
        default=5, alias="NOTIFICATION_RETRY_DELAY_SECONDS"
    )
    reminder_sweep_minute: int = Field(default=0, ge=0, le=59, alias="REMINDER_SWEEP_MINUTE")

    # Intent classification hand-off
    intent_confidence_threshold: float = Field(
        default=0.7, ge=0.0, le=1.0, alias="INTENT_CONFIDENCE_THRESHOLD"
    )

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def clinic_tz(self) -> ZoneInfo:
        """Clinic-local timezone used for slot boundaries."""
        return ZoneInfo(self.clinic_timezone)

    def validate_runtime(self) -> None:
        """
        Fail fast on configuration the running process cannot work without.

        Raises:
            ConfigurationException: If WhatsApp credentials are missing outside mock mode
        """
        if self.whatsapp_mock:
            return

        missing = [
            name
            for name, value in (
                ("WHATSAPP_PHONE_ID", self.whatsapp_phone_id),
                ("WHATSAPP_ACCESS_TOKEN", self.whatsapp_access_token),
            )
            if not value
        ]
        if missing:
            raise ConfigurationException(
                f"Missing required configuration: {', '.join(missing)}",
                context={"missing": missing},
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
