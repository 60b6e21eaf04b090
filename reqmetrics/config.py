from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """application settings with environment variables support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # server
    host: str = Field(default="0.0.0.0", description="host to bind")
    port: int = Field(default=8000, ge=1, le=65535, description="port to bind")
    service_name: str = Field(default="reqmetrics", description="service name for health checks")

    # logging
    log_level: str = Field(default="INFO", description="logging level")
    log_format: str = Field(default="json", description="log format: json or console")

    # metrics
    enable_metrics: bool = Field(default=True, description="enable prometheus metrics endpoint")
    metrics_prefix: str = Field(
        default="http", description="base name of the metrics recorded for http requests"
    )


settings = Settings()
