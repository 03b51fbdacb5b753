"""Application configuration using Pydantic Settings."""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=5000, alias="PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Database
    database_url: str = Field(default="sqlite:///./reports.db", alias="DATABASE_URL")
    db_connect_retries: int = Field(default=5, alias="DB_CONNECT_RETRIES")
    db_connect_backoff_max: int = Field(default=10, alias="DB_CONNECT_BACKOFF_MAX")

    # Storage
    upload_dir: str = Field(default="uploads", alias="UPLOAD_DIR")
    template_path: str = Field(default="tasks.docx", alias="TEMPLATE_PATH")

    # Pagination
    report_page_size: int = Field(default=20, alias="REPORT_PAGE_SIZE")
    chat_page_size: int = Field(default=5, alias="CHAT_PAGE_SIZE")

    # Observability
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @property
    def cors_origins_list(self) -> List[str]:
        """Get list of allowed CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
