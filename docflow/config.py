"""
Configuration management for docflow.
"""

from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = Field(default="docflow")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_workers: int = Field(default=1)
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of origins allowed to call the API.",
    )

    # Database
    database_url: str = Field(default="sqlite:///./docflow.db")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")

    # Workflow
    approval_policy: Literal["all", "any"] = Field(
        default="all",
        description=(
            "How reviewer slots aggregate into the artifact status: 'all' needs "
            "every recipient to approve, 'any' settles on the first approval."
        ),
    )

    # Attachments
    max_attachment_bytes: int = Field(default=15 * 1024 * 1024)
    allowed_attachment_extensions: str = Field(
        default=".pdf,.doc,.docx,.xls,.xlsx,.jpg,.jpeg,.png,.gif,.txt,.csv",
        description="Comma-separated list of accepted attachment extensions. Empty = any.",
    )

    def attachment_extensions(self) -> List[str]:
        """Return the allowed attachment extensions, lowercased."""
        return [
            ext.strip().lower()
            for ext in self.allowed_attachment_extensions.split(",")
            if ext.strip()
        ]

    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def cors_allow_credentials(self) -> bool:
        """Credentials are only sent to explicitly listed origins."""
        return "*" not in self.cors_origin_list()


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
