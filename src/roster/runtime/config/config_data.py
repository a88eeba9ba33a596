"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(default=["http://localhost:4200"])
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default="logs/app.log", description="Log file path")
    persistence_file: str | None = Field(
        default=None,
        description="JSON-lines file receiving failed roster loads and saves",
    )
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )

    @field_validator("file", "persistence_file")
    @classmethod
    def _empty_disables_file(cls, value: str | None) -> str | None:
        return value or None


class StorageConfig(BaseModel):
    """Record store configuration model."""

    path: str = Field(default="DB.json", description="Path of the JSON roster file")
    indent: int = Field(default=2, description="Indentation used when writing the file")
    max_recent_warnings: int = Field(
        default=20, description="Number of persistence warnings kept for inspection"
    )


class UsersConfig(BaseModel):
    """User listing and creation behavior."""

    username_enabled: bool = Field(
        default=True,
        description="Store usernames and derive them from name/lastName when missing",
    )
    default_page_limit: int = Field(
        default=50, ge=1, description="Page size used when a request gives none"
    )


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=3000, description="Application port")
    api_prefix: str = Field(default="/api", description="Global route prefix")
    max_body_mb: int = Field(
        default=10, description="Largest accepted request body in MB (photos)"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )

    @property
    def base_url(self) -> str:
        """Construct the base URL from host and port."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}{self.api_prefix}"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig, description="Record store configuration"
    )
    users: UsersConfig = Field(
        default_factory=UsersConfig, description="User service configuration"
    )
