"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces configuration
values from various sources (environment, programmatic) into the correct types
with proper defaults.
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EznoteSettings(BaseSettings):
    """Pydantic settings schema for eznote configuration.

    This handles validation, type coercion, and default values for all
    configuration fields. It integrates with environment variables using
    the EZNOTE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="EZNOTE_",
        env_file=None,  # Only used when explicitly requested
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown env vars for forward compatibility
    )

    # --- Remote endpoints ---

    docs_api_base: str = Field(
        default="https://docs.googleapis.com/v1/documents",
        description="Base URL of the document service",
    )

    drive_api_base: str = Field(
        default="https://www.googleapis.com/drive/v3/files",
        description="Base URL of the object storage file API",
    )

    drive_upload_url: str = Field(
        default="https://www.googleapis.com/upload/drive/v3/files",
        description="Multipart upload endpoint of the object storage service",
    )

    # --- Asset staging ---

    snips_folder_name: str = Field(
        default="Research Snips",
        description="Name of the container that holds uploaded screenshots",
        min_length=1,
    )

    snip_filename_prefix: str = Field(
        default="eznote-snip",
        description="Prefix for uploaded screenshot filenames",
        min_length=1,
    )

    # --- Capture and structure ---

    min_region_px: float = Field(
        default=5,
        description="Regions narrower or shorter than this are ignored",
        ge=0,
    )

    repaint_delay_seconds: float = Field(
        default=0.12,
        description="Pause after removing the overlay before capturing the viewport",
        ge=0,
    )

    heading_label_max: int = Field(
        default=60,
        description="Maximum length of a section label in the outline",
        ge=1,
    )

    # --- Transport and observability ---

    http_timeout_seconds: float | None = Field(
        default=None,
        description="Per-request timeout; None keeps the HTTP client's default",
    )

    telemetry_enabled: bool = Field(
        default=False,
        description="Record stage timings through telemetry reporters",
    )

    @field_validator("docs_api_base", "drive_api_base", "drive_upload_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize endpoint URLs so paths can be appended with '/'."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL: {v}. Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("http_timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: float | None) -> float | None:
        """Reject non-positive timeouts."""
        if v is not None and v <= 0:
            raise ValueError("http_timeout_seconds must be > 0 when provided")
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for SourceMap annotation.

        Returns:
            Dictionary with field names as keys and resolved values.
        """
        return {name: getattr(self, name) for name in FIELD_ORDER}


FIELD_ORDER: tuple[str, ...] = (
    "docs_api_base",
    "drive_api_base",
    "drive_upload_url",
    "snips_folder_name",
    "snip_filename_prefix",
    "min_region_px",
    "repaint_delay_seconds",
    "heading_label_max",
    "http_timeout_seconds",
    "telemetry_enabled",
)
