"""
Central client configuration.

Every tunable value lives here as a typed, documented field.
Any field can be overridden at runtime via an environment variable of the
same name (case-insensitive), e.g.:

    API_URL=https://mdrs.example.org streamlit run tool_page.py
    export ANALYSIS_TIMEOUT_SEC=120

`NEXT_PUBLIC_API_URL` is accepted as an alias for `API_URL` so the same
`.env` file can serve the web frontend and this client.

A `.env` file at the project root is loaded automatically.
"""

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "http://localhost:8000"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,   # API_URL == api_url
        extra="ignore",         # silently drop unknown env vars
        populate_by_name=True,  # Settings(api_url=...) in tests
    )

    # ------------------------------------------------------------------ #
    # Analysis service                                                    #
    # ------------------------------------------------------------------ #
    api_url: str = Field(
        DEFAULT_API_URL,
        validation_alias=AliasChoices("api_url", "next_public_api_url"),
        description="Base address of the deception-risk analysis service",
    )
    analysis_timeout_sec: Optional[float] = Field(
        None, description="Total timeout per analysis call; None waits for completion"
    )

    # ------------------------------------------------------------------ #
    # Rendering                                                           #
    # ------------------------------------------------------------------ #
    max_signal_evidence_chars: Optional[int] = Field(
        None, description="Truncate serialized signal evidence; None renders it in full"
    )

    # ------------------------------------------------------------------ #
    # Logging                                                             #
    # ------------------------------------------------------------------ #
    log_level: str = Field(
        "INFO", description="Root log level applied by the page entry point"
    )

    @property
    def api_base_url(self) -> str:
        return self.api_url.rstrip("/")


# Single shared instance, read once at startup.
settings = Settings()
