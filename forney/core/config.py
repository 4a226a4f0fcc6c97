"""
forney/core/config.py

Engine settings loaded from environment variables (prefix ``FORNEY_``)
with ``.env`` file support.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ForneySettings(BaseSettings):
    """
    Runtime settings.

    Environment variables take precedence over ``.env`` file values.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORNEY_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    log_level: str = Field(default="WARNING", description="Minimum level for structlog output")
    log_json: bool = Field(default=False, description="Render log events as JSON lines")

    loopy_iterations: int = Field(
        default=10, ge=1, description="Schedule passes per execute() when breaker messages are set"
    )
    vmp_iterations: int = Field(
        default=20, ge=1, description="Variational passes over all subgraphs per execute()"
    )


settings = ForneySettings()
