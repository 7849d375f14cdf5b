"""
Application configuration.

Loads settings from environment variables (prefix ``UTIOPIA_``) with
sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Ban duration tables (days per stage 1..5). The escalating table is what
# bans actually apply; the documented table is the published moderation
# policy. ``Settings.ban_stage_days`` selects one.
ESCALATING_STAGE_DAYS: tuple[int, ...] = (1, 3, 7, 30, 90)
DOCUMENTED_STAGE_DAYS: tuple[int, ...] = (7, 14, 30, 60, 90)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="UTIOPIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================

    environment: str = "development"
    log_level: str = "INFO"

    # ==========================================================================
    # Bans
    # ==========================================================================

    ban_stage_days: tuple[int, ...] = ESCALATING_STAGE_DAYS
    ban_list_limit: int = 200

    # ==========================================================================
    # Identity formats (campus email / student id)
    # ==========================================================================

    email_pattern: str = r"^[a-z]+\.[a-z]+20\d{2}@gdhfi\.com$"
    student_id_pattern: str = r"^GJ20\d{2}\d{4}$"

    # ==========================================================================
    # Content
    # ==========================================================================

    message_max_length: int = 500
    comment_max_length: int = 1000
    user_list_limit: int = 200
    audit_list_limit: int = 100

    # ==========================================================================
    # Passphrase hashing
    # ==========================================================================

    secret_hash_iterations: int = 100_000

    @field_validator("ban_stage_days")
    @classmethod
    def _five_increasing_stages(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if len(value) != 5:
            raise ValueError("ban_stage_days needs exactly 5 entries (stages 1..5)")
        if any(days <= 0 for days in value) or list(value) != sorted(value):
            raise ValueError("ban_stage_days must be positive and non-decreasing")
        return value

    def days_for_stage(self, stage: int) -> int:
        return self.ban_stage_days[stage - 1]

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
