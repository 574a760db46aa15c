"""Rating service configuration.

Controls constraints on rating submission and retrieval. All settings can be
overridden via ``RATING_*`` environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RatingConfig(BaseSettings):
    """Configuration for rating ingestion and pagination."""

    model_config = SettingsConfigDict(
        env_prefix="RATING_",
        case_sensitive=False,
        extra="ignore",
    )

    max_other_text_length: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Maximum length for the free-text 'Other' description",
    )
    default_page_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Page size used when the caller does not pass one",
    )
    max_page_size: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Upper bound that requested page sizes are clamped to",
    )
    recent_limit: int = Field(
        default=100,
        ge=1,
        le=1000,
        description="Maximum ratings returned by the cross-toilet recent listing",
    )
