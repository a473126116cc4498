"""
Application settings, read from RESULT_ANALYTICS_* environment variables or .env
"""

from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RESULT_ANALYTICS_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # ---- App ----
    app_version: str = __version__
    environment: str = "development"
    log_level: str = "INFO"

    # ---- Record store (Supabase / PostgREST) ----
    supabase_url: str = Field(
        default="http://localhost:54321",
        validation_alias=AliasChoices("RESULT_ANALYTICS_SUPABASE_URL", "SUPABASE_URL"),
    )
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices("RESULT_ANALYTICS_SUPABASE_KEY", "SUPABASE_ANON_KEY"),
    )
    request_timeout: float = Field(10.0, gt=0)

    metadata_table: str = "result_tables_metadata"
    roll_column: str = "Roll no."
    name_column: str = "Name"

    # ---- Aggregation ----
    min_academic_years: int = Field(4, ge=1)
    max_group_size: int = Field(10, ge=1)
    cohort_tag_digits: int = Field(2, ge=1, le=10)
    overall_average_sample_size: int = Field(5, ge=1)

    deans_honours_threshold: float = Field(3.850, ge=0.0, le=4.0)
    deans_merit_gpa: float = Field(4.000, ge=0.0, le=4.0)

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
