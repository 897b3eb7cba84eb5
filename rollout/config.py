import os
from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class RolloutSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Plan calculation
    days_per_credit: float = Field(1.25, gt=0, alias="ROLLOUT_DAYS_PER_CREDIT")
    workplace_buffer_days: int = Field(5, ge=1, alias="ROLLOUT_WORKPLACE_BUFFER_DAYS")
    induction_lead_days: int = Field(3, ge=0, alias="ROLLOUT_INDUCTION_LEAD_DAYS")
    year_end_closure: bool = Field(False, alias="ROLLOUT_YEAR_END_CLOSURE")

    # Progress classification
    stalled_no_activity_days: int = Field(30, ge=0, alias="ROLLOUT_STALLED_NO_ACTIVITY_DAYS")
    stalled_medium_days: int = Field(30, ge=0, alias="ROLLOUT_STALLED_MEDIUM_DAYS")
    stalled_high_days: int = Field(60, ge=0, alias="ROLLOUT_STALLED_HIGH_DAYS")
    onboarding_days: int = Field(60, ge=0, alias="ROLLOUT_ONBOARDING_DAYS")
    at_risk_medium_gap: float = Field(10, ge=0, alias="ROLLOUT_AT_RISK_MEDIUM_GAP")
    at_risk_high_gap: float = Field(20, ge=0, alias="ROLLOUT_AT_RISK_HIGH_GAP")
    behind_gap: float = Field(5, ge=0, alias="ROLLOUT_BEHIND_GAP")

    log_level: str = Field("INFO", alias="ROLLOUT_LOG_LEVEL")


@lru_cache
def get_settings() -> RolloutSettings:
    try:
        return RolloutSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid rollout configuration: {exc}") from exc
