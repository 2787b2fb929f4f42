"""Configuration management using Pydantic Settings"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service_name: str = "instrument-engine"
    log_level: str = "INFO"

    # Validation ceilings (% p.a.)
    deposit_rate_ceiling: float = Field(default=15.0, gt=0)
    loan_rate_ceiling: float = Field(default=50.0, gt=0)

    # Closure policy
    premature_penalty_rate: float = Field(default=1.0, ge=0)  # Rate cut in % p.a. on early closure
    foreclosure_charge_pct: float = Field(default=0.0, ge=0)  # Charge on outstanding at foreclosure

    # Calculation
    rounding_tolerance: float = 0.01
    days_per_month: float = 30.44  # Average month length for partial tenures

    # Due/maturity windows
    maturity_window_days: int = 30
    due_window_days: int = 7


settings = Settings()
