from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    # Account settings
    initial_balance: int = Field(0, ge=0)

    # Amount range (inclusive)
    min_amount: int = Field(1, ge=1)
    max_amount: int = Field(10, ge=1)

    # Actor settings
    deposit_interval: float = Field(1.0, ge=0)  # seconds between deposits
    deposit_iterations: Optional[int] = Field(None, ge=0)
    withdraw_iterations: Optional[int] = Field(None, ge=0)
    seed: Optional[int] = None

    # Runner settings
    duration: Optional[float] = Field(10.0, gt=0)  # None runs until the iteration caps are reached
    shutdown_grace: float = Field(5.0, gt=0)
    poll_interval: float = Field(0.05, gt=0)

    # Synchronization
    fair_lock: bool = True

    model_config = SettingsConfigDict(
        env_prefix="BANK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_run_bounds(self):
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount must not exceed max_amount")
        if self.duration is None and (self.deposit_iterations is None or self.withdraw_iterations is None):
            raise ValueError("Either duration or both iteration caps must be set")
        if self.log_format not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return self


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Environment-specific configurations
class DevelopmentSettings(Settings):
    log_level: str = "DEBUG"
    duration: Optional[float] = Field(5.0, gt=0)


class ProductionSettings(Settings):
    log_level: str = "INFO"
    log_format: str = "json"


class TestingSettings(Settings):
    log_level: str = "WARNING"  # Reduce noise in tests
    deposit_interval: float = Field(0.0, ge=0)
    duration: Optional[float] = Field(2.0, gt=0)
    shutdown_grace: float = Field(2.0, gt=0)
    poll_interval: float = Field(0.01, gt=0)
    seed: Optional[int] = 42


def get_settings_for_environment(env: str = "development", **overrides) -> Settings:
    """Get settings for specific environment."""
    settings_map = {
        "development": DevelopmentSettings,
        "production": ProductionSettings,
        "testing": TestingSettings,
    }

    settings_class = settings_map.get(env.lower(), Settings)
    return settings_class(**overrides)
