"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal, Optional


class BanquitoConfig(BaseSettings):
    """Banquito ledger engine configuration"""
    
    model_config = SettingsConfigDict(
        env_prefix="BANQUITO_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Optional[str] = None  # If None, logs to stderr
    
    # Loan rules (percentages, kept as strings for Decimal conversion)
    member_interest_rate: str = "10"
    external_interest_rate: str = "15"
    settlement_tolerance: str = "0.01"  # Remaining balance treated as paid off
    overdue_day_basis: int = 30  # Days per month for months_overdue
    due_soon_days: int = 7
    month_overflow_policy: Literal["clamp", "rollover"] = "clamp"
    
    # Presentation
    display_precision: int = 2


# Global configuration instance
config = BanquitoConfig()


def get_config() -> BanquitoConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> BanquitoConfig:
    """Reload configuration from environment"""
    global config
    config = BanquitoConfig()
    return config
