"""Configuration management for the analytics core.

Rules:
- YAML provides defaults (cache TTLs, analysis thresholds, extra contracts).
- Environment variables / .env override YAML for deployment specific settings.
- Nothing here is required: with no file at all the defaults are usable.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tradejournal.infrastructure.logging.logging import get_logger

log = get_logger("config")


class CacheConfig(BaseModel):
    """TTLs for cached analysis results (seconds)."""

    enabled: bool = Field(default=True)
    what_if_ttl_seconds: int = Field(default=15 * 60, ge=0, le=86400)
    suggestions_ttl_seconds: int = Field(default=5 * 60, ge=0, le=86400)
    portfolio_ttl_seconds: int = Field(default=30 * 60, ge=0, le=86400)


class AnalysisConfig(BaseModel):
    default_account_size: float = Field(default=100000.0, gt=0)
    min_trades_optimization: int = Field(default=20, ge=1, le=10000)
    min_trades_be_recommendation: int = Field(default=1, ge=1, le=10000)
    be_scenario_sample_size: int = Field(default=50, ge=1, le=10000)
    be_scenario_lookback: int = Field(default=100, ge=1, le=10000)

    @field_validator("be_scenario_lookback")
    @classmethod
    def validate_lookback(cls, v: int, info) -> int:
        if "be_scenario_sample_size" in info.data and v < info.data["be_scenario_sample_size"]:
            raise ValueError("be_scenario_lookback must be >= be_scenario_sample_size")
        return v


class MarketsConfig(BaseModel):
    default_market: str = Field(default="ES")
    contracts_file: Optional[str] = Field(default=None, description="YAML list of extra contract specifications")

    @field_validator("default_market")
    @classmethod
    def validate_default_market(cls, v: str) -> str:
        v = str(v).strip()
        if not v:
            raise ValueError("default_market must not be empty")
        return v


class MarketPreferences(BaseModel):
    """Per-user defaults used when a caller does not pass explicit values."""

    account_size: float = Field(default=100000.0, gt=0)
    risk_per_trade: float = Field(default=1.0, gt=0, le=100)
    preferred_markets: List[str] = Field(default_factory=lambda: ["ES", "NQ"])
    default_market: str = Field(default="ES")


class AnalyticsConfig(BaseSettings):
    """Main configuration class for the analytics core."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True)

    cache: CacheConfig = Field(default_factory=CacheConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    markets: MarketsConfig = Field(default_factory=MarketsConfig)
    preferences: MarketPreferences = Field(default_factory=MarketPreferences)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if str(v).upper() not in valid:
            raise ValueError(f"Log level must be one of: {sorted(valid)}")
        return str(v).upper()

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "AnalyticsConfig":
        """Load configuration from YAML, then apply environment overrides."""
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        try:
            base = cls.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Configuration validation error: {e}")

        return _apply_env_overrides(base)


def _apply_env_overrides(base: AnalyticsConfig) -> AnalyticsConfig:
    if os.getenv("LOG_LEVEL"):
        base.log_level = str(os.getenv("LOG_LEVEL", base.log_level)).upper()

    if os.getenv("MARKETS__CONTRACTS_FILE"):
        base.markets.contracts_file = os.getenv("MARKETS__CONTRACTS_FILE")

    json_logs_env = os.getenv("JSON_LOGS")
    if json_logs_env is not None:
        base.json_logs = str(json_logs_env).lower() in ("1", "true", "yes")

    return base


def load_config(config_path: Optional[Path] = None) -> AnalyticsConfig:
    """Load configuration from YAML + .env (env wins)."""

    load_dotenv(dotenv_path=Path(".env"))

    if config_path is None:
        possible_paths = [Path("config/default.yaml"), Path("config/config.yaml"), Path("config.yaml")]
        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            log.info("config_defaults_used", reason="no configuration file found")
            return _apply_env_overrides(AnalyticsConfig())

    log.info("config_loaded", path=str(config_path))
    return AnalyticsConfig.from_yaml(Path(config_path))


# Global config instance
_config: Optional[AnalyticsConfig] = None


def get_config() -> AnalyticsConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[Path] = None) -> AnalyticsConfig:
    global _config
    _config = load_config(config_path)
    return _config
