"""
Configuration schema validation using Pydantic.

Provides validated configuration models for the script runtime, the strategy
actors and the strategies deployed on them. Configuration errors surface at
load time instead of inside a running actor.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, validator

from strategy_engine.constants import (
    DEFAULT_INTERVAL,
    DEFAULT_SEARCH_PATHS,
    KLINE_BUFFER_SIZE,
    LOG_BUFFER_SIZE,
    MIN_BARS_FOR_RUNNING,
    TICK_INTERVAL_SECONDS,
)

INTERVAL_PATTERN = re.compile(r"^\d+[smhdwM]$")


class EngineSettings(BaseModel):
    """Script runtime settings."""
    search_paths: List[str] = Field(
        default_factory=lambda: list(DEFAULT_SEARCH_PATHS),
        description="Directories searched for <name>.star, in order",
    )
    base_dir: str = Field(".", description="Directory the search paths are relative to")
    default_interval: str = Field(DEFAULT_INTERVAL, description="Interval used when a script declares none")
    time_budget_seconds: Optional[float] = Field(None, gt=0, description="Wall-clock budget per execution")
    cache_programs: bool = Field(True, description="Compile each script once and reuse it")

    @validator('search_paths')
    def validate_search_paths(cls, v):
        """Ensure at least one directory is searched."""
        if not v:
            raise ValueError("At least one search path must be defined")
        return v

    @validator('default_interval')
    def validate_interval(cls, v):
        """Ensure interval looks like 1m, 4h, 1d..."""
        if not INTERVAL_PATTERN.match(v):
            raise ValueError(f"Invalid interval: {v}")
        return v

    class Config:
        """Pydantic config."""
        extra = 'forbid'
        validate_assignment = True


class ActorSettings(BaseModel):
    """Per-actor buffer sizes and timing."""
    kline_buffer_size: int = Field(KLINE_BUFFER_SIZE, ge=1, description="Bars kept per actor")
    log_buffer_size: int = Field(LOG_BUFFER_SIZE, ge=1, description="Log entries kept per actor")
    min_bars: int = Field(MIN_BARS_FOR_RUNNING, ge=1, description="Bars required before Running")
    tick_interval_seconds: float = Field(TICK_INTERVAL_SECONDS, gt=0, description="Legacy tick period")
    historical_limit: Optional[int] = Field(None, ge=1, description="Bars requested on start")

    @validator('min_bars')
    def validate_min_bars(cls, v, values):
        """Ensure the buffer can actually reach min_bars."""
        if 'kline_buffer_size' in values and v > values['kline_buffer_size']:
            raise ValueError(
                f"min_bars {v} must not exceed kline_buffer_size {values['kline_buffer_size']}"
            )
        return v

    @property
    def effective_historical_limit(self) -> int:
        return self.historical_limit or self.kline_buffer_size

    class Config:
        """Pydantic config."""
        extra = 'forbid'
        validate_assignment = True


class StrategyDeployment(BaseModel):
    """One strategy bound to a symbol on an exchange."""
    name: str = Field(..., description="Script name, resolved to <name>.star")
    symbol: str = Field(..., description="Traded symbol (e.g., 'BTCUSDT')")
    exchange: str = Field(..., description="Exchange name")
    config: Dict[str, Any] = Field(default_factory=dict, description="User config exposed to the script")

    @validator('name', 'symbol', 'exchange')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    class Config:
        """Pydantic config."""
        extra = 'forbid'
        validate_assignment = True


class SubsystemConfig(BaseModel):
    """Complete configuration for the strategy execution subsystem."""
    engine: EngineSettings = Field(default_factory=EngineSettings)
    actor: ActorSettings = Field(default_factory=ActorSettings)
    strategies: List[StrategyDeployment] = Field(default_factory=list)

    @validator('strategies')
    def validate_unique_deployments(cls, v):
        """One actor per (strategy, symbol, exchange)."""
        seen = set()
        for deployment in v:
            key = (deployment.name, deployment.symbol, deployment.exchange)
            if key in seen:
                raise ValueError(f"Duplicate deployment: {key}")
            seen.add(key)
        return v

    class Config:
        """Pydantic config."""
        extra = 'forbid'
        validate_assignment = True


def validate_subsystem_config(config_dict: Dict[str, Any]) -> SubsystemConfig:
    """
    Validate a subsystem configuration dictionary.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        Validated configuration model

    Raises:
        ValidationError: If configuration is invalid
    """
    return SubsystemConfig(**(config_dict or {}))


def load_config(path: Union[str, Path]) -> SubsystemConfig:
    """
    Load and validate a YAML configuration file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated configuration model
    """
    with open(path, 'r') as f:
        raw = yaml.safe_load(f)
    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")
    return validate_subsystem_config(raw)
