"""
Tests for configuration validation.
"""

import pytest
import sys
from pathlib import Path
from pydantic import ValidationError

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from strategy_engine.config_schemas import (
    ActorSettings,
    EngineSettings,
    StrategyDeployment,
    load_config,
    validate_subsystem_config,
)


class TestEngineSettings:

    def test_defaults(self):
        settings = EngineSettings()

        assert settings.search_paths == ["strategy", ".", "strategies"]
        assert settings.default_interval == "1m"
        assert settings.time_budget_seconds is None
        assert settings.cache_programs is True

    def test_rejects_bad_interval(self):
        with pytest.raises(ValidationError):
            EngineSettings(default_interval="sometimes")

    def test_rejects_empty_search_paths(self):
        with pytest.raises(ValidationError):
            EngineSettings(search_paths=[])

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            EngineSettings(plugins=["x"])

    def test_assignment_is_validated(self):
        settings = EngineSettings()
        with pytest.raises(ValidationError):
            settings.default_interval = "soon"


class TestActorSettings:

    def test_defaults(self):
        settings = ActorSettings()

        assert settings.kline_buffer_size == 100
        assert settings.min_bars == 10
        assert settings.effective_historical_limit == 100

    def test_historical_limit_override(self):
        assert ActorSettings(historical_limit=50).effective_historical_limit == 50

    def test_min_bars_cannot_exceed_buffer(self):
        with pytest.raises(ValidationError):
            ActorSettings(kline_buffer_size=5, min_bars=6)

    def test_tick_interval_positive(self):
        with pytest.raises(ValidationError):
            ActorSettings(tick_interval_seconds=0)


class TestSubsystemConfig:

    def test_valid_config(self):
        config = validate_subsystem_config({
            "engine": {"default_interval": "5m"},
            "strategies": [
                {"name": "rsi", "symbol": "BTCUSDT", "exchange": "binance", "config": {"period": 14}},
                {"name": "rsi", "symbol": "ETHUSDT", "exchange": "binance"},
            ],
        })

        assert config.engine.default_interval == "5m"
        assert len(config.strategies) == 2
        assert config.strategies[0].config == {"period": 14}

    def test_empty_config(self):
        config = validate_subsystem_config({})
        assert config.strategies == []

    def test_duplicate_deployment(self):
        with pytest.raises(ValidationError):
            validate_subsystem_config({
                "strategies": [
                    {"name": "rsi", "symbol": "BTCUSDT", "exchange": "binance"},
                    {"name": "rsi", "symbol": "BTCUSDT", "exchange": "binance"},
                ],
            })

    def test_blank_symbol(self):
        with pytest.raises(ValidationError):
            StrategyDeployment(name="rsi", symbol="  ", exchange="binance")

    def test_load_config(self, tmp_path):
        path = tmp_path / "subsystem.yaml"
        path.write_text(
            "engine:\n"
            "  search_paths: [scripts]\n"
            "actor:\n"
            "  min_bars: 20\n"
            "strategies:\n"
            "  - name: breakout\n"
            "    symbol: BTCUSDT\n"
            "    exchange: bybit\n"
        )
        config = load_config(path)

        assert config.engine.search_paths == ["scripts"]
        assert config.actor.min_bars == 20
        assert config.strategies[0].exchange == "bybit"

    def test_load_config_rejects_list_root(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- 1\n- 2\n")

        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(path)
