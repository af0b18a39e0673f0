"""
Tests for the strategy-engine command line.
"""

import pytest
import textwrap
import sys
from datetime import datetime, timezone
from pathlib import Path
from click.testing import CliRunner

# Add project to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from strategy_engine.cli import cli, load_bars


BARS = """
- {timestamp: 1704067200, open: 99, high: 101, low: 98, close: 100, volume: 5}
- {timestamp: "2024-01-01T00:01:00Z", open: 100, high: 104, low: 99, close: 103, volume: 7}
"""


@pytest.fixture
def workspace(tmp_path):
    strategy_dir = tmp_path / "strategy"
    strategy_dir.mkdir()
    (strategy_dir / "breakout.star").write_text(textwrap.dedent("""
        def settings():
            return {"interval": "5m"}

        def on_kline(kline):
            return {}

        if len(close) > 1 and close[-1] > close[-2]:
            log("rising")
            action = "buy"
            quantity = 0.25
            reason = "higher close"
    """))
    (tmp_path / "bars.yaml").write_text(BARS)
    return tmp_path


@pytest.fixture
def runner():
    return CliRunner()


class TestLoadBars:

    def test_parses_rows(self, workspace):
        bars = load_bars(str(workspace / "bars.yaml"), symbol="BTCUSDT", interval="1m")

        assert len(bars) == 2
        assert bars[0].timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert bars[1].timestamp == datetime(2024, 1, 1, 0, 1, tzinfo=timezone.utc)
        assert bars[1].close == 103.0
        assert bars[1].symbol == "BTCUSDT"

    def test_missing_field(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- {timestamp: 1, open: 1, high: 1, low: 1}\n")

        with pytest.raises(ValueError, match="missing"):
            load_bars(str(path))

    def test_null_field(self, tmp_path):
        path = tmp_path / "null.yaml"
        path.write_text("- {timestamp: 1, open: 1, high: null, low: 1, close: 1}\n")

        with pytest.raises(ValueError, match="Bar 0 has an invalid value"):
            load_bars(str(path))


class TestCommands:

    def test_validate(self, runner, workspace):
        result = runner.invoke(cli, ["--base-dir", str(workspace), "validate", "breakout"])

        assert result.exit_code == 0
        assert "has_settings: True" in result.output
        assert "has_on_kline: True" in result.output
        assert "has_on_ticker: False" in result.output

    def test_validate_missing(self, runner, workspace):
        result = runner.invoke(cli, ["--base-dir", str(workspace), "validate", "ghost"])

        assert result.exit_code == 1
        assert "Error: strategy script not found: ghost" in result.output

    def test_interval(self, runner, workspace):
        result = runner.invoke(cli, ["--base-dir", str(workspace), "interval", "breakout"])

        assert result.exit_code == 0
        assert result.output.strip() == "5m"

    def test_run(self, runner, workspace):
        result = runner.invoke(cli, [
            "--base-dir", str(workspace),
            "run", "breakout",
            "--bars", str(workspace / "bars.yaml"),
        ])

        assert result.exit_code == 0
        assert "[info] rising" in result.output
        assert "action: buy" in result.output
        assert "quantity: 0.25" in result.output
        assert "reason: higher close" in result.output

    def test_run_with_bad_bars(self, runner, workspace):
        bad = workspace / "bad.yaml"
        bad.write_text("just a string\n")

        result = runner.invoke(cli, [
            "--base-dir", str(workspace),
            "run", "breakout",
            "--bars", str(bad),
        ])

        assert result.exit_code == 2
        assert "Invalid value for '--bars'" in result.output
        assert "Error reading bars" in result.output

    @pytest.mark.parametrize("row", [
        "- {timestamp: 1, open: null, high: 1, low: 1, close: 1}",
        "- {timestamp: 1, open: abc, high: 1, low: 1, close: 1}",
        "- {timestamp: 1, open: [1], high: 1, low: 1, close: 1}",
    ])
    def test_run_with_bad_field_value(self, runner, workspace, row):
        bad = workspace / "bad_value.yaml"
        bad.write_text(row + "\n")

        result = runner.invoke(cli, [
            "--base-dir", str(workspace),
            "run", "breakout",
            "--bars", str(bad),
        ])

        assert result.exit_code == 2
        assert "Bar 0 has an invalid value" in result.output
        assert not isinstance(result.exception, TypeError)
