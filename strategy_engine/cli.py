"""
CLI for the strategy engine.
Provides commands to check a strategy script and run it once against bars.
"""

import dataclasses
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List

import click
import yaml

from strategy_engine.config_schemas import EngineSettings, load_config
from strategy_engine.interfaces.market_data import Kline
from strategy_engine.logging_config import configure_structlog, get_logger
from strategy_engine.runtime.engine import StrategyContext, StrategyEngine
from strategy_engine.runtime.errors import StrategyError
from strategy_engine.runtime.validator import validate_callbacks

logger = get_logger(__name__)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Invalid timestamp: {value!r}")


def load_bars(path: str, symbol: str = "", interval: str = "") -> List[Kline]:
    """
    Read klines from a YAML file.

    The file holds a list of mappings with timestamp, open, high, low, close
    and volume keys, oldest first.
    """
    with open(path, 'r') as f:
        rows = yaml.safe_load(f) or []
    if not isinstance(rows, list):
        raise ValueError(f"Bars file must contain a list: {path}")

    bars = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"Bar {i} must be a mapping")
        try:
            bars.append(Kline(
                timestamp=_parse_timestamp(row["timestamp"]),
                open=float(row["open"]),
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
                volume=float(row.get("volume", 0.0)),
                symbol=symbol,
                interval=interval,
            ))
        except KeyError as e:
            raise ValueError(f"Bar {i} is missing {e}") from e
        except (TypeError, ValueError, OverflowError) as e:
            raise ValueError(f"Bar {i} has an invalid value: {e}") from e
    return bars


@click.group()
@click.option('--debug/--no-debug', default=False, help='Enable debug logging')
@click.option('--base-dir', type=click.Path(file_okay=False), default=None,
              help='Directory strategy search paths are relative to')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False), default=None,
              help='YAML subsystem configuration')
@click.pass_context
def cli(ctx, debug, base_dir, config_path):
    """Strategy Engine CLI - Validate and run strategy scripts."""
    configure_structlog("DEBUG" if debug else "WARNING")

    settings = load_config(config_path).engine if config_path else EngineSettings()
    if base_dir:
        settings.base_dir = base_dir
    ctx.obj = StrategyEngine.from_settings(settings)


@cli.command()
@click.argument('name')
@click.pass_obj
def validate(engine: StrategyEngine, name: str):
    """Report which callbacks a strategy defines."""
    try:
        callbacks = validate_callbacks(engine, name)
    except StrategyError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    for field_name, value in dataclasses.asdict(callbacks).items():
        click.echo(f"{field_name}: {value}")


@cli.command()
@click.argument('name')
@click.pass_obj
def interval(engine: StrategyEngine, name: str):
    """Print the interval a strategy declares."""
    try:
        click.echo(engine.get_strategy_interval(name))
    except StrategyError as e:
        click.echo(f"Error: {e}")
        sys.exit(1)


@cli.command()
@click.argument('name')
@click.option('--bars', 'bars_path', required=True, type=click.Path(exists=True, dir_okay=False),
              help='YAML file with OHLCV bars')
@click.option('--symbol', default='BTCUSDT', help='Symbol bound to the script')
@click.option('--exchange', default='backtest', help='Exchange bound to the script')
@click.pass_obj
def run(engine: StrategyEngine, name: str, bars_path: str, symbol: str, exchange: str):
    """Execute a strategy once against bars and print its signal."""
    try:
        bars = load_bars(bars_path, symbol=symbol)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise click.BadParameter(f"Error reading bars: {e}", param_hint="'--bars'") from e

    log_lines: List[str] = []
    ctx = StrategyContext(
        symbol=symbol,
        exchange=exchange,
        klines=tuple(bars),
        log_sink=lambda level, message: log_lines.append(f"[{level}] {message}"),
    )

    try:
        signal = engine.execute_strategy(name, ctx)
    except StrategyError as e:
        click.echo(f"Error: {e}")
        logger.debug("strategy_run_failed", strategy=name, error=str(e))
        sys.exit(1)

    for line in log_lines:
        click.echo(line)

    result: Dict[str, Any] = signal.to_dict()
    click.echo(yaml.safe_dump(result, sort_keys=False).rstrip())


if __name__ == '__main__':
    cli()
