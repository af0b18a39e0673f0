"""
Strategy Execution Subsystem

Runs user-authored strategy scripts against live market events and turns
their decisions into order requests.

Package Structure:
- indicators/: Numba technical indicator kernels
- runtime/: Sandboxed script runtime (engine, builtins, validator, signals)
- actor/: Per-strategy asyncio actors (lifecycle, buffers, routing)
- interfaces/: Market data types, Signal, collaborator protocols
- config_schemas.py: Pydantic configuration models
- logging_config.py: structlog setup
- cli.py: strategy-engine command line
"""

__version__ = '0.1.0'
