"""
Exceptions raised by the script runtime.

All runtime failures derive from StrategyError so the actor can catch them
at its boundary. BuiltinArgumentError is raised inside scripts when a builtin
is called with bad arguments and surfaces wrapped in StrategyExecutionError.
"""


class StrategyError(Exception):
    """Base exception for strategy runtime errors"""
    pass


class StrategyLoadError(StrategyError):
    """Raised when a strategy script cannot be found or read"""
    pass


class StrategyCompileError(StrategyError):
    """Raised when a script fails to compile or violates the sandbox policy"""

    def __init__(self, strategy: str, details: str):
        self.strategy = strategy
        self.details = details
        super().__init__(f"strategy {strategy}: compile failed: {details}")


class StrategyValidationError(StrategyError):
    """Raised when the callback validator cannot execute a script"""
    pass


class StrategyExecutionError(StrategyError):
    """Raised when user code fails; carries the strategy name and phase."""

    def __init__(self, strategy: str, phase: str, cause: BaseException):
        self.strategy = strategy
        self.phase = phase
        self.cause = cause
        super().__init__(f"strategy {strategy}: {phase} failed: {cause}")


class ScriptTimeoutError(StrategyExecutionError):
    """Raised when an execution exceeds its wall-clock budget"""

    def __init__(self, strategy: str, phase: str, elapsed: float, budget: float):
        self.elapsed = elapsed
        self.budget = budget
        super().__init__(
            strategy,
            phase,
            TimeoutError(f"took {elapsed:.3f}s, budget is {budget:.3f}s"),
        )


class BuiltinArgumentError(ValueError):
    """Raised when a builtin is called with invalid arguments."""

    def __init__(self, builtin: str, message: str):
        self.builtin = builtin
        super().__init__(f"{builtin}: {message}")
