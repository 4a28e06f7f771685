"""Error taxonomy for pricing, pool and simulation failures."""


class ArppError(Exception):
    """Base class for all simulator errors."""


class InvalidParameter(ArppError, ValueError):
    """Configuration or input validation failure. Fatal, raised before any run starts."""


class InsufficientLiquidity(ArppError):
    """A trade would drive a reserve to zero or below."""


class NumericOverflow(ArppError, ArithmeticError):
    """A computation produced a non-finite value or a non-positive price."""


class StepBudgetExceeded(ArppError):
    """A run tried to execute more steps than its budget allows."""


class RunAborted(ArppError):
    """A single run stopped early.

    Wraps the underlying liquidity, numeric or budget error and keeps the
    step records produced before the failure.
    """

    def __init__(self, run_id: int, cause: BaseException, records: tuple = ()):
        super().__init__(run_id, cause, records)
        self.run_id = run_id
        self.cause = cause
        self.records = tuple(records)

    def __str__(self) -> str:
        return (
            f"run {self.run_id} aborted after {len(self.records)} steps: "
            f"{type(self.cause).__name__}: {self.cause}"
        )
