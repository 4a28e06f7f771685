"""Per-step, per-run and aggregate simulation results."""

from dataclasses import dataclass, field
from typing import Optional

from arpp_sim.core.pool import PoolState


@dataclass(frozen=True)
class StepRecord:
    """What happened to the pool at one step."""
    step_index: int
    reference_price: float
    pool_price: float
    deviation: float         # pool_price - reference_price
    slippage: float          # Relative price impact of the step's trade (0 if none)
    impermanent_loss: float  # Pool value vs holding, at the reference price
    reserve_a: float
    reserve_b: float
    traded_amount: float = 0.0
    replenished_a: float = 0.0  # Liquidity topped up before the trade
    replenished_b: float = 0.0


@dataclass(frozen=True)
class RunReport:
    """Outcome of one independent simulation run."""
    run_id: int
    seed: int
    records: tuple[StepRecord, ...]
    initial_state: PoolState
    terminal_state: PoolState
    failed: bool = False
    failure_reason: Optional[str] = None
    failure_kind: Optional[str] = None

    @property
    def steps_completed(self) -> int:
        return len(self.records)


@dataclass(frozen=True)
class SummaryStatistics:
    """Moments and percentiles of one pooled metric."""
    count: int
    mean: float
    variance: float  # Sample variance (ddof=1); 0.0 for a single sample
    std: float
    min: float
    max: float
    percentiles: dict[float, float] = field(default_factory=dict)

    def percentile(self, q: float) -> float:
        return self.percentiles[q]


@dataclass(frozen=True)
class RunSummary:
    """Per-run analysis of a successful run."""
    run_id: int
    terminal_price: float
    price_change: float         # |last pool price - first pool price|
    liquidity_change: float     # Relative change of reserve_a + reserve_b
    liquidity_depth: float      # sqrt(reserve_a * reserve_b) at the end
    trading_volume: float       # Sum of traded amounts (token A)
    price_volatility: float     # Mean of |p_t - p_0| / p_0, clamped to [0, 1]
    max_abs_deviation: float


@dataclass(frozen=True)
class AggregateReport:
    """Cross-run statistics over successful runs.

    Statistic fields are None when no successful run produced samples.
    """
    deviation: Optional[SummaryStatistics]
    slippage: Optional[SummaryStatistics]
    impermanent_loss: Optional[SummaryStatistics]
    successful_run_count: int
    failed_run_count: int
    failed_run_ids: tuple[int, ...]
    run_summaries: tuple[RunSummary, ...] = ()
    average_price_change: Optional[float] = None
    average_liquidity_change: Optional[float] = None
    max_terminal_price: Optional[float] = None
    min_terminal_price: Optional[float] = None
    price_stability: Optional[float] = None
    liquidity_efficiency: Optional[float] = None

    @property
    def total_runs(self) -> int:
        return self.successful_run_count + self.failed_run_count

    @property
    def is_empty(self) -> bool:
        return self.deviation is None


@dataclass(frozen=True)
class BatchResult:
    """Everything a batch produced: the aggregate plus every run report."""
    aggregate: AggregateReport
    runs: tuple[RunReport, ...]
    elapsed_seconds: float

    @property
    def failed_runs(self) -> list[RunReport]:
        return [r for r in self.runs if r.failed]
