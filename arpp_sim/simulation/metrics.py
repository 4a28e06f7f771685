"""Reduction of run reports into per-run and cross-run statistics.

Means and variances use Welford's online update; partial accumulators are
combined with Chan et al.'s pairwise formula, so reducing two partitions
separately and merging gives the same moments (to rounding) as a single
pass. Percentiles are computed on the pooled samples after a stable sort,
with linear interpolation between the closest ranks.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

import numpy as np

from arpp_sim.simulation.result import (
    AggregateReport,
    RunReport,
    RunSummary,
    SummaryStatistics,
)

PERCENTILES: tuple[float, ...] = (5.0, 25.0, 50.0, 75.0, 95.0)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def impermanent_loss(
    reserve_a: float,
    reserve_b: float,
    initial_a: float,
    initial_b: float,
    reference_price: float,
) -> float:
    """Relative value of the pooled reserves versus holding the initial ones.

    Both sides are valued in token A at the reference price (A per B).
    Negative values are a loss for the liquidity provider. Clamped to [-1, 1].
    """
    value_if_held = initial_a + initial_b * reference_price
    value_in_pool = reserve_a + reserve_b * reference_price
    if value_if_held == 0:
        return 0.0
    return _clamp((value_in_pool - value_if_held) / value_if_held, -1.0, 1.0)


def percentile_of_sorted(ordered: Sequence[float], q: float) -> float:
    """Linear-interpolated percentile of an already sorted sample."""
    n = len(ordered)
    if n == 0:
        raise ValueError("percentile of an empty sample")
    if n == 1:
        return float(ordered[0])
    rank = q / 100.0 * (n - 1)
    lo = int(math.floor(rank))
    hi = min(lo + 1, n - 1)
    frac = rank - lo
    return float(ordered[lo] + (ordered[hi] - ordered[lo]) * frac)


def price_stability(min_price: float, max_price: float) -> float:
    """1 - (max - min) / midpoint, clamped to [0, 1]."""
    if min_price == 0 and max_price == 0:
        return 1.0
    if min_price < 0 or max_price < 0 or min_price > max_price:
        return 0.0
    midpoint = (max_price + min_price) / 2
    if midpoint == 0:
        return 0.0
    return _clamp(1.0 - (max_price - min_price) / midpoint, 0.0, 1.0)


def liquidity_efficiency(average_liquidity_change: float) -> float:
    """1 / (1 + average relative liquidity change), clamped to [0, 1]."""
    if average_liquidity_change == -1.0:
        return 0.0
    return _clamp(1.0 / (1.0 + average_liquidity_change), 0.0, 1.0)


@dataclass
class RunningStats:
    """Welford accumulator for count, mean, M2, min and max."""
    count: int = 0
    mean: float = 0.0
    m2: float = 0.0
    min: float = math.inf
    max: float = -math.inf

    def push(self, value: float) -> None:
        self.count += 1
        delta = value - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (value - self.mean)
        self.min = min(self.min, value)
        self.max = max(self.max, value)

    def merge(self, other: "RunningStats") -> "RunningStats":
        """Combine two accumulators without mutating either."""
        if other.count == 0:
            return RunningStats(self.count, self.mean, self.m2, self.min, self.max)
        if self.count == 0:
            return RunningStats(other.count, other.mean, other.m2, other.min, other.max)
        count = self.count + other.count
        delta = other.mean - self.mean
        mean = self.mean + delta * other.count / count
        m2 = self.m2 + other.m2 + delta * delta * self.count * other.count / count
        return RunningStats(count, mean, m2, min(self.min, other.min), max(self.max, other.max))

    @property
    def variance(self) -> float:
        """Sample variance (ddof=1); 0.0 with fewer than two samples."""
        if self.count < 2:
            return 0.0
        return self.m2 / (self.count - 1)

    @property
    def std(self) -> float:
        return math.sqrt(self.variance)


def summarize_run(report: RunReport) -> RunSummary:
    """Per-run analysis of a successful run with at least one record."""
    records = report.records
    first_price = records[0].pool_price
    terminal_price = records[-1].pool_price

    initial_liquidity = report.initial_state.total_liquidity
    final_liquidity = report.terminal_state.total_liquidity

    volatility = sum(
        _clamp(abs(r.pool_price - first_price) / first_price, 0.0, 1.0) for r in records
    ) / len(records)

    return RunSummary(
        run_id=report.run_id,
        terminal_price=terminal_price,
        price_change=abs(terminal_price - first_price),
        liquidity_change=abs(final_liquidity - initial_liquidity) / initial_liquidity,
        liquidity_depth=report.terminal_state.liquidity_depth,
        trading_volume=sum(r.traded_amount for r in records),
        price_volatility=volatility,
        max_abs_deviation=max(abs(r.deviation) for r in records),
    )


@dataclass
class MetricsAccumulator:
    """Partial reduction state over any subset of run reports.

    merge() is associative: the moments match a sequential pass to
    floating-point rounding, and pooled samples and summaries are
    concatenated in merge order.
    """
    deviation: RunningStats = field(default_factory=RunningStats)
    slippage: RunningStats = field(default_factory=RunningStats)
    impermanent_loss: RunningStats = field(default_factory=RunningStats)
    deviation_samples: list[float] = field(default_factory=list)
    slippage_samples: list[float] = field(default_factory=list)
    impermanent_loss_samples: list[float] = field(default_factory=list)
    run_summaries: list[RunSummary] = field(default_factory=list)
    failed_run_ids: list[int] = field(default_factory=list)
    successful_runs: int = 0

    def add(self, report: RunReport) -> None:
        """Fold one run report in. Failed runs are only counted."""
        if report.failed:
            self.failed_run_ids.append(report.run_id)
            return
        self.successful_runs += 1
        for record in report.records:
            self.deviation.push(record.deviation)
            self.slippage.push(record.slippage)
            self.impermanent_loss.push(record.impermanent_loss)
            self.deviation_samples.append(record.deviation)
            self.slippage_samples.append(record.slippage)
            self.impermanent_loss_samples.append(record.impermanent_loss)
        if report.records:
            self.run_summaries.append(summarize_run(report))

    def absorb(self, other: "MetricsAccumulator") -> None:
        """In-place merge; `other` is left untouched."""
        self.deviation = self.deviation.merge(other.deviation)
        self.slippage = self.slippage.merge(other.slippage)
        self.impermanent_loss = self.impermanent_loss.merge(other.impermanent_loss)
        self.deviation_samples.extend(other.deviation_samples)
        self.slippage_samples.extend(other.slippage_samples)
        self.impermanent_loss_samples.extend(other.impermanent_loss_samples)
        self.run_summaries.extend(other.run_summaries)
        self.failed_run_ids.extend(other.failed_run_ids)
        self.successful_runs += other.successful_runs

    def merge(self, other: "MetricsAccumulator") -> "MetricsAccumulator":
        """Combine two accumulators into a new one without mutating either."""
        merged = MetricsAccumulator()
        merged.absorb(self)
        merged.absorb(other)
        return merged

    @classmethod
    def from_report(cls, report: RunReport) -> "MetricsAccumulator":
        accumulator = cls()
        accumulator.add(report)
        return accumulator


class MetricsAggregator:
    """Reduces run reports into an AggregateReport."""

    def __init__(self, percentiles: Sequence[float] = PERCENTILES):
        self.percentiles = tuple(percentiles)

    def accumulate(self, reports: Iterable[RunReport]) -> MetricsAccumulator:
        accumulator = MetricsAccumulator()
        for report in reports:
            accumulator.add(report)
        return accumulator

    def reduce(self, reports: Iterable[RunReport]) -> AggregateReport:
        return self.finalize(self.accumulate(reports))

    def finalize(self, accumulator: MetricsAccumulator) -> AggregateReport:
        summaries = tuple(accumulator.run_summaries)
        report = AggregateReport(
            deviation=self._summarize(accumulator.deviation, accumulator.deviation_samples),
            slippage=self._summarize(accumulator.slippage, accumulator.slippage_samples),
            impermanent_loss=self._summarize(
                accumulator.impermanent_loss, accumulator.impermanent_loss_samples
            ),
            successful_run_count=accumulator.successful_runs,
            failed_run_count=len(accumulator.failed_run_ids),
            failed_run_ids=tuple(sorted(accumulator.failed_run_ids)),
            run_summaries=summaries,
        )
        if not summaries:
            return report

        n = len(summaries)
        average_price_change = sum(s.price_change for s in summaries) / n
        average_liquidity_change = sum(s.liquidity_change for s in summaries) / n
        max_terminal = max(s.terminal_price for s in summaries)
        min_terminal = min(s.terminal_price for s in summaries)

        return AggregateReport(
            deviation=report.deviation,
            slippage=report.slippage,
            impermanent_loss=report.impermanent_loss,
            successful_run_count=report.successful_run_count,
            failed_run_count=report.failed_run_count,
            failed_run_ids=report.failed_run_ids,
            run_summaries=summaries,
            average_price_change=average_price_change,
            average_liquidity_change=average_liquidity_change,
            max_terminal_price=max_terminal,
            min_terminal_price=min_terminal,
            price_stability=price_stability(min_terminal, max_terminal),
            liquidity_efficiency=liquidity_efficiency(average_liquidity_change),
        )

    def _summarize(
        self, stats: RunningStats, samples: list[float]
    ) -> Optional[SummaryStatistics]:
        if stats.count == 0:
            return None
        ordered = np.sort(np.asarray(samples, dtype=float), kind="stable")
        return SummaryStatistics(
            count=stats.count,
            mean=stats.mean,
            variance=stats.variance,
            std=stats.std,
            min=stats.min,
            max=stats.max,
            percentiles={q: percentile_of_sorted(ordered, q) for q in self.percentiles},
        )
