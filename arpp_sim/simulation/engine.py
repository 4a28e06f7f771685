"""Monte Carlo engine running many independent ARPP simulations."""

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from typing import Iterator, Optional, Sequence

from arpp_sim.core.errors import InvalidParameter
from arpp_sim.core.interfaces import TradingStrategy
from arpp_sim.core.params import Parameters
from arpp_sim.core.rng import derive_run_seed
from arpp_sim.market.price_process import GBMPricePath, PricePathGenerator, ReplayPricePath
from arpp_sim.simulation.config import resolve_n_workers
from arpp_sim.simulation.metrics import MetricsAccumulator, MetricsAggregator
from arpp_sim.simulation.result import AggregateReport, BatchResult, RunReport
from arpp_sim.simulation.run import execute_run

logger = logging.getLogger(__name__)

# (run_id, seed, parameters, strategy, path_generator)
RunTask = tuple[int, int, Parameters, TradingStrategy, PricePathGenerator]


def _run_and_accumulate(task: RunTask) -> tuple[RunReport, MetricsAccumulator]:
    """Execute one run and fold it into its own accumulator, on the worker."""
    report = execute_run(*task)
    return report, MetricsAccumulator.from_report(report)


class MonteCarloEngine:
    """Schedules independent runs on a fixed-size process pool.

    Every run's seed is derive_run_seed(base_seed, run_index) and its
    trajectory depends on nothing else, so runs can execute in any order.
    Per-run accumulators are merged in run-index order, which makes the
    aggregate bit-identical for any worker count.

    Reference prices come from `path_generator` (GBM by default) or from
    `reference_paths`: pre-fetched sequences, either one per run or a single
    sequence replayed by every run.
    """

    def __init__(
        self,
        strategy: TradingStrategy,
        *,
        path_generator: Optional[PricePathGenerator] = None,
        reference_paths: Optional[Sequence[Sequence[float]]] = None,
        n_workers: Optional[int] = None,
        aggregator: Optional[MetricsAggregator] = None,
    ):
        if path_generator is not None and reference_paths is not None:
            raise InvalidParameter("pass either path_generator or reference_paths, not both")
        if not isinstance(strategy, TradingStrategy):
            raise InvalidParameter(f"strategy must be a TradingStrategy, got {type(strategy).__name__}")

        self.strategy = strategy
        self.path_generator = path_generator if path_generator is not None else GBMPricePath()
        self.replay_paths: Optional[tuple[ReplayPricePath, ...]] = None
        if reference_paths is not None:
            self.replay_paths = tuple(ReplayPricePath(path) for path in reference_paths)
            if not self.replay_paths:
                raise InvalidParameter("reference_paths must contain at least one path")

        self.n_workers = resolve_n_workers() if n_workers is None else n_workers
        if isinstance(self.n_workers, bool) or not isinstance(self.n_workers, int) or self.n_workers <= 0:
            raise InvalidParameter(f"n_workers must be a positive integer, got {self.n_workers!r}")
        self.aggregator = aggregator if aggregator is not None else MetricsAggregator()

    def path_generator_for(self, run_index: int) -> PricePathGenerator:
        if self.replay_paths is None:
            return self.path_generator
        if len(self.replay_paths) == 1:
            return self.replay_paths[0]
        return self.replay_paths[run_index]

    def validate(self, parameters: Parameters) -> None:
        """Check everything that must hold before any run starts."""
        if not isinstance(parameters, Parameters):
            raise InvalidParameter(f"parameters must be Parameters, got {type(parameters).__name__}")
        if self.replay_paths is None:
            self.path_generator.validate(parameters)
            return
        if len(self.replay_paths) not in (1, parameters.num_runs):
            raise InvalidParameter(
                f"got {len(self.replay_paths)} reference paths for {parameters.num_runs} runs"
            )
        for path in self.replay_paths:
            path.validate(parameters)

    def run(self, parameters: Parameters) -> AggregateReport:
        """Run the batch and return the aggregate statistics."""
        return self.run_batch(parameters).aggregate

    def run_batch(self, parameters: Parameters) -> BatchResult:
        """Run the batch and return the aggregate, every run report and the wall time.

        Raises:
            InvalidParameter: Before any run starts, if the inputs are invalid
        """
        self.validate(parameters)
        workers = min(self.n_workers, parameters.num_runs)
        logger.info(
            f"Running {parameters.num_runs} simulations x {parameters.num_steps} steps "
            f"({self.strategy.get_name()}, {workers} workers)"
        )

        start = time.perf_counter()
        reports = []
        accumulator = MetricsAccumulator()
        for report, partial in self._execute(parameters, workers):
            reports.append(report)
            accumulator.absorb(partial)
        aggregate = self.aggregator.finalize(accumulator)
        elapsed = time.perf_counter() - start

        logger.info(
            f"Completed in {elapsed:.2f}s: {aggregate.successful_run_count} succeeded, "
            f"{aggregate.failed_run_count} failed"
        )
        return BatchResult(aggregate=aggregate, runs=tuple(reports), elapsed_seconds=elapsed)

    def _tasks(self, parameters: Parameters) -> list[RunTask]:
        return [
            (
                i,
                derive_run_seed(parameters.base_seed, i),
                parameters,
                self.strategy,
                self.path_generator_for(i),
            )
            for i in range(parameters.num_runs)
        ]

    def _execute(
        self, parameters: Parameters, workers: int
    ) -> Iterator[tuple[RunReport, MetricsAccumulator]]:
        """Yield (report, accumulator) pairs in run-index order."""
        tasks = self._tasks(parameters)
        if workers == 1:
            for task in tasks:
                yield _run_and_accumulate(task)
            return

        chunksize = max(1, len(tasks) // (workers * 4))
        with ProcessPoolExecutor(max_workers=workers) as executor:
            yield from executor.map(_run_and_accumulate, tasks, chunksize=chunksize)
