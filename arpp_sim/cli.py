"""Command-line interface for running ARPP Monte Carlo simulations."""

import argparse
import logging
import sys
from typing import Optional, Sequence

from arpp_sim.core.errors import InvalidParameter
from arpp_sim.simulation.config import (
    DEFAULT_SETTINGS,
    STRATEGIES,
    build_parameters,
    build_strategy,
    resolve_n_workers,
)
from arpp_sim.simulation.engine import MonteCarloEngine
from arpp_sim.simulation.result import AggregateReport, SummaryStatistics


def _strategy_kwargs(args: argparse.Namespace) -> dict:
    if args.strategy == "random":
        return {
            "trade_probability": args.trade_probability,
            "mean_size": args.mean_size,
            "buy_prob": args.buy_prob,
        }
    if args.strategy == "mean-reversion":
        return {
            "threshold": args.threshold,
            "intensity": args.intensity,
            "max_amount": args.max_trade_size,
        }
    if args.strategy == "arbitrage":
        return {"max_trade_size": args.max_trade_size}
    return {}


def _print_stats(name: str, stats: Optional[SummaryStatistics]) -> None:
    if stats is None:
        print(f"  {name:<18} no samples")
        return
    print(
        f"  {name:<18} mean {stats.mean:+.6g}  std {stats.std:.6g}  "
        f"p5 {stats.percentile(5.0):+.6g}  p50 {stats.percentile(50.0):+.6g}  "
        f"p95 {stats.percentile(95.0):+.6g}"
    )


def print_report(report: AggregateReport) -> None:
    print(f"\nRuns: {report.successful_run_count} succeeded, {report.failed_run_count} failed")
    _print_stats("Deviation", report.deviation)
    _print_stats("Slippage", report.slippage)
    _print_stats("Impermanent loss", report.impermanent_loss)
    if report.price_stability is not None:
        print(f"  Price stability      {report.price_stability:.4f}")
        print(f"  Liquidity efficiency {report.liquidity_efficiency:.4f}")
        print(f"  Average price change {report.average_price_change:.6g}")
    if report.failed_run_ids:
        shown = ", ".join(str(i) for i in report.failed_run_ids[:10])
        more = "" if report.failed_run_count <= 10 else ", ..."
        print(f"  Failed runs: {shown}{more}")


def simulate_command(args: argparse.Namespace) -> int:
    """Run a Monte Carlo batch for one strategy and print the aggregate."""
    try:
        parameters = build_parameters(
            num_runs=args.runs,
            num_steps=args.steps,
            alpha=args.alpha,
            beta=args.beta,
            fee=args.fee,
            initial_reserve_a=args.initial_a,
            initial_reserve_b=args.initial_b,
            initial_price=args.initial_price,
            volatility=args.volatility,
            volatility_of_volatility=args.vol_of_vol,
            base_seed=args.seed,
            step_budget=args.step_budget,
            replenish_liquidity=args.replenish,
        )
        strategy = build_strategy(args.strategy, parameters, **_strategy_kwargs(args))
        engine = MonteCarloEngine(
            strategy,
            n_workers=args.workers if args.workers is not None else resolve_n_workers(),
        )
        result = engine.run_batch(parameters)
    except InvalidParameter as e:
        print(f"Error: {e}")
        return 1

    print(f"Strategy: {strategy.get_name()}")
    print(f"Simulated {parameters.num_runs} runs x {parameters.num_steps} steps "
          f"in {result.elapsed_seconds:.2f}s")
    print_report(result.aggregate)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="ARPP Monte Carlo simulator - stress-test the anchored ratio pricing formula",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  arpp-sim simulate random --runs 1000 --steps 100
  arpp-sim simulate mean-reversion --threshold 0.05 --intensity 0.5
  arpp-sim simulate arbitrage --alpha 0.2 --beta 5 --workers 4
        """,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable info logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sim_parser = subparsers.add_parser("simulate", help="Run a Monte Carlo batch for a strategy")
    sim_parser.add_argument("strategy", choices=sorted(STRATEGIES), help="Trading strategy")
    sim_parser.add_argument("--runs", type=int, default=None,
                            help=f"Number of runs (default {DEFAULT_SETTINGS.num_runs})")
    sim_parser.add_argument("--steps", type=int, default=None,
                            help=f"Steps per run (default {DEFAULT_SETTINGS.num_steps})")
    sim_parser.add_argument("--alpha", type=float, default=None,
                            help=f"Deviation amplitude (default {DEFAULT_SETTINGS.alpha})")
    sim_parser.add_argument("--beta", type=float, default=None,
                            help=f"Ratio sensitivity (default {DEFAULT_SETTINGS.beta})")
    sim_parser.add_argument("--fee", type=float, default=None,
                            help=f"Trade fee fraction (default {DEFAULT_SETTINGS.fee})")
    sim_parser.add_argument("--initial-a", type=float, default=None,
                            help=f"Initial reserve of token A (default {DEFAULT_SETTINGS.initial_reserve_a})")
    sim_parser.add_argument("--initial-b", type=float, default=None,
                            help=f"Initial reserve of token B (default {DEFAULT_SETTINGS.initial_reserve_b})")
    sim_parser.add_argument("--initial-price", type=float, default=None,
                            help=f"Initial reference price (default {DEFAULT_SETTINGS.initial_price})")
    sim_parser.add_argument("--volatility", type=float, default=None,
                            help=f"Per-step reference volatility (default {DEFAULT_SETTINGS.volatility})")
    sim_parser.add_argument("--vol-of-vol", type=float, default=None,
                            help="Volatility of the per-step volatility (default 0)")
    sim_parser.add_argument("--seed", type=int, default=None,
                            help=f"Base seed (default {DEFAULT_SETTINGS.base_seed})")
    sim_parser.add_argument("--step-budget", type=int, default=None,
                            help="Total steps the batch may execute; runs past it fail")
    sim_parser.add_argument("--replenish", action="store_true", default=None,
                            help="Top up a reserve that falls below half of the other")
    sim_parser.add_argument("--workers", type=int, default=None,
                            help="Worker processes (defaults to N_WORKERS or CPU count)")
    sim_parser.add_argument("--trade-probability", type=float, default=None,
                            help="random: probability of trading at each step")
    sim_parser.add_argument("--mean-size", type=float, default=None,
                            help="random: mean trade size in token A")
    sim_parser.add_argument("--buy-prob", type=float, default=None,
                            help="random: probability a trade buys A")
    sim_parser.add_argument("--threshold", type=float, default=None,
                            help="mean-reversion: |R - 1| below which no trade happens")
    sim_parser.add_argument("--intensity", type=float, default=None,
                            help="mean-reversion: fraction of the imbalance traded per step")
    sim_parser.add_argument("--max-trade-size", type=float, default=None,
                            help="mean-reversion / arbitrage: cap on a single trade")
    sim_parser.set_defaults(func=simulate_command)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
