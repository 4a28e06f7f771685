"""Deterministic per-run seeds and RNG streams.

A run's seed depends only on (base_seed, run_index), never on scheduling:

    run_seed = SeedSequence(base_seed mod 2**64, spawn_key=(run_index,)).generate_state(1)[0]

Each run then owns two independent child streams of SeedSequence(run_seed):
PATH_STREAM drives the synthetic reference path, STRATEGY_STREAM is handed
to the trading strategy.
"""

import numpy as np

PATH_STREAM = 0
STRATEGY_STREAM = 1

_SEED_MASK = (1 << 64) - 1


def derive_run_seed(base_seed: int, run_index: int) -> int:
    """Derive the seed of run `run_index` from the batch base seed."""
    sequence = np.random.SeedSequence(base_seed & _SEED_MASK, spawn_key=(run_index,))
    return int(sequence.generate_state(1, dtype=np.uint64)[0])


def stream_rng(run_seed: int, stream: int) -> np.random.Generator:
    """Build the RNG for one of a run's named streams."""
    return np.random.default_rng(np.random.SeedSequence(run_seed, spawn_key=(stream,)))
