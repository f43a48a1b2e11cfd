"""Utility functions for slicejax."""
import logging
from typing import Callable, Optional

import jax
import jax.numpy as jnp
import numpy as np
from jax.random import split

from slicejax.base import SamplingAlgorithm
from slicejax.progress_bar import gen_scan_fn
from slicejax.types import Array, PRNGKey, Scalar

__all__ = ["run_inference_algorithm", "sample_chain", "mean_evaluations"]

logger = logging.getLogger(__name__)


def run_inference_algorithm(
    rng_key: PRNGKey,
    inference_algorithm: SamplingAlgorithm,
    num_steps: int,
    initial_state=None,
    initial_position: Optional[Scalar] = None,
    progress_bar: bool = False,
    transform: Callable = lambda state, info: (state, info),
) -> tuple:
    """Wrapper to run a sampling algorithm.

    The transitions are chained with `jax.lax.scan`, each one with its own key
    split from `rng_key`: the whole chain is reproducible from that one key.

    Parameters
    ----------
    rng_key
        The random state used by JAX's random numbers generator.
    inference_algorithm
        One of the slice sampling algorithms.
    num_steps
        Number of MCMC steps.
    initial_state
        The initial state of the inference algorithm.
    initial_position
        The initial position of the chain. This is used when the initial state
        is not provided.
    progress_bar
        Whether to display a progress bar.
    transform
        A transformation of the trace of states (and info) to be returned.
        By default, the states and infos are returned as is.

    Returns
    -------
        1. The final state.
        2. The history of states.

    """
    if initial_state is None and initial_position is None:
        raise ValueError(
            "Either `initial_state` or `initial_position` must be provided."
        )
    if initial_state is not None and initial_position is not None:
        raise ValueError(
            "Only one of `initial_state` or `initial_position` must be provided."
        )

    if initial_state is None:
        initial_state = inference_algorithm.init(initial_position, None)

    keys = split(rng_key, num_steps)

    def one_step(state, xs):
        _, rng_key = xs
        state, info = inference_algorithm.step(rng_key, state)
        return state, transform(state, info)

    scan_fn = gen_scan_fn(num_steps, progress_bar)

    xs = jnp.arange(num_steps), keys
    final_state, history = scan_fn(one_step, initial_state, xs)

    return final_state, history


def sample_chain(
    inference_algorithm: SamplingAlgorithm,
    initial_position: Scalar,
    num_steps: int,
    rng_key: Optional[PRNGKey] = None,
    progress_bar: bool = False,
) -> tuple[Array, Array]:
    """Run a chain and return its positions and costs.

    When `rng_key` is None a seed is drawn from the operating system once for
    the whole chain, and logged so the chain can be reproduced. Pass a key to
    get a deterministic chain.

    Returns
    -------
    The positions of the chain after each transition, and the number of
    evaluations of the target made by each transition.

    """
    if rng_key is None:
        seed = int(np.random.SeedSequence().generate_state(1)[0])
        logger.info("No rng_key provided, seeding the chain with %d", seed)
        rng_key = jax.random.key(seed)

    _, (positions, num_evals) = run_inference_algorithm(
        rng_key,
        inference_algorithm,
        num_steps,
        initial_position=initial_position,
        progress_bar=progress_bar,
        transform=lambda state, info: (state.position, info.num_evals),
    )
    return positions, num_evals


def mean_evaluations(num_evals: Array) -> Array:
    """Average number of evaluations of the target per transition."""
    return jnp.mean(jnp.asarray(num_evals, dtype=jnp.result_type(float)))
