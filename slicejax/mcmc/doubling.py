# Copyright 2020- The Blackjax Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Public API for the univariate slice sampler with doubling"""
from typing import Callable, NamedTuple, Union

import jax
import jax.numpy as jnp

from slicejax.base import SamplingAlgorithm
from slicejax.mcmc import shrinkage
from slicejax.mcmc.evaluator import (
    SliceInfo,
    SliceState,
    StepEvaluator,
    check_budget,
    draw_slice,
    effective_width,
    init,
    initial_bracket,
    log_width_clamp,
)
from slicejax.target import UnivariateTarget, as_target
from slicejax.types import Array, PRNGKey, Scalar

__all__ = [
    "DoublingParameters",
    "SliceState",
    "SliceInfo",
    "init",
    "sample",
    "double",
    "reverse_check",
    "build_kernel",
    "as_top_level_api",
]


class DoublingParameters(NamedTuple):
    """Tuning parameters of the doubling procedure.

    width
        Size of the initial bracket. Non-positive values are replaced by the
        smallest positive normal number of the working dtype.
    max_number_of_doubles
        0 lets the bracket double for as long as both of its ends lie in the
        slice. 1 disables the expansion: the initial bracket is shrunk
        directly. Larger values cap the number of doublings.

    """

    width: Scalar = 1.0
    max_number_of_doubles: int = 0


def _double_once(rng_key, left, right):
    """Double the bracket on a side chosen at random."""
    u = jax.random.uniform(rng_key, dtype=left.dtype)
    size = right - left
    to_the_left = u < 0.5
    left = jnp.where(to_the_left, left - size, left)
    right = jnp.where(to_the_left, right, right + size)
    return left, right


def double(
    rng_key: PRNGKey,
    evaluator: StepEvaluator,
    y: Array,
    left: Array,
    right: Array,
    max_number_of_doubles: int,
    num_evals: Array,
) -> tuple[Array, Array, Array]:
    """Expand the bracket by repeatedly doubling its size.

    With a budget of 0 the bracket doubles while both of its ends are in the
    slice, without limit. With a budget `K > 1` it doubles while either end
    is in the slice, at most `K` times. A budget of 1 returns the bracket
    unchanged.

    """
    if max_number_of_doubles == 1:
        return left, right, num_evals

    if max_number_of_doubles == 0:

        def body_fn(carry):
            rng_key, left, right, _, num_evals = carry
            key, rng_key = jax.random.split(rng_key)
            left, right = _double_once(key, left, right)
            expanding, num_evals = evaluator.both_above(left, right, y, num_evals)
            return rng_key, left, right, expanding, num_evals

        expanding, num_evals = evaluator.both_above(left, right, y, num_evals)
        _, left, right, _, num_evals = jax.lax.while_loop(
            lambda carry: carry[3],
            body_fn,
            (rng_key, left, right, expanding, num_evals),
        )
        return left, right, num_evals

    def keep_doubling(budget, left, right, num_evals):
        return jax.lax.cond(
            budget > 0,
            lambda n: evaluator.either_above(left, right, y, n),
            lambda n: (jnp.array(False), n),
            num_evals,
        )

    def bounded_body_fn(carry):
        rng_key, left, right, budget, _, num_evals = carry
        key, rng_key = jax.random.split(rng_key)
        budget = budget - 1
        left, right = _double_once(key, left, right)
        expanding, num_evals = keep_doubling(budget, left, right, num_evals)
        return rng_key, left, right, budget, expanding, num_evals

    budget = jnp.asarray(max_number_of_doubles, dtype=jnp.int32)
    expanding, num_evals = keep_doubling(budget, left, right, num_evals)
    _, left, right, _, _, num_evals = jax.lax.while_loop(
        lambda carry: carry[4],
        bounded_body_fn,
        (rng_key, left, right, budget, expanding, num_evals),
    )
    return left, right, num_evals


def reverse_check(
    evaluator: StepEvaluator,
    x: Array,
    x1: Array,
    y: Array,
    left: Array,
    right: Array,
    width: Array,
    num_evals: Array,
) -> tuple[Array, Array]:
    """Check that the doubling procedure started from `x1` could produce the bracket.

    Implementation of figure 6 of Neal (2003). The bracket
    `(left, right)` obtained after doubling, before any shrinkage, is bisected
    towards `x1` until it is no larger than `1.1 * width`. If at some point
    `x` and `x1` have been separated by a midpoint and both ends of the half
    that contains `x1` lie outside the slice, doubling from `x1` would have
    stopped before reaching `x`, and `x1` must be rejected to preserve
    detailed balance.

    Returns
    -------
    Whether `x1` is accepted, and the updated evaluation count.

    """

    def cond_fn(carry):
        left, right, _, accepted, _ = carry
        return jnp.logical_and(right - left > 1.1 * width, accepted)

    def body_fn(carry):
        left, right, diverged, _, num_evals = carry
        middle = (left + right) / 2
        separated = jnp.logical_or(
            jnp.logical_and(x < middle, x1 >= middle),
            jnp.logical_and(x >= middle, x1 < middle),
        )
        diverged = jnp.logical_or(diverged, separated)
        right = jnp.where(x1 < middle, middle, right)
        left = jnp.where(x1 < middle, left, middle)

        rejected, num_evals = jax.lax.cond(
            diverged,
            lambda n: evaluator.both_below(left, right, y, n),
            lambda n: (jnp.array(False), n),
            num_evals,
        )
        return left, right, diverged, jnp.logical_not(rejected), num_evals

    carry = (left, right, jnp.array(False), jnp.array(True), num_evals)
    *_, accepted, num_evals = jax.lax.while_loop(cond_fn, body_fn, carry)
    return accepted, num_evals


def sample(
    rng_key: PRNGKey,
    position: Scalar,
    target: Union[UnivariateTarget, Callable],
    parameters: DoublingParameters = DoublingParameters(),
) -> tuple[Array, Array]:
    """Draw a new position with the doubling and shrinkage procedures.

    Implementation of figures 4, 5 and 6 of Neal (2003).

    Parameters
    ----------
    rng_key
        The pseudo-random number generator key used to generate random numbers.
    position
        Current position of the chain.
    target
        The target distribution, or a log-density function.
    parameters
        Tuning parameters. `max_number_of_doubles` must be a Python integer.

    Returns
    -------
    The new position and the number of evaluations of the target.

    """
    evaluator = StepEvaluator(as_target(target))
    max_number_of_doubles = check_budget(
        "max_number_of_doubles", parameters.max_number_of_doubles
    )
    x = jnp.asarray(position, dtype=jnp.result_type(float))
    width = effective_width(parameters.width, x.dtype)

    slice_key, bracket_key, doubling_key, shrink_key = jax.random.split(rng_key, 4)
    y, num_evals = draw_slice(slice_key, evaluator, x)
    left, right = initial_bracket(bracket_key, x, width)
    left, right, num_evals = double(
        doubling_key, evaluator, y, left, right, max_number_of_doubles, num_evals
    )

    def acceptance_fn(x1, num_evals):
        return reverse_check(evaluator, x, x1, y, left, right, width, num_evals)

    return shrinkage.shrink(
        shrink_key, evaluator, x, y, left, right, num_evals, acceptance_fn
    )


def build_kernel(max_number_of_doubles: int = 0) -> Callable:
    """Build a univariate slice sampling kernel with doubling.

    Parameters
    ----------
    max_number_of_doubles
        Budget of the doubling procedure: 0 for unbounded, 1 for no doubling.

    Returns
    -------
    A kernel that takes a rng_key, the current state of the chain, the target
    and the initial width, and returns a new state of the chain along with
    information about the transition.

    """
    max_number_of_doubles = check_budget(
        "max_number_of_doubles", max_number_of_doubles
    )

    def kernel(
        rng_key: PRNGKey,
        state: SliceState,
        target: Union[UnivariateTarget, Callable],
        width: Scalar = 1.0,
    ) -> tuple[SliceState, SliceInfo]:
        parameters = DoublingParameters(width, max_number_of_doubles)
        position, num_evals = sample(rng_key, state.position, target, parameters)
        return SliceState(position), SliceInfo(num_evals)

    return kernel


def as_top_level_api(
    target: Union[UnivariateTarget, Callable],
    *,
    width: Scalar = 1.0,
    max_number_of_doubles: int = 0,
) -> SamplingAlgorithm:
    """Implements the (basic) user interface for the doubling slice sampler.

    Examples
    --------

    .. code::

        sampler = slicejax.doubling(logdensity_fn, width=1.0, max_number_of_doubles=8)
        state = sampler.init(position)
        new_state, info = sampler.step(rng_key, state)

    Parameters
    ----------
    target
        The target distribution, or a log-density function.
    width
        Size of the initial bracket.
    max_number_of_doubles
        Budget of the doubling procedure: 0 for unbounded, 1 for no doubling.

    Returns
    -------
    A ``SamplingAlgorithm``.

    """
    log_width_clamp(width)
    kernel = build_kernel(max_number_of_doubles)

    def init_fn(position: Scalar, rng_key=None):
        return init(position, rng_key)

    def step_fn(rng_key: PRNGKey, state):
        return kernel(rng_key, state, target, width)

    return SamplingAlgorithm(init_fn, step_fn)
