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
"""Public API for the univariate slice sampler with stepping out"""
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
    "SteppingOutParameters",
    "SliceState",
    "SliceInfo",
    "init",
    "sample",
    "step_out",
    "step_out_bounded",
    "build_kernel",
    "as_top_level_api",
]


class SteppingOutParameters(NamedTuple):
    """Tuning parameters of the stepping out procedure.

    width
        Size of the steps. Non-positive values are replaced by the smallest
        positive normal number of the working dtype.
    max_number_of_steps
        Total number of steps the bracket may take, split at random between
        its two ends. 0 means the expansion is unbounded.

    """

    width: Scalar = 1.0
    max_number_of_steps: int = 0


def step_out(
    evaluator: StepEvaluator,
    y: Array,
    left: Array,
    right: Array,
    width: Array,
    num_evals: Array,
) -> tuple[Array, Array, Array]:
    """Step each end of the bracket outwards until it leaves the slice.

    There is no limit on the number of steps: the target must fall below the
    slice height on both sides of the position, otherwise the loop does not
    terminate.

    """

    def expand(direction):
        def cond_fn(carry):
            _, above, _ = carry
            return above

        def body_fn(carry):
            end, _, num_evals = carry
            end = end + direction * width
            above, num_evals = evaluator.is_above(end, y, num_evals)
            return end, above, num_evals

        return cond_fn, body_fn

    above, num_evals = evaluator.is_above(left, y, num_evals)
    left, _, num_evals = jax.lax.while_loop(*expand(-1), (left, above, num_evals))

    above, num_evals = evaluator.is_above(right, y, num_evals)
    right, _, num_evals = jax.lax.while_loop(*expand(1), (right, above, num_evals))

    return left, right, num_evals


def step_out_bounded(
    evaluator: StepEvaluator,
    y: Array,
    left: Array,
    right: Array,
    width: Array,
    num_left_steps: Array,
    num_right_steps: Array,
    num_evals: Array,
) -> tuple[Array, Array, Array]:
    """Step each end of the bracket outwards with a fixed budget per end.

    An end stops when it leaves the slice or when its budget is exhausted, in
    which case the bracket may not cover the whole slice. The target is not
    evaluated at an end whose budget is exhausted.

    """

    def is_above(end, budget, num_evals):
        return jax.lax.cond(
            budget > 0,
            lambda n: evaluator.is_above(end, y, n),
            lambda n: (jnp.array(False), n),
            num_evals,
        )

    def expand(direction):
        def cond_fn(carry):
            *_, above, _ = carry
            return above

        def body_fn(carry):
            end, budget, _, num_evals = carry
            end = end + direction * width
            budget = budget - 1
            above, num_evals = is_above(end, budget, num_evals)
            return end, budget, above, num_evals

        return cond_fn, body_fn

    above, num_evals = is_above(left, num_left_steps, num_evals)
    left, *_, num_evals = jax.lax.while_loop(
        *expand(-1), (left, num_left_steps, above, num_evals)
    )

    above, num_evals = is_above(right, num_right_steps, num_evals)
    right, *_, num_evals = jax.lax.while_loop(
        *expand(1), (right, num_right_steps, above, num_evals)
    )

    return left, right, num_evals


def sample(
    rng_key: PRNGKey,
    position: Scalar,
    target: Union[UnivariateTarget, Callable],
    parameters: SteppingOutParameters = SteppingOutParameters(),
) -> tuple[Array, Array]:
    """Draw a new position with the stepping out and shrinkage procedures.

    Implementation of figures 3 and 5 of Neal (2003).

    Parameters
    ----------
    rng_key
        The pseudo-random number generator key used to generate random numbers.
    position
        Current position of the chain.
    target
        The target distribution, or a log-density function.
    parameters
        Tuning parameters. `max_number_of_steps` must be a Python integer.

    Returns
    -------
    The new position and the number of evaluations of the target.

    """
    evaluator = StepEvaluator(as_target(target))
    max_number_of_steps = check_budget(
        "max_number_of_steps", parameters.max_number_of_steps
    )
    x = jnp.asarray(position, dtype=jnp.result_type(float))
    width = effective_width(parameters.width, x.dtype)

    slice_key, bracket_key, budget_key, shrink_key = jax.random.split(rng_key, 4)
    y, num_evals = draw_slice(slice_key, evaluator, x)
    left, right = initial_bracket(bracket_key, x, width)

    if max_number_of_steps == 0:
        left, right, num_evals = step_out(evaluator, y, left, right, width, num_evals)
    else:
        u = jax.random.uniform(budget_key, dtype=x.dtype)
        num_left_steps = jnp.floor(u * max_number_of_steps).astype(jnp.int32)
        # u * m can round up to m in single precision
        num_left_steps = jnp.minimum(num_left_steps, max_number_of_steps - 1)
        num_right_steps = max_number_of_steps - 1 - num_left_steps
        left, right, num_evals = step_out_bounded(
            evaluator,
            y,
            left,
            right,
            width,
            num_left_steps,
            num_right_steps,
            num_evals,
        )

    return shrinkage.shrink(shrink_key, evaluator, x, y, left, right, num_evals)


def build_kernel(max_number_of_steps: int = 0) -> Callable:
    """Build a univariate slice sampling kernel with stepping out.

    Parameters
    ----------
    max_number_of_steps
        Budget of the stepping out procedure, 0 for unbounded.

    Returns
    -------
    A kernel that takes a rng_key, the current state of the chain, the target
    and the step width, and returns a new state of the chain along with
    information about the transition.

    """
    max_number_of_steps = check_budget("max_number_of_steps", max_number_of_steps)

    def kernel(
        rng_key: PRNGKey,
        state: SliceState,
        target: Union[UnivariateTarget, Callable],
        width: Scalar = 1.0,
    ) -> tuple[SliceState, SliceInfo]:
        parameters = SteppingOutParameters(width, max_number_of_steps)
        position, num_evals = sample(rng_key, state.position, target, parameters)
        return SliceState(position), SliceInfo(num_evals)

    return kernel


def as_top_level_api(
    target: Union[UnivariateTarget, Callable],
    *,
    width: Scalar = 1.0,
    max_number_of_steps: int = 0,
) -> SamplingAlgorithm:
    """Implements the (basic) user interface for the stepping out slice sampler.

    Examples
    --------

    A new sampler can be initialized and used with the following code:

    .. code::

        sampler = slicejax.stepping_out(logdensity_fn, width=0.5)
        state = sampler.init(position)
        new_state, info = sampler.step(rng_key, state)

    We can JIT-compile the step function for better performance

    .. code::

        step = jax.jit(sampler.step)
        new_state, info = step(rng_key, state)

    Parameters
    ----------
    target
        The target distribution, or a log-density function.
    width
        Size of the steps.
    max_number_of_steps
        Budget of the stepping out procedure, 0 for unbounded.

    Returns
    -------
    A ``SamplingAlgorithm``.

    """
    log_width_clamp(width)
    kernel = build_kernel(max_number_of_steps)

    def init_fn(position: Scalar, rng_key=None):
        return init(position, rng_key)

    def step_fn(rng_key: PRNGKey, state):
        return kernel(rng_key, state, target, width)

    return SamplingAlgorithm(init_fn, step_fn)
