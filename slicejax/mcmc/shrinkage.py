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
"""The shrinkage procedure shared by the univariate slice samplers.

Candidates are drawn uniformly in the bracket until one lies in the slice.
Each rejected candidate becomes the new left or right end of the bracket,
depending on which side of the current position it falls, so the bracket
always contains the current position and shrinks towards it.

"""
from typing import Callable, NamedTuple, Optional

import jax
import jax.numpy as jnp

from slicejax.mcmc.evaluator import StepEvaluator
from slicejax.types import Array, PRNGKey

__all__ = ["ShrinkageState", "init", "build_shrinkage_step", "shrink"]


class ShrinkageState(NamedTuple):
    """State of the shrinkage loop.

    rng_key
        Key used to draw the next candidate.
    left, right
        Current bracket. `left <= x <= right` holds before every draw.
    position
        Last candidate drawn; the new sample once `accepted` is True.
    num_evals
        Number of evaluations of the target so far in the transition.
    accepted
        Whether `position` has been accepted.

    """

    rng_key: PRNGKey
    left: Array
    right: Array
    position: Array
    num_evals: Array
    accepted: Array


def init(
    rng_key: PRNGKey, x: Array, left: Array, right: Array, num_evals: Array
) -> ShrinkageState:
    return ShrinkageState(
        rng_key,
        jnp.asarray(left, dtype=x.dtype),
        jnp.asarray(right, dtype=x.dtype),
        x,
        num_evals,
        jnp.array(False),
    )


def build_shrinkage_step(
    evaluator: StepEvaluator,
    x: Array,
    y: Array,
    acceptance_fn: Optional[Callable] = None,
) -> Callable:
    """Build one accept/reject/shrink iteration.

    Parameters
    ----------
    evaluator
        Counted evaluations of the target.
    x
        Current position of the chain.
    y
        Height of the slice.
    acceptance_fn
        Additional acceptance test, called as `acceptance_fn(x1, num_evals)`
        only for candidates that lie in the slice. It returns whether the
        candidate is accepted and the updated evaluation count.

    Returns
    -------
    A function that maps a `ShrinkageState` to the next one.

    """

    def rejected(x1, num_evals):
        return jnp.array(False), num_evals

    def one_step(state: ShrinkageState) -> ShrinkageState:
        key, rng_key = jax.random.split(state.rng_key)
        u = jax.random.uniform(key, dtype=x.dtype)
        x1 = state.left + u * (state.right - state.left)

        accepted, num_evals = evaluator.is_above(x1, y, state.num_evals)
        if acceptance_fn is not None:
            accepted, num_evals = jax.lax.cond(
                accepted, acceptance_fn, rejected, x1, num_evals
            )

        shrink_left = jnp.logical_and(jnp.logical_not(accepted), x1 < x)
        shrink_right = jnp.logical_and(jnp.logical_not(accepted), x1 >= x)
        left = jnp.where(shrink_left, x1, state.left)
        right = jnp.where(shrink_right, x1, state.right)

        return ShrinkageState(rng_key, left, right, x1, num_evals, accepted)

    return one_step


def shrink(
    rng_key: PRNGKey,
    evaluator: StepEvaluator,
    x: Array,
    y: Array,
    left: Array,
    right: Array,
    num_evals: Array,
    acceptance_fn: Optional[Callable] = None,
) -> tuple[Array, Array]:
    """Shrink the bracket `(left, right)` until a candidate is accepted.

    The loop terminates as long as the slice has positive measure around `x`,
    which holds whenever `y` was drawn below the target's value at `x`. There
    is no cap on the number of iterations.

    Returns
    -------
    The accepted candidate and the updated evaluation count.

    """
    one_step = build_shrinkage_step(evaluator, x, y, acceptance_fn)

    def cond_fn(state):
        return jnp.logical_not(state.accepted)

    state = init(rng_key, x, left, right, num_evals)
    state = jax.lax.while_loop(cond_fn, one_step, state)
    return state.position, state.num_evals
