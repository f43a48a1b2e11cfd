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
"""Public API for the univariate slice sampler on a fixed bracket.

When the support of the target is known and bounded, there is no need to
search for the slice: the shrinkage procedure can start from the whole
support.

"""
from typing import Callable, Union

import jax
import jax.numpy as jnp

from slicejax.base import SamplingAlgorithm
from slicejax.mcmc import shrinkage
from slicejax.mcmc.evaluator import (
    SliceInfo,
    SliceState,
    StepEvaluator,
    draw_slice,
    init,
)
from slicejax.target import UnivariateTarget, as_target
from slicejax.types import Array, PRNGKey, Scalar

__all__ = [
    "SliceState",
    "SliceInfo",
    "init",
    "sample",
    "build_kernel",
    "as_top_level_api",
]


def sample(
    rng_key: PRNGKey,
    position: Scalar,
    target: Union[UnivariateTarget, Callable],
    left: Scalar,
    right: Scalar,
) -> tuple[Array, Array]:
    """Draw a new position by shrinking the bracket `(left, right)`.

    The bracket must contain `position`, and should contain the support of
    the target: points outside of it can never be reached.

    Returns
    -------
    The new position and the number of evaluations of the target.

    """
    evaluator = StepEvaluator(as_target(target))
    x = jnp.asarray(position, dtype=jnp.result_type(float))

    slice_key, shrink_key = jax.random.split(rng_key)
    y, num_evals = draw_slice(slice_key, evaluator, x)
    return shrinkage.shrink(shrink_key, evaluator, x, y, left, right, num_evals)


def build_kernel() -> Callable:
    """Build a univariate slice sampling kernel on a fixed bracket.

    Returns
    -------
    A kernel that takes a rng_key, the current state of the chain, the target
    and the two ends of the bracket, and returns a new state of the chain
    along with information about the transition.

    """

    def kernel(
        rng_key: PRNGKey,
        state: SliceState,
        target: Union[UnivariateTarget, Callable],
        left: Scalar,
        right: Scalar,
    ) -> tuple[SliceState, SliceInfo]:
        position, num_evals = sample(rng_key, state.position, target, left, right)
        return SliceState(position), SliceInfo(num_evals)

    return kernel


def as_top_level_api(
    target: Union[UnivariateTarget, Callable],
    *,
    left: Scalar,
    right: Scalar,
) -> SamplingAlgorithm:
    """Implements the (basic) user interface for the fixed bracket slice sampler.

    Examples
    --------

    .. code::

        sampler = slicejax.direct_shrinkage(target, left=0.0, right=1.0)
        state = sampler.init(0.5)
        new_state, info = sampler.step(rng_key, state)

    Parameters
    ----------
    target
        The target distribution, or a log-density function.
    left, right
        Bracket that contains the support of the target.

    Returns
    -------
    A ``SamplingAlgorithm``.

    """
    kernel = build_kernel()

    def init_fn(position: Scalar, rng_key=None):
        return init(position, rng_key)

    def step_fn(rng_key: PRNGKey, state):
        return kernel(rng_key, state, target, left, right)

    return SamplingAlgorithm(init_fn, step_fn)
