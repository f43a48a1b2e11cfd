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
"""Building blocks shared by the univariate slice samplers.

All three samplers start the same way: the target is evaluated at the current
position, a slice height is drawn below that value, and a bracket of width
`w` is placed uniformly at random around the position. Every evaluation of
the target goes through a :class:`StepEvaluator` so that the cost of a
transition can be reported with the new sample.

"""
import logging
from typing import NamedTuple

import jax
import jax.numpy as jnp

from slicejax.target import UnivariateTarget
from slicejax.types import Array, PRNGKey, Scalar

__all__ = [
    "SliceState",
    "SliceInfo",
    "StepEvaluator",
    "init",
    "slice_height",
    "draw_slice",
    "initial_bracket",
    "effective_width",
    "check_budget",
    "log_width_clamp",
]

logger = logging.getLogger(__name__)


class SliceState(NamedTuple):
    """State of a univariate slice sampler.

    position
        Current position of the chain.

    """

    position: Array


class SliceInfo(NamedTuple):
    """Additional information on a slice sampling transition.

    num_evals
        Number of evaluations of the target during the transition, including
        the evaluation at the starting position.

    """

    num_evals: Array


def init(position: Scalar, rng_key=None) -> SliceState:
    del rng_key
    return SliceState(jnp.asarray(position, dtype=jnp.result_type(float)))


class StepEvaluator(NamedTuple):
    """Evaluate a target and count the evaluations.

    The count is threaded through the calls instead of being stored, so the
    evaluator can be used inside `jax.lax` loops. Values are never cached: two
    evaluations at the same point are counted twice.

    """

    target: UnivariateTarget

    @property
    def on_log_scale(self) -> bool:
        return self.target.on_log_scale()

    def __call__(self, x: Array, num_evals: Array) -> tuple[Array, Array]:
        fx = jnp.reshape(jnp.asarray(self.target.evaluate(x)), ())
        return fx, num_evals + 1

    def is_above(self, x: Array, y: Array, num_evals: Array) -> tuple[Array, Array]:
        """Whether `x` lies in the slice at height `y`."""
        fx, num_evals = self(x, num_evals)
        return y < fx, num_evals

    def either_above(
        self, left: Array, right: Array, y: Array, num_evals: Array
    ) -> tuple[Array, Array]:
        """`f(left) > y or f(right) > y`, evaluating `right` only if needed."""
        left_above, num_evals = self.is_above(left, y, num_evals)
        return jax.lax.cond(
            left_above,
            lambda n: (jnp.array(True), n),
            lambda n: self.is_above(right, y, n),
            num_evals,
        )

    def both_above(
        self, left: Array, right: Array, y: Array, num_evals: Array
    ) -> tuple[Array, Array]:
        """`f(left) > y and f(right) > y`, evaluating `right` only if needed."""
        left_above, num_evals = self.is_above(left, y, num_evals)
        return jax.lax.cond(
            left_above,
            lambda n: self.is_above(right, y, n),
            lambda n: (jnp.array(False), n),
            num_evals,
        )

    def both_below(
        self, left: Array, right: Array, y: Array, num_evals: Array
    ) -> tuple[Array, Array]:
        """`f(left) <= y and f(right) <= y`, evaluating `right` only if needed."""
        left_above, num_evals = self.is_above(left, y, num_evals)

        def right_below(n):
            right_above, n = self.is_above(right, y, n)
            return jnp.logical_not(right_above), n

        return jax.lax.cond(
            left_above,
            lambda n: (jnp.array(False), n),
            right_below,
            num_evals,
        )


def slice_height(rng_key: PRNGKey, fx: Array, on_log_scale: bool) -> Array:
    """Draw the height of the horizontal slice below `fx`.

    On log scale the height is `log(u) + fx`, otherwise `u * fx`, with `u`
    uniform on [0, 1). When `fx` is a density equal to 0 the height is 0 and
    only points of strictly positive density can be accepted.

    """
    u = jax.random.uniform(rng_key, dtype=jnp.result_type(fx, float))
    if on_log_scale:
        return jnp.log(u) + fx
    return u * fx


def draw_slice(
    rng_key: PRNGKey, evaluator: StepEvaluator, x: Array
) -> tuple[Array, Array]:
    """Evaluate the target at `x` and draw a slice height.

    This is where the evaluation counter of a transition starts.

    """
    fx, num_evals = evaluator(x, jnp.zeros((), dtype=jnp.int32))
    return slice_height(rng_key, fx, evaluator.on_log_scale), num_evals


def initial_bracket(rng_key: PRNGKey, x: Array, width: Array) -> tuple[Array, Array]:
    """Place a bracket of size `width` uniformly at random around `x`."""
    u = jax.random.uniform(rng_key, dtype=x.dtype)
    left = x - u * width
    return left, left + width


def effective_width(width: Scalar, dtype) -> Array:
    """Clamp non-positive widths to the smallest positive normal number."""
    width = jnp.asarray(width, dtype=dtype)
    return jnp.where(width <= 0, jnp.finfo(dtype).tiny, width)


def check_budget(name: str, value: int) -> int:
    """Validate a step or doubling budget, which selects code paths at trace time."""
    value = int(value)
    if value < 0:
        raise ValueError(f"`{name}` must be a non-negative integer, got {value}.")
    if value == 0:
        logger.debug("`%s` is 0: the bracket expansion is unbounded", name)
    return value


def log_width_clamp(width: Scalar) -> None:
    if isinstance(width, (int, float)) and width <= 0:
        logger.debug(
            "Non-positive width %s will be clamped to the smallest positive float",
            width,
        )
