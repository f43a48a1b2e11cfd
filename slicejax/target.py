# Copyright 2020- The Blackjax Authors.
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
"""Targets of the univariate slice samplers.

A target is anything that can evaluate a function proportional to a density,
or to its logarithm, at a scalar point:

.. code::

    class Exponential(NamedTuple):
        rate: float

        def evaluate(self, x):
            return jnp.where(x < 0, -jnp.inf, -self.rate * x)

        def on_log_scale(self):
            return True

Plain functions are adapted with :func:`logdensity_target` or
:func:`density_target`. Both kinds of targets can be passed wherever the
samplers expect one.

"""
from typing import Callable, NamedTuple, Union

from typing_extensions import Protocol

from slicejax.types import Array, Scalar

__all__ = [
    "UnivariateTarget",
    "FunctionTarget",
    "logdensity_target",
    "density_target",
    "as_target",
]


class UnivariateTarget(Protocol):
    """A one-dimensional target distribution.

    `evaluate` must be traceable by JAX. `on_log_scale` must return a Python
    boolean: it is read once, when the sampler is traced.

    """

    def evaluate(self, x: Scalar) -> Array:
        """Return the density, or the log-density, at `x` (up to a constant)."""

    def on_log_scale(self) -> bool:
        """Whether `evaluate` returns the logarithm of the density."""


class FunctionTarget(NamedTuple):
    """Adapt a plain function to the :class:`UnivariateTarget` interface.

    fn
        Function proportional to the density, or to its logarithm.
    log_scale
        Whether `fn` returns the log-density.

    """

    fn: Callable
    log_scale: bool = True

    def evaluate(self, x: Scalar) -> Array:
        return self.fn(x)

    def on_log_scale(self) -> bool:
        return self.log_scale


def logdensity_target(logdensity_fn: Callable) -> FunctionTarget:
    return FunctionTarget(logdensity_fn, log_scale=True)


def density_target(density_fn: Callable) -> FunctionTarget:
    return FunctionTarget(density_fn, log_scale=False)


def as_target(target: Union[UnivariateTarget, Callable]) -> UnivariateTarget:
    """Return `target` as a :class:`UnivariateTarget`.

    Objects that implement `evaluate` and `on_log_scale` are returned
    untouched. Other callables are understood as log-density functions, like
    the `logdensity_fn` arguments of the rest of the library.

    Raises
    ------
    TypeError
        If `target` is neither a target nor a callable.

    """
    if hasattr(target, "evaluate") and hasattr(target, "on_log_scale"):
        return target
    if callable(target):
        return logdensity_target(target)
    raise TypeError(
        "The target must implement `evaluate` and `on_log_scale` or be a"
        f" log-density function, got {type(target).__name__}."
    )
