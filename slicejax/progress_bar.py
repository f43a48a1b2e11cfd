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
"""Progress bar for a chain driven by `jax.lax.scan`.

The bar lives on the host and is updated from the compiled loop through
`io_callback`. Only one chain is driven at a time, so a single bar is kept.
"""
from fastprogress.fastprogress import progress_bar
from jax import lax
from jax.experimental import io_callback


def progress_bar_scan(num_steps, print_rate=None):
    "Progress bar for a JAX scan"
    bars = []

    if print_rate is None:
        print_rate = max(num_steps // 20, 1)

    def _update_bar(iter_num):
        iter_num = int(iter_num)
        if iter_num == 0 or not bars:
            bars.append(progress_bar(range(num_steps)))
            bars[-1].update(0)
        bars[-1].update_bar(iter_num + 1)

    def _close_bar(iter_num):
        bars[-1].on_iter_end()

    def _update_progress_bar(iter_num):
        lax.cond(
            (iter_num % print_rate == 0) | (iter_num == num_steps - 1),
            lambda _: io_callback(_update_bar, None, iter_num),
            lambda _: None,
            operand=None,
        )
        lax.cond(
            iter_num == num_steps - 1,
            lambda _: io_callback(_close_bar, None, iter_num),
            lambda _: None,
            operand=None,
        )

    def _progress_bar_scan(func):
        """Decorate the body of a `lax.scan` over `(jnp.arange(num_steps), ...)`."""

        def wrapper_progress_bar(carry, xs):
            iter_num, *_ = xs
            _update_progress_bar(iter_num)
            return func(carry, xs)

        return wrapper_progress_bar

    return _progress_bar_scan


def gen_scan_fn(num_steps, progress_bar, print_rate=None):
    if progress_bar:

        def scan_wrap(f, init, *args, **kwargs):
            func = progress_bar_scan(num_steps, print_rate)(f)
            return lax.scan(func, init, *args, **kwargs)

        return scan_wrap
    else:
        return lax.scan
