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
from typing import Union

import jax
from jax.typing import ArrayLike

"""
Function inputs are annotated with `ArrayLike` (Python floats are accepted
wherever a scalar is expected), outputs with `Array`.

Every position handled by the library is a scalar: the samplers are
univariate, so there is no PyTree alias here.
"""
#: JAX arrays
Array = jax.Array
Scalar = Union[float, ArrayLike]

#: JAX PRNGKey
PRNGKey = jax.Array
