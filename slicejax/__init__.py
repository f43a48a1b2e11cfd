import dataclasses
from typing import Callable

from slicejax._version import __version__

from .base import SamplingAlgorithm
from .mcmc import direct_shrinkage as _direct_shrinkage
from .mcmc import doubling as _doubling
from .mcmc import stepping_out as _stepping_out
from .mcmc.doubling import DoublingParameters
from .mcmc.stepping_out import SteppingOutParameters
from .target import (
    FunctionTarget,
    UnivariateTarget,
    as_target,
    density_target,
    logdensity_target,
)
from .util import mean_evaluations, run_inference_algorithm, sample_chain

"""
Each sampler is exposed both as a factory of `SamplingAlgorithm` and through
its low level components, `init` and `build_kernel`. The functional entry
points `*_sample` perform one transition from a position.
"""


@dataclasses.dataclass
class GenerateSamplingAPI:
    differentiable: Callable
    init: Callable
    build_kernel: Callable

    def __call__(self, *args, **kwargs) -> SamplingAlgorithm:
        return self.differentiable(*args, **kwargs)


def generate_top_level_api_from(module):
    return GenerateSamplingAPI(
        module.as_top_level_api, module.init, module.build_kernel
    )


stepping_out = generate_top_level_api_from(_stepping_out)
doubling = generate_top_level_api_from(_doubling)
direct_shrinkage = generate_top_level_api_from(_direct_shrinkage)

stepping_out_sample = _stepping_out.sample
doubling_sample = _doubling.sample
direct_shrinkage_sample = _direct_shrinkage.sample

__all__ = [
    "__version__",
    "SamplingAlgorithm",
    "UnivariateTarget",
    "FunctionTarget",
    "as_target",
    "density_target",
    "logdensity_target",
    "SteppingOutParameters",
    "DoublingParameters",
    "stepping_out",
    "doubling",
    "direct_shrinkage",
    "stepping_out_sample",
    "doubling_sample",
    "direct_shrinkage_sample",
    "run_inference_algorithm",
    "sample_chain",
    "mean_evaluations",
]
