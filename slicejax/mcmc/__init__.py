from . import direct_shrinkage, doubling, evaluator, shrinkage, stepping_out

__all__ = [
    "direct_shrinkage",
    "doubling",
    "evaluator",
    "shrinkage",
    "stepping_out",
]
