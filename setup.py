import os
import sys

import setuptools

NAME = "slicejax"

here = os.path.abspath(os.path.dirname(__file__))

version = {}
with open(os.path.join(here, NAME, "_version.py"), encoding="utf-8") as f:
    exec(f.read(), version)


# READ README.md for long description on PyPi.
try:
    long_description = open("README.md", encoding="utf-8").read()
except Exception as e:
    sys.stderr.write(f"Failed to read README.md:\n  {e}\n")
    sys.stderr.flush()
    long_description = ""


setuptools.setup(
    name=NAME,
    description="Univariate slice sampling in JAX",
    long_description=long_description,
    version=version["__version__"],
    packages=setuptools.find_packages(include=[NAME, f"{NAME}.*"]),
    python_requires=">=3.9",
    install_requires=[
        "fastprogress>=0.2.0",
        "jax>=0.4.16",
        "jaxlib>=0.4.16",
        "numpy",
        "typing_extensions",
    ],
    extras_require={
        "test": [
            "absl-py",
            "chex",
            "pytest",
        ],
    },
    long_description_content_type="text/markdown",
    keywords="probabilistic bayesian statistics sampling algorithms slice sampling",
    license="Apache License 2.0",
)
