#!/usr/bin/env python
"""A setup module for fisher-aggregation."""

from setuptools import find_packages, setup


def get_version():
    with open("fisher_aggregation/__init__.py") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.replace("'", "").replace('"', '').split()[-1]
    raise RuntimeError("Could not find the version string in __init__.py")


# Define constants that describe the package to PyPI
NAME = "fisher-aggregation"
DESCRIPTION = ("Aggregate local features into Fisher Vectors using a "
               "pre-trained diagonal GMM")
with open("README.rst") as f:
    LONG_DESCRIPTION = f.read()
LICENSE = "MIT"

def setup_package():
    setup(
        name=NAME,
        version=get_version(),
        description=DESCRIPTION,
        long_description=LONG_DESCRIPTION,
        license=LICENSE,
        classifiers=[
            "Intended Audience :: Science/Research",
            "Intended Audience :: Developers",
            "License :: OSI Approved :: MIT License",
            "Topic :: Scientific/Engineering",
            "Programming Language :: Python",
            "Programming Language :: Python :: 3",
        ],
        packages=find_packages(exclude=["docs", "tests"]),
        install_requires=["numpy", "scikit-learn", "joblib"],
        extras_require={"test": ["pytest"]}
    )

if __name__ == "__main__":
    setup_package()
