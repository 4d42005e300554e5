[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "phasefv"
version = "0.1.0"
description = "Finite-volume solver for the phase / angular-velocity density of self-propelled oscillators"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = [
    "finite volume",
    "fokker-planck",
    "kinetic equation",
    "strang splitting",
    "runge-kutta",
    "synchronization",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
phasefv = "phasefv.engine:main"

[tool.hatch.build.targets.wheel]
packages = ["phasefv"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
