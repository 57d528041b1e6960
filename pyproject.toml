[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "uuvsim"
version = "0.1.0"
description = "Hydrodynamics, buoyancy, actuator dynamics, fin and tether models for simulating unmanned underwater vehicles"
requires-python = ">=3.10"
keywords = [
    "underwater",
    "uuv",
    "auv",
    "rov",
    "hydrodynamics",
    "buoyancy",
    "fin",
    "simulation",
    "fossen",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
    "Topic :: Scientific/Engineering",
]
dependencies = [
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["uuvsim"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
