[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rvpipesim"
version = "0.1.0"
description = "Cycle-by-cycle simulator of a five-stage RISC-V pipeline, with or without data forwarding"
requires-python = ">=3.10"
dependencies = []
keywords = ["risc-v", "pipeline", "simulator", "hazards", "forwarding", "computer-architecture"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rvpipesim = "rvpipesim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rvpipesim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
