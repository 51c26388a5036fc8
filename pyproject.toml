[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "s3stress"
version = "0.1.0"
description = "Object storage benchmark toolkit: synthetic data sources, operation recording and throughput analysis"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = [
    "benchmark",
    "s3",
    "object-storage",
    "throughput",
    "latency",
    "load-testing",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["s3stress"]

[tool.hatch.build.targets.sdist]
include = [
    "s3stress",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
