[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "optchains"
version = "0.1.0"
description = "Build and inspect listed option chains from consolidated bid/ask quotes, with put-call parity, yield curves and CSV tables"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "options",
    "option chain",
    "put-call parity",
    "yield curve",
    "market data",
    "csv",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Financial and Insurance Industry",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["optchains"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
