[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rosharbt"
version = "0.1.1"
description = "Event-driven backtesting of trading strategies against recorded top-of-book and depth-of-book market data"
requires-python = ">=3.10"
keywords = [
    "backtesting",
    "trading",
    "order book",
    "market data",
    "simulation",
    "queue position",
    "sharpe ratio",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Investment",
]
dependencies = [
    "matplotlib>=3.5",
    "sortedcontainers>=2.4",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["rosharbt"]

[tool.hatch.build.targets.sdist]
include = [
    "rosharbt",
    "tests",
]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
