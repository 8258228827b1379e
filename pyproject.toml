[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "itchbook"
version = "0.1.0"
description = "Price-level order book fed by ITCH 5.0 style messages through a bounded byte FIFO"
requires-python = ">=3.10"
keywords = ["orderbook", "itch", "market-data", "trading", "fifo"]
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
    "sortedcontainers",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
itchbook = "itchbook.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["itchbook"]

[tool.pytest.ini_options]
addopts = "-ra"
