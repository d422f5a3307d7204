[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "blockemu"
version = "0.1.0"
description = "Supervisor-side toolkit for a sharded blockchain emulator: messages, CLPA account partitioning, network simulation and measurement modules"
requires-python = ">=3.10"
dependencies = []
keywords = ["blockchain", "sharding", "emulator", "partitioning", "clpa", "broker", "relay", "tps"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["blockemu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
