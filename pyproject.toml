[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "plumtree"
version = "0.1.0"
description = "Epidemic broadcast trees (Plumtree) as a sans-I/O protocol state machine, with a vector clock"
requires-python = ">=3.10"
dependencies = []
keywords = ["plumtree", "gossip", "broadcast", "epidemic", "p2p", "vector-clock"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["plumtree"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
