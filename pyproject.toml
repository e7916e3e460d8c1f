[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tydb"
version = "0.1.0"
description = "A small key/value database server with a length-prefixed TCP protocol, a Raft-style log store and storage utilities"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "key-value", "raft", "log-store", "tcp-server", "sqlite"]
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
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tydb-server = "tydb.server:main"

[tool.hatch.build.targets.wheel]
packages = ["tydb"]

[tool.pytest.ini_options]
addopts = "-ra"
