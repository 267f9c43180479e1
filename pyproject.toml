[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "topicplan"
version = "0.1.0"
description = "Replica placement planning for topic partitions: pickers, assigners, extenders, rebalancers and check reports"
requires-python = ">=3.10"
dependencies = []
keywords = ["topics", "partitions", "replicas", "brokers", "racks", "placement", "rebalancing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
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
packages = ["topicplan"]

[tool.pytest.ini_options]
addopts = "-ra"
