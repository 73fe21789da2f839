[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mqbridge"
version = "0.5.0"
description = "Bridge message envelope, typed properties, configuration loading and streaming histograms for an MQ to NATS bridge"
requires-python = ">=3.10"
dependencies = [
    "msgpack",
]
keywords = ["nats", "mq", "bridge", "messaging", "msgpack", "configuration", "histogram"]
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
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
mqbridge-interchange = "mqbridge.interchange:main"

[tool.hatch.build.targets.wheel]
packages = ["mqbridge"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
