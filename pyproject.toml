[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "csafutil"
version = "0.1.0"
description = "Helpers for tools that fetch, check and publish CSAF security advisories"
requires-python = ">=3.11"
keywords = [
    "csaf",
    "security advisories",
    "jsonpath",
    "checksums",
    "http client",
    "rate limiting",
    "time range",
    "toml configuration",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "requests",
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["csafutil"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
