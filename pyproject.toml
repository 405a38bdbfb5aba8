[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "netmgmt"
version = "0.1.0"
description = "Building blocks for a network management service: activity events and stores, an encrypted SQLite event log, peer update channels, auth bypass paths, WSGI middleware and JWT validation."
requires-python = ">=3.10"
keywords = ["network", "management", "activity-log", "jwt", "jwks", "sqlite", "events"]
classifiers = [
    "Development Status :: 3 - Alpha",
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
    "Topic :: Security",
]
dependencies = [
    "cryptography",
    "pyjwt",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["netmgmt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
