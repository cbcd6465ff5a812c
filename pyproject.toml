[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "flowwallet"
version = "0.1.0"
description = "Core of a custodial Flow blockchain wallet service: configuration, background jobs, SQLite storage, key encryption and chain event polling"
requires-python = ">=3.10"
keywords = ["flow", "blockchain", "wallet", "custody", "jobs", "sqlite"]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "cryptography",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["flowwallet"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
