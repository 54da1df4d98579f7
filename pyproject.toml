[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "procinfo"
version = "0.1.0"
description = "Parsers for Linux /proc, /sys and configfs kernel statistics"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "procfs",
    "sysfs",
    "configfs",
    "linux",
    "metrics",
    "monitoring",
    "mdstat",
    "nfs",
    "bcache",
    "iscsi",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["procinfo"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
