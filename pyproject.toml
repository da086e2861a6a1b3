[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "remindkit"
version = "1.0.0"
description = "Cache management, legacy cache migration, cleanup and clipboard image helpers for a reminder tool"
requires-python = ">=3.10"
keywords = ["reminders", "cache", "cleanup", "bitmap", "clipboard", "migration"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Utilities",
]
dependencies = [
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["remindkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
