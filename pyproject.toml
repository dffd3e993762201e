[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "syntaxkit"
version = "0.1.0"
description = "Load, link and query Sublime Text style syntax definitions and scope selectors"
requires-python = ">=3.10"
keywords = ["syntax", "sublime-syntax", "scopes", "scope-selectors", "textmate"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Text Processing :: Markup",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pyyaml",
    "regex",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["syntaxkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
