[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "moonrt"
version = "0.1.0"
description = "Runtime pieces of a small scripting language: lexer, instruction encoding, string patterns and standard libraries"
requires-python = ">=3.10"
dependencies = []
keywords = ["interpreter", "lexer", "patterns", "bytecode", "runtime"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Interpreters",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["moonrt"]

[tool.pytest.ini_options]
addopts = "-ra"
