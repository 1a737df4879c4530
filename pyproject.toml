[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "parlang"
version = "0.1.0"
description = "Parser and bytecode emitter for a small dependency-graph language: tokens, expression trees and bytecode"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "parser", "ast", "bytecode", "language"]
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
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["parlang"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
