[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pmtypes"
version = "0.0.2"
description = "Polymorphic message types: typed scalars, vectors, strings and maps with a compact binary and base64 wire format"
requires-python = ">=3.10"
dependencies = []
keywords = ["pmt", "polymorphic", "serialization", "message", "variant", "base64"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
pmtypes-bench = "pmtypes.bench:main"

[tool.hatch.build.targets.wheel]
packages = ["pmtypes"]

[tool.hatch.build.targets.sdist]
include = ["pmtypes", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
