[build-system]
requires = ["setuptools>=61.0"]
build-backend = "setuptools.build_meta"

[project]
name = "binscan"
version = "0.1.0"
description = "Heuristic scanner that flags unsafe calls, heap overflows and command injection in objdump disassembly"
requires-python = ">=3.10"
dependencies = []
keywords = ["security", "binary-analysis", "objdump", "vulnerability", "static-analysis"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Information Technology",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
binscan = "binscan.cli:main"
binscan-dump = "binscan.dump_ins:main"

[tool.setuptools.packages.find]
include = ["binscan*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
