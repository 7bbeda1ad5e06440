[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cvsfastimport"
version = "0.1.0"
description = "Parse RCS ,v files, detect CVS patchsets and keep incremental import state for Git."
requires-python = ">=3.10"
dependencies = []
keywords = ["cvs", "rcs", "git", "patchset", "migration", "version-control"]
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
    "Topic :: Software Development :: Version Control :: Git",
    "Topic :: Software Development :: Version Control :: CVS",
    "Topic :: Software Development :: Version Control :: RCS",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["cvsfastimport"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
