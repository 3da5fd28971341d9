[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lineann"
version = "0.1.0"
description = "Line, block and function annotations for source files, with merging, label propagation and coverage summaries."
requires-python = ">=3.10"
dependencies = []
keywords = ["coverage", "annotation", "profile", "testing", "lines"]
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
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lineann"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
