[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kateda"
version = "0.1.0"
description = "Data availability block layout, erasure coding and reconstruction over the BLS12-381 scalar field"
requires-python = ">=3.10"
dependencies = []
keywords = ["data-availability", "erasure-coding", "fft", "bls12-381", "scale-codec"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kateda"]

[tool.pytest.ini_options]
addopts = "-ra"
