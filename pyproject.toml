[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mesisim"
version = "0.1.0"
description = "Trace-driven simulator of quad-core L1 caches kept coherent with the MESI protocol over a snooping bus"
requires-python = ">=3.10"
dependencies = []
keywords = ["cache", "mesi", "coherence", "simulator", "l1", "snooping bus"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
l1simulate = "mesisim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mesisim"]

[tool.pytest.ini_options]
addopts = "-ra"
