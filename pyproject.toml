[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "genemu"
version = "0.1.0"
description = "Core of a Sega Mega Drive / Genesis emulator: ROM loading, memory maps and the VDP"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "sega", "genesis", "mega drive", "vdp", "z80", "m68k"]
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
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["genemu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
