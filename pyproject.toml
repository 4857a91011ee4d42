[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "famicore"
version = "0.1.0"
description = "An NES emulator: 6502 CPU, PPU, cartridge mappers and a pygame window"
requires-python = ">=3.10"
keywords = ["nes", "famicom", "emulator", "6502", "ppu", "mapper", "ines"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
    "Topic :: Games/Entertainment",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
famicore = "famicore.application:main"

[tool.hatch.build.targets.wheel]
packages = ["famicore"]

[tool.pytest.ini_options]
addopts = "-ra"
