"""An NES emulator: 6502 CPU, PPU, controllers, cartridge mappers and a pygame window."""

__version__ = "0.1.0"