"""Cartridge slot: holds the mapper built from a loaded ROM image."""

import os

from .logger import LogLevel, log_f
from .mappers import MapperId, create_mapper
from .nes_rom import MirroringMode, NesRom, NesRomError

__all__ = ["Cartridge"]

_SUPPORTED_MAPPERS = frozenset(member.value for member in MapperId)


class Cartridge:
    """The cartridge slot; empty until a ROM is loaded."""

    def __init__(self):
        self._mapper = None

    def reset(self) -> None:
        """Remove the cartridge from the slot."""
        self._mapper = None

    def load_from_file(self, file_path: str | os.PathLike) -> bool:
        """Load a ROM file; on failure log the reason and keep the slot as it was."""
        try:
            rom = NesRom.from_file(file_path)
        except NesRomError as exc:
            log_f(LogLevel.ERROR, "Error loading file %s: %s", os.fspath(file_path), exc)
            return False
        return self.load_rom(rom)

    def load_rom(self, rom: NesRom) -> bool:
        """Insert an already parsed ROM; fails for mappers that are not supported."""
        mapper_id = rom.mapper_id()
        if mapper_id not in _SUPPORTED_MAPPERS:
            log_f(LogLevel.ERROR, "Unsupported mapper id %d", mapper_id)
            return False
        self._mapper = create_mapper(rom)
        return True

    def loaded(self) -> bool:
        return self._mapper is not None

    def _require_mapper(self):
        if self._mapper is None:
            raise RuntimeError("no cartridge loaded")
        return self._mapper

    def mirroring_mode(self) -> MirroringMode:
        mode = self._require_mapper().mirroring_mode
        return mode() if callable(mode) else mode

    def cpu_read(self, address: int) -> int:
        return self._require_mapper().cpu_read(address)

    def cpu_write(self, address: int, data: int) -> None:
        self._require_mapper().cpu_write(address, data)

    def ppu_read(self, address: int) -> int:
        return self._require_mapper().ppu_read(address)

    def ppu_write(self, address: int, data: int) -> None:
        self._require_mapper().ppu_write(address, data)

    def irq(self) -> bool:
        if self._mapper is None:
            return False
        return bool(self._mapper.irq())

    def irq_clear(self) -> None:
        if self._mapper is not None:
            self._mapper.irq_clear()

    def scanline(self) -> None:
        if self._mapper is not None:
            self._mapper.scanline()