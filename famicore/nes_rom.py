"""Parsing of iNES and NES 2.0 ROM images."""

from enum import Enum
import os

__all__ = [
    "MirroringMode",
    "NesRomVersion",
    "NesRomError",
    "NesFileOpenError",
    "NesInvalidRomError",
    "NesUnsupportedError",
    "NesRom",
]

HEADER_SIZE = 16
TRAINER_SIZE = 512
SIGNATURE = b"NES\x1a"


class MirroringMode(Enum):
    """Nametable mirroring arrangement."""

    HORIZONTAL = 0
    VERTICAL = 1
    FOUR_SCREENS = 2


class NesRomVersion(Enum):
    """Header format of a ROM image."""

    INES = 0
    NES2 = 1
    UNSUPPORTED = 2


class NesRomError(RuntimeError):
    """Base class for ROM loading errors."""


class NesFileOpenError(NesRomError):
    def __init__(self, message: str = "Cannot open file"):
        super().__init__(message)


class NesInvalidRomError(NesRomError):
    def __init__(self, message: str = "Invalid NES rom file"):
        super().__init__(message)


class NesUnsupportedError(NesRomError):
    def __init__(self, message: str = "Unsupported NES rom version"):
        super().__init__(message)


class NesRom:
    """A ROM image held in memory, with accessors for its header fields."""

    def __init__(self, data: bytes):
        self._data = bytes(data)
        if not self.is_valid():
            raise NesInvalidRomError()
        if self.version() is NesRomVersion.UNSUPPORTED:
            raise NesUnsupportedError()

    @classmethod
    def from_file(cls, file_path: str | os.PathLike) -> "NesRom":
        """Read and parse a ROM image from disk."""
        try:
            with open(file_path, "rb") as stream:
                data = stream.read()
        except OSError as exc:
            raise NesFileOpenError() from exc
        return cls(data)

    def _flags(self, n: int) -> int:
        return self._data[6 + n]

    def is_valid(self) -> bool:
        return len(self._data) >= HEADER_SIZE and self._data[:4] == SIGNATURE

    def has_trainer_data(self) -> bool:
        return bool(self._flags(0) & 0x04)

    def version(self) -> NesRomVersion:
        kind = self._flags(1) & 0x0C
        if kind == 0x08:
            return NesRomVersion.NES2
        if kind == 0x00:
            return NesRomVersion.INES
        return NesRomVersion.UNSUPPORTED

    def mapper_id(self) -> int:
        version = self.version()
        base = (self._flags(1) & 0xF0) | (self._flags(0) >> 4)
        if version is NesRomVersion.INES:
            return base
        if version is NesRomVersion.NES2:
            return ((self._flags(2) & 0x0F) << 8) | base
        return 0xFFFF

    def program_banks(self) -> int:
        return self._data[4]

    def character_banks(self) -> int:
        return self._data[5]

    def program_rom_size(self) -> int:
        version = self.version()
        if version is NesRomVersion.INES:
            return self.program_banks() * 0x4000
        if version is NesRomVersion.NES2:
            return (((self._flags(2) & 0x07) << 8) | self.program_banks()) * 0x4000
        return 0

    def program_ram_size(self) -> int:
        banks = self._flags(2)
        return banks * 0x2000 if banks else 0x2000

    def character_rom_size(self) -> int:
        version = self.version()
        if version is NesRomVersion.INES:
            return self.character_banks() * 0x2000
        if version is NesRomVersion.NES2:
            return (((self._flags(2) & 0x38) << 8) | self.character_banks()) * 0x2000
        return 0

    def mirroring_mode(self) -> MirroringMode:
        flags = self._flags(0)
        if flags & 0x08:
            return MirroringMode.FOUR_SCREENS
        if flags & 0x01:
            return MirroringMode.VERTICAL
        return MirroringMode.HORIZONTAL

    def _prg_offset(self) -> int:
        return HEADER_SIZE + (TRAINER_SIZE if self.has_trainer_data() else 0)

    def _slice(self, offset: int, size: int) -> bytes:
        return self._data[offset:offset + size].ljust(size, b"\x00")

    def read_prg_data(self) -> bytes:
        """Return the program ROM, zero-filled if the image is short."""
        return self._slice(self._prg_offset(), self.program_rom_size())

    def read_chr_data(self) -> bytes:
        """Return the character ROM, or empty bytes if there is none."""
        size = self.character_rom_size()
        if size == 0:
            return b""
        return self._slice(self._prg_offset() + self.program_rom_size(), size)