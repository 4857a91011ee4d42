"""Cartridge memory mappers: NROM, MMC1, UxROM, CNROM and MMC3."""

from abc import ABC, abstractmethod
from enum import IntEnum

from .nes_rom import MirroringMode, NesRom, NesUnsupportedError

__all__ = [
    "MapperId",
    "Mapper",
    "MapperNROM",
    "MapperMMC1",
    "MapperUxROM",
    "MapperCNROM",
    "MapperMMC3",
    "create_mapper",
]

MAX_PRG_BANK_COUNT = 4
MAX_CHR_BANK_COUNT = 8


class MapperId(IntEnum):
    """Mapper numbers that are supported."""

    NROM = 0
    MMC1 = 1
    UXROM = 2
    CNROM = 3
    MMC3 = 4


class Mapper(ABC):
    """Shared PRG/CHR banking for all mappers."""

    def __init__(self, rom: NesRom):
        self.mapper_id = rom.mapper_id()
        self.prg_banks = rom.program_banks()
        self.prg_size = rom.program_rom_size()
        self.prg_ram_size = rom.program_ram_size()
        self.chr_banks = rom.character_banks()
        self.chr_size = rom.character_rom_size()
        self.mirroring_mode = rom.mirroring_mode()

        self.prg_mapping = [0] * MAX_PRG_BANK_COUNT
        self.chr_mapping = [0] * MAX_CHR_BANK_COUNT

        self.prg_ram = bytearray(self.prg_ram_size)
        self.prg_rom = bytearray(rom.read_prg_data())
        if self.chr_size == 0:
            self.chr_size = 0x2000
            self.chr_mem = bytearray(self.chr_size)
        else:
            self.chr_mem = bytearray(rom.read_chr_data())

    def cpu_read(self, address: int) -> int:
        if address < 0x6000:
            return 0x00  # expansion ROM is not supported
        if address < 0x8000:
            return self.prg_ram[address - 0x6000]
        offset = address - 0x8000
        return self.prg_rom[self.prg_mapping[offset // 0x2000] + offset % 0x2000]

    @abstractmethod
    def cpu_write(self, address: int, data: int) -> None:
        """Handle a CPU write into cartridge space."""

    def ppu_read(self, address: int) -> int:
        return self.chr_mem[self.chr_mapping[address // 0x400] + address % 0x400]

    @abstractmethod
    def ppu_write(self, address: int, data: int) -> None:
        """Handle a PPU write into pattern memory."""

    def irq(self) -> bool:
        return False

    def irq_clear(self) -> None:
        pass

    def scanline(self) -> None:
        pass

    def _write_prg_ram(self, address: int, data: int) -> None:
        if 0x6000 <= address < 0x8000:
            self.prg_ram[address - 0x6000] = data & 0xFF

    def map_prg(self, size_kb: int, slot: int, bank: int) -> None:
        """Map a PRG bank of ``size_kb`` KiB into ``slot``; negative banks count from the end."""
        bank &= 0xFFFF
        parts = size_kb // 8
        for i in range(parts):
            self.prg_mapping[parts * slot + i] = (
                (size_kb * 0x400 * bank + 0x2000 * i) & 0xFFFFFFFF
            ) % self.prg_size

    def map_chr(self, size_kb: int, slot: int, bank: int) -> None:
        """Map a CHR bank of ``size_kb`` KiB into ``slot``."""
        bank &= 0xFFFF
        for i in range(size_kb):
            self.chr_mapping[size_kb * slot + i] = (
                (size_kb * 0x400 * bank + 0x400 * i) & 0xFFFFFFFF
            ) % self.chr_size


class MapperNROM(Mapper):
    """Mapper 0: fixed banks, no registers."""

    def __init__(self, rom: NesRom):
        super().__init__(rom)
        self.map_prg(32, 0, 0)
        self.map_chr(8, 0, 0)

    def cpu_write(self, address: int, data: int) -> None:
        pass

    def ppu_write(self, address: int, data: int) -> None:
        pass


class MapperMMC1(Mapper):
    """Mapper 1: serial-loaded control registers."""

    def __init__(self, rom: NesRom):
        super().__init__(rom)
        self._shift_register = 0
        self._count = 0
        self._registers = [0x0C, 0x00, 0x00, 0x00]
        self._configure()

    def cpu_write(self, address: int, data: int) -> None:
        if address < 0x8000:
            self._write_prg_ram(address, data)
            return

        if data & 0x80:
            self._count = 0
            self._shift_register = 0
            self._registers[0] |= 0x0C
            self._configure()
            return

        self._shift_register = ((data & 1) << 4) | (self._shift_register >> 1)
        self._count += 1
        if self._count == 5:
            self._registers[(address >> 13) & 0b11] = self._shift_register
            self._count = 0
            self._shift_register = 0
            self._configure()

    def ppu_write(self, address: int, data: int) -> None:
        self.chr_mem[address] = data & 0xFF

    def _configure(self) -> None:
        control, chr0, chr1, prg = self._registers
        if control & 0b1000:
            if control & 0b100:
                self.map_prg(16, 0, prg & 0xF)
                self.map_prg(16, 1, 0xF)
            else:
                self.map_prg(16, 0, 0)
                self.map_prg(16, 1, prg & 0xF)
        else:
            self.map_prg(32, 0, (prg & 0xF) >> 1)

        if control & 0b10000:
            self.map_chr(4, 0, chr0)
            self.map_chr(4, 1, chr1)
        else:
            self.map_chr(8, 0, chr0 >> 1)

        mode = control & 0b11
        if mode == 2:
            self.mirroring_mode = MirroringMode.VERTICAL
        elif mode == 3:
            self.mirroring_mode = MirroringMode.HORIZONTAL


class MapperUxROM(Mapper):
    """Mapper 2: switchable low PRG bank, fixed last bank."""

    def __init__(self, rom: NesRom):
        super().__init__(rom)
        self._register = 0
        self._configure()

    def cpu_write(self, address: int, data: int) -> None:
        if address & 0x8000:
            self._register = data & 0xFF
            self._configure()

    def ppu_write(self, address: int, data: int) -> None:
        self.chr_mem[address] = data & 0xFF

    def _configure(self) -> None:
        self.map_prg(16, 0, self._register & 0xF)
        self.map_prg(16, 1, 0xF)
        self.map_chr(8, 0, 0)


class MapperCNROM(Mapper):
    """Mapper 3: switchable 8 KiB CHR bank."""

    def __init__(self, rom: NesRom):
        super().__init__(rom)
        self._register = 0
        self._configure()

    def cpu_write(self, address: int, data: int) -> None:
        if address & 0x8000:
            self._register = data & 0xFF
            self._configure()

    def ppu_write(self, address: int, data: int) -> None:
        self.chr_mem[address] = data & 0xFF

    def _configure(self) -> None:
        self.map_prg(16, 0, 0)
        self.map_prg(16, 1, 0 if self.prg_banks == 1 else 1)
        self.map_chr(8, 0, self._register & 0b11)


class MapperMMC3(Mapper):
    """Mapper 4: fine-grained banking and a scanline IRQ counter."""

    def __init__(self, rom: NesRom):
        super().__init__(rom)
        self._target = 0
        self._registers = [0] * 8
        self._irq_time = 0
        self._irq_count = 0
        self._irq_enabled = False
        self._irq_pending = False
        self._horizontal_mirroring = True
        self.map_prg(8, 3, -1)
        self._configure()

    def cpu_write(self, address: int, data: int) -> None:
        if address < 0x8000:
            self._write_prg_ram(address, data)
            return

        data &= 0xFF
        match address & 0xE001:
            case 0x8000:
                self._target = data
            case 0x8001:
                self._registers[self._target & 0b111] = data
            case 0xA000:
                self._horizontal_mirroring = bool(data & 1)
            case 0xC000:
                self._irq_time = data
            case 0xC001:
                self._irq_count = 0
            case 0xE000:
                self._irq_pending = False
                self._irq_enabled = False
            case 0xE001:
                self._irq_enabled = True
        self._configure()

    def ppu_write(self, address: int, data: int) -> None:
        self.chr_mem[address] = data & 0xFF

    def irq(self) -> bool:
        return self._irq_pending

    def irq_clear(self) -> None:
        self._irq_pending = False

    def scanline(self) -> None:
        if self._irq_count == 0:
            self._irq_count = self._irq_time
        else:
            self._irq_count -= 1
        if self._irq_enabled and self._irq_count == 0:
            self._irq_pending = True

    def _configure(self) -> None:
        regs = self._registers
        self.map_prg(8, 1, regs[7])

        if not self._target & (1 << 6):
            self.map_prg(8, 0, regs[6])
            self.map_prg(8, 2, -2)
        else:
            self.map_prg(8, 0, -2)
            self.map_prg(8, 2, regs[6])

        if not self._target & (1 << 7):
            self.map_chr(2, 0, regs[0] >> 1)
            self.map_chr(2, 1, regs[1] >> 1)
            for i, bank in enumerate(regs[2:6]):
                self.map_chr(1, 4 + i, bank)
        else:
            for i, bank in enumerate(regs[2:6]):
                self.map_chr(1, i, bank)
            self.map_chr(2, 2, regs[0] >> 1)
            self.map_chr(2, 3, regs[1] >> 1)

        self.mirroring_mode = (
            MirroringMode.HORIZONTAL if self._horizontal_mirroring else MirroringMode.VERTICAL
        )


_MAPPERS = {
    MapperId.NROM: MapperNROM,
    MapperId.MMC1: MapperMMC1,
    MapperId.UXROM: MapperUxROM,
    MapperId.CNROM: MapperCNROM,
    MapperId.MMC3: MapperMMC3,
}


def create_mapper(rom: NesRom) -> Mapper:
    """Build the mapper that the ROM header asks for."""
    mapper_id = rom.mapper_id()
    try:
        mapper_class = _MAPPERS[MapperId(mapper_id)]
    except ValueError:
        raise NesUnsupportedError(f"Unsupported mapper id {mapper_id}") from None
    return mapper_class(rom)