import pytest

from famicore.mappers import (
    MapperCNROM,
    MapperId,
    MapperMMC1,
    MapperMMC3,
    MapperNROM,
    MapperUxROM,
    create_mapper,
)
from famicore.nes_rom import MirroringMode, NesRom, NesUnsupportedError


def make_rom(mapper, prg_banks, chr_banks, prg_bank_size=0x4000, flags6_extra=0):
    """Build a ROM whose PRG and CHR banks are filled with their own index."""
    header = b"NES\x1a" + bytes([prg_banks, chr_banks, (mapper << 4) | flags6_extra, 0, 0]) + bytes(7)
    prg_count = prg_banks * 0x4000 // prg_bank_size
    prg = b"".join(bytes([i]) * prg_bank_size for i in range(prg_count))
    chr_data = b"".join(bytes([i]) * 0x2000 for i in range(chr_banks))
    return NesRom(header + prg + chr_data)


def write_mmc1(mapper, address, value):
    for bit in range(5):
        mapper.cpu_write(address, (value >> bit) & 1)


@pytest.mark.parametrize(
    "mapper_id, prg_banks, chr_banks, cls, last_byte",
    [
        (MapperId.NROM, 1, 1, MapperNROM, 0),
        (MapperId.MMC1, 2, 1, MapperMMC1, 1),
        (MapperId.UXROM, 2, 0, MapperUxROM, 1),
        (MapperId.CNROM, 2, 2, MapperCNROM, 1),
        (MapperId.MMC3, 4, 1, MapperMMC3, 3),
    ],
)
def test_create_mapper_dispatch(mapper_id, prg_banks, chr_banks, cls, last_byte):
    mapper = create_mapper(make_rom(mapper_id, prg_banks, chr_banks))
    assert isinstance(mapper, cls)
    assert mapper.cpu_read(0x8000) == 0
    assert mapper.cpu_read(0xFFFF) == last_byte


def test_create_mapper_unsupported():
    with pytest.raises(NesUnsupportedError):
        create_mapper(make_rom(9, 1, 1))


def test_nrom_16k_is_mirrored():
    mapper = MapperNROM(make_rom(MapperId.NROM, 1, 1, flags6_extra=0x01))
    assert mapper.cpu_read(0x8000) == mapper.cpu_read(0xC000) == 0
    assert mapper.mirroring_mode is MirroringMode.VERTICAL


def test_nrom_32k_layout():
    mapper = MapperNROM(make_rom(MapperId.NROM, 2, 1))
    assert mapper.cpu_read(0x8000) == 0
    assert mapper.cpu_read(0xC000) == 1


def test_nrom_ignores_writes():
    mapper = MapperNROM(make_rom(MapperId.NROM, 1, 1))
    mapper.ppu_write(0x0010, 0x55)
    mapper.cpu_write(0x8000, 0x55)
    assert mapper.ppu_read(0x0010) == 0
    assert mapper.cpu_read(0x8000) == 0


def test_expansion_area_reads_zero():
    mapper = MapperNROM(make_rom(MapperId.NROM, 1, 1))
    assert mapper.cpu_read(0x5000) == 0


def test_uxrom_bank_switch_and_fixed_last_bank():
    mapper = MapperUxROM(make_rom(MapperId.UXROM, 4, 0))
    assert mapper.cpu_read(0x8000) == 0
    assert mapper.cpu_read(0xC000) == 3
    mapper.cpu_write(0x8000, 2)
    assert mapper.cpu_read(0x8000) == 2
    assert mapper.cpu_read(0xC000) == 3


def test_chr_ram_round_trip():
    mapper = MapperUxROM(make_rom(MapperId.UXROM, 2, 0))
    assert mapper.chr_size == 0x2000
    mapper.ppu_write(0x1234, 0xAB)
    assert mapper.ppu_read(0x1234) == 0xAB


def test_cnrom_chr_switch():
    mapper = MapperCNROM(make_rom(MapperId.CNROM, 1, 4))
    assert mapper.ppu_read(0x0000) == 0
    mapper.cpu_write(0x8000, 2)
    assert mapper.ppu_read(0x0000) == 2
    assert mapper.ppu_read(0x1FFF) == 2


def test_cnrom_single_prg_bank_mirrored():
    mapper = MapperCNROM(make_rom(MapperId.CNROM, 1, 1))
    assert mapper.cpu_read(0x8000) == mapper.cpu_read(0xC000)


def test_mmc1_power_on_layout():
    mapper = MapperMMC1(make_rom(MapperId.MMC1, 8, 1))
    assert mapper.cpu_read(0x8000) == 0
    assert mapper.cpu_read(0xC000) == 7


def test_mmc1_prg_bank_select():
    mapper = MapperMMC1(make_rom(MapperId.MMC1, 8, 1))
    write_mmc1(mapper, 0xE000, 2)
    assert mapper.cpu_read(0x8000) == 2
    assert mapper.cpu_read(0xC000) == 7


def test_mmc1_reset_bit_discards_partial_write():
    mapper = MapperMMC1(make_rom(MapperId.MMC1, 8, 1))
    mapper.cpu_write(0xE000, 1)
    mapper.cpu_write(0xE000, 1)
    mapper.cpu_write(0xE000, 0x80)
    write_mmc1(mapper, 0xE000, 3)
    assert mapper.cpu_read(0x8000) == 3


def test_mmc1_mirroring_control():
    mapper = MapperMMC1(make_rom(MapperId.MMC1, 2, 1))
    write_mmc1(mapper, 0x8000, 0b01110)
    assert mapper.mirroring_mode is MirroringMode.VERTICAL
    write_mmc1(mapper, 0x8000, 0b01111)
    assert mapper.mirroring_mode is MirroringMode.HORIZONTAL


def test_mmc1_prg_ram_round_trip():
    mapper = MapperMMC1(make_rom(MapperId.MMC1, 2, 1))
    mapper.cpu_write(0x6010, 0x42)
    assert mapper.cpu_read(0x6010) == 0x42


def test_mmc3_fixed_banks():
    mapper = MapperMMC3(make_rom(MapperId.MMC3, 4, 1, prg_bank_size=0x2000))
    assert mapper.cpu_read(0xE000) == 7
    assert mapper.cpu_read(0xC000) == 6


def test_mmc3_bank_select():
    mapper = MapperMMC3(make_rom(MapperId.MMC3, 4, 1, prg_bank_size=0x2000))
    mapper.cpu_write(0x8000, 6)
    mapper.cpu_write(0x8001, 3)
    assert mapper.cpu_read(0x8000) == 3
    mapper.cpu_write(0x8000, 0x40 | 6)
    assert mapper.cpu_read(0x8000) == 6
    assert mapper.cpu_read(0xC000) == 3


def test_mmc3_mirroring():
    mapper = MapperMMC3(make_rom(MapperId.MMC3, 4, 1))
    assert mapper.mirroring_mode is MirroringMode.HORIZONTAL
    mapper.cpu_write(0xA000, 0)
    assert mapper.mirroring_mode is MirroringMode.VERTICAL
    mapper.cpu_write(0xA000, 1)
    assert mapper.mirroring_mode is MirroringMode.HORIZONTAL


def test_mmc3_irq_counter():
    mapper = MapperMMC3(make_rom(MapperId.MMC3, 4, 1))
    mapper.cpu_write(0xC000, 2)
    mapper.cpu_write(0xE001, 0)
    mapper.scanline()
    mapper.scanline()
    assert mapper.irq() is False
    mapper.scanline()
    assert mapper.irq() is True
    mapper.irq_clear()
    assert mapper.irq() is False


def test_mmc3_irq_disabled():
    mapper = MapperMMC3(make_rom(MapperId.MMC3, 4, 1))
    mapper.cpu_write(0xC000, 1)
    mapper.cpu_write(0xE000, 0)
    for _ in range(5):
        mapper.scanline()
    assert mapper.irq() is False


def test_base_irq_defaults():
    mapper = MapperUxROM(make_rom(MapperId.UXROM, 2, 0))
    mapper.scanline()
    mapper.irq_clear()
    assert mapper.irq() is False