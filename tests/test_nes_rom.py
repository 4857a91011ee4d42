import pytest

from famicore.mappers import MapperId
from famicore.nes_rom import (
    MirroringMode,
    NesFileOpenError,
    NesInvalidRomError,
    NesRom,
    NesRomError,
    NesRomVersion,
    NesUnsupportedError,
)


def make_image(prg_banks=1, chr_banks=1, flags6=0, flags7=0, flags8=0, body=None):
    header = b"NES\x1a" + bytes([prg_banks, chr_banks, flags6, flags7, flags8]) + bytes(7)
    if body is None:
        body = bytes(prg_banks * 0x4000 + chr_banks * 0x2000)
    return header + body


def test_invalid_signature():
    data = bytearray(make_image())
    data[0] = ord("X")
    with pytest.raises(NesInvalidRomError):
        NesRom(bytes(data))


def test_empty_data_is_invalid():
    with pytest.raises(NesInvalidRomError):
        NesRom(b"")


def test_unsupported_version():
    with pytest.raises(NesUnsupportedError):
        NesRom(make_image(flags7=0x04))


def test_errors_share_base_class():
    with pytest.raises(NesRomError):
        NesRom(b"garbage")


def test_default_messages():
    assert str(NesInvalidRomError()) == "Invalid NES rom file"
    assert str(NesUnsupportedError()) == "Unsupported NES rom version"
    assert str(NesFileOpenError()) == "Cannot open file"


def test_ines_version_and_sizes():
    rom = NesRom(make_image(prg_banks=2, chr_banks=1))
    assert rom.version() is NesRomVersion.INES
    assert rom.is_valid()
    assert rom.program_banks() == 2
    assert rom.character_banks() == 1
    assert rom.program_rom_size() == 2 * 0x4000
    assert rom.character_rom_size() == 1 * 0x2000


def test_nes2_version():
    rom = NesRom(make_image(flags7=0x08))
    assert rom.version() is NesRomVersion.NES2


def test_mapper_id_low_nibble():
    rom = NesRom(make_image(flags6=MapperId.MMC3 << 4))
    assert rom.mapper_id() == MapperId.MMC3


def test_mapper_id_high_nibble_from_flags7():
    rom = NesRom(make_image(flags6=0x10, flags7=0x10))
    assert rom.mapper_id() == (0x10 | 0x01)


def test_nes2_mapper_id_uses_extra_bits():
    rom = NesRom(make_image(flags7=0x08, flags8=0x01))
    assert rom.mapper_id() == 0x100


def test_program_ram_size_default():
    assert NesRom(make_image()).program_ram_size() == 0x2000


def test_program_ram_size_from_header():
    assert NesRom(make_image(flags8=3)).program_ram_size() == 3 * 0x2000


@pytest.mark.parametrize(
    "flags6, mode",
    [
        (0x00, MirroringMode.HORIZONTAL),
        (0x01, MirroringMode.VERTICAL),
        (0x08, MirroringMode.FOUR_SCREENS),
        (0x09, MirroringMode.FOUR_SCREENS),
    ],
)
def test_mirroring(flags6, mode):
    assert NesRom(make_image(flags6=flags6)).mirroring_mode() is mode


def test_prg_and_chr_data_round_trip():
    prg = bytes(range(256)) * (0x4000 // 256)
    chr_data = bytes(reversed(range(256))) * (0x2000 // 256)
    rom = NesRom(make_image(body=prg + chr_data))
    assert rom.read_prg_data() == prg
    assert rom.read_chr_data() == chr_data


def test_trainer_is_skipped():
    trainer = b"\xAA" * 512
    prg = b"\x11" * 0x4000
    chr_data = b"\x22" * 0x2000
    rom = NesRom(make_image(flags6=0x04, body=trainer + prg + chr_data))
    assert rom.has_trainer_data()
    assert rom.read_prg_data() == prg
    assert rom.read_chr_data() == chr_data


def test_no_chr_rom():
    rom = NesRom(make_image(chr_banks=0, body=bytes(0x4000)))
    assert rom.character_rom_size() == 0
    assert rom.read_chr_data() == b""


def test_short_image_is_zero_filled():
    rom = NesRom(make_image(body=b"\x01\x02"))
    prg = rom.read_prg_data()
    assert len(prg) == rom.program_rom_size()
    assert prg[:2] == b"\x01\x02"
    assert set(prg[2:]) == {0}


def test_from_file(tmp_path):
    path = tmp_path / "game.nes"
    path.write_bytes(make_image(prg_banks=1, chr_banks=1))
    rom = NesRom.from_file(path)
    assert rom.program_rom_size() == 0x4000


def test_from_missing_file(tmp_path):
    with pytest.raises(NesFileOpenError):
        NesRom.from_file(tmp_path / "missing.nes")