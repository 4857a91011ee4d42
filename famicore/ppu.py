"""Picture processing unit: background and sprite rendering, registers and VRAM."""

from enum import IntEnum

__all__ = ["PPURegister", "PPU", "reverse_byte", "PALETTE", "SCREEN_WIDTH", "SCREEN_HEIGHT"]

SCREEN_WIDTH = 256
SCREEN_HEIGHT = 240

PALETTE = (
    0x666666, 0x002A88, 0x1412A7, 0x3B00A4, 0x5C007E, 0x6E0040, 0x6C0600, 0x561D00,
    0x333500, 0x0B4800, 0x005200, 0x004F08, 0x00404D, 0x000000, 0x000000, 0x000000,
    0xADADAD, 0x155FD9, 0x4240FF, 0x7527FE, 0xA01ACC, 0xB71E7B, 0xB53120, 0x994E00,
    0x6B6D00, 0x388700, 0x0C9300, 0x008F32, 0x007C8D, 0x000000, 0x000000, 0x000000,
    0xFFFEFF, 0x64B0FF, 0x9290FF, 0xC676FF, 0xF36AFF, 0xFE6ECC, 0xFE8170, 0xEA9E22,
    0xBCBE00, 0x88D800, 0x5CE430, 0x45E082, 0x48CDDE, 0x4F4F4F, 0x000000, 0x000000,
    0xFFFEFF, 0xC0DFFF, 0xD3D2FF, 0xE8C8FF, 0xFBC2FF, 0xFEC4EA, 0xFECCC5, 0xF7D8A5,
    0xE4E594, 0xCFEF96, 0xBDF4AB, 0xB3F3CC, 0xB5EBF2, 0xB8B8B8, 0x000000, 0x000000,
)

# Control register bits
_CTRL_NAMETABLE = 0x03
_CTRL_INCREMENT = 0x04
_CTRL_SPRITE_TABLE = 0x08
_CTRL_BACKGROUND_TABLE = 0x10
_CTRL_SPRITE_SIZE = 0x20
_CTRL_NMI_ENABLED = 0x80

# Mask register bits
_MASK_BACKGROUND_LEFT = 0x02
_MASK_SPRITES_LEFT = 0x04
_MASK_RENDER_BACKGROUND = 0x08
_MASK_RENDER_SPRITES = 0x10

# Status register bits
_STATUS_SPRITE_OVERFLOW = 0x20
_STATUS_SPRITE_ZERO_HIT = 0x40
_STATUS_VERTICAL_BLANK = 0x80

# Sprite attribute bits
_SPRITE_FLIP_HORIZONTAL = 0x40
_SPRITE_FLIP_VERTICAL = 0x80


class PPURegister(IntEnum):
    """CPU-visible PPU registers, selected by the low three address bits."""

    CONTROL = 0
    MASK = 1
    STATUS = 2
    OAM_ADDRESS = 3
    OAM_DATA = 4
    SCROLL = 5
    ADDRESS = 6
    DATA = 7


def reverse_byte(byte: int) -> int:
    """Return the byte with its bit order reversed."""
    byte &= 0xFF
    value = 0
    for _ in range(8):
        value = (value << 1) | (byte & 1)
        byte >>= 1
    return value


class _LoopyAddress:
    """A 15-bit VRAM address split into scroll fields."""

    __slots__ = ("value",)

    def __init__(self, value: int = 0):
        self.value = value & 0xFFFF

    def _field(self, shift: int, mask: int) -> int:
        return (self.value >> shift) & mask

    def _set_field(self, shift: int, mask: int, data: int) -> None:
        self.value = ((self.value & ~(mask << shift)) | ((data & mask) << shift)) & 0xFFFF

    @property
    def coarse_x(self) -> int:
        return self._field(0, 0x1F)

    @coarse_x.setter
    def coarse_x(self, data: int) -> None:
        self._set_field(0, 0x1F, data)

    @property
    def coarse_y(self) -> int:
        return self._field(5, 0x1F)

    @coarse_y.setter
    def coarse_y(self, data: int) -> None:
        self._set_field(5, 0x1F, data)

    @property
    def nametable(self) -> int:
        return self._field(10, 0x03)

    @nametable.setter
    def nametable(self, data: int) -> None:
        self._set_field(10, 0x03, data)

    @property
    def fine_y(self) -> int:
        return self._field(12, 0x07)

    @fine_y.setter
    def fine_y(self, data: int) -> None:
        self._set_field(12, 0x07, data)


class PPU:
    """The picture processing unit, drawing into a 256x240 RGB frame buffer."""

    SCREEN_WIDTH = SCREEN_WIDTH
    SCREEN_HEIGHT = SCREEN_HEIGHT

    def __init__(self, cartridge):
        self._cartridge = cartridge
        self._video_ram = bytearray(0x1000)
        self._sprite_pattern_low = [0] * 8
        self._sprite_pattern_high = [0] * 8
        self.reset()

    def reset(self) -> None:
        self._control = 0
        self._mask = 0
        self._status = 0
        self._vram_address = _LoopyAddress()
        self._tram_address = _LoopyAddress()
        self._fine_x = 0
        self._cycle = 0
        self._scanline = 0
        self._data_buffer = 0
        self._offset = False
        self._nmi = False

        self._bg_nametable = 0
        self._bg_attribute = 0
        self._bg_byte_low = 0
        self._bg_byte_high = 0

        self._bg_pattern_low = 0
        self._bg_pattern_high = 0
        self._bg_attribute_low = 0
        self._bg_attribute_high = 0

        self._oam_address = 0
        self._sprite_count = 0
        self._sprite_zero_hit_possible = False

        self._frame_rendered = False
        self._frame_odd = False

        self._palette_ram = bytearray(b"\xff" * 32)
        self._oam = bytearray(b"\xff" * 256)
        self._oam_scanline = [[0xFF, 0xFF, 0xFF, 0xFF] for _ in range(8)]
        self._frame_buffer = [0xFFFFFFFF] * (SCREEN_WIDTH * SCREEN_HEIGHT)

    # Accessors

    def cycle(self) -> int:
        return self._cycle

    def scanline(self) -> int:
        return self._scanline

    def frame_start(self) -> None:
        self._frame_rendered = False

    def frame_rendered(self) -> bool:
        return self._frame_rendered

    def frame_buffer(self) -> list[int]:
        """The frame buffer, row-major, one 0xRRGGBB value per pixel."""
        return self._frame_buffer

    def nmi(self) -> bool:
        return bool(self._control & _CTRL_NMI_ENABLED) and self._nmi

    def nmi_clear(self) -> None:
        self._nmi = False

    def control(self) -> int:
        return self._control

    def mask(self) -> int:
        return self._mask

    def status(self) -> int:
        return self._status

    def oam(self) -> bytes:
        return bytes(self._oam)

    # Clock

    def tick(self) -> None:
        """Advance the PPU by one dot."""
        if self._scanline < 240:
            if self._is_rendering():
                self._render_cycle()
            if self._cycle < 256:
                self._render_pixel()
        elif self._scanline == 241 and self._cycle == 1:
            self._status |= _STATUS_VERTICAL_BLANK
            self._nmi = True
        elif self._scanline == 261:
            if self._is_rendering():
                self._render_cycle()

            if self._cycle == 1:
                self._status &= ~(_STATUS_VERTICAL_BLANK | _STATUS_SPRITE_ZERO_HIT) & 0xFF
                self._nmi = False
                self._clear_sprite_shifter()
            elif 279 < self._cycle < 305:
                if self._is_rendering():
                    self._address_transfer_y()
            elif (
                self._cycle == 340
                and self._frame_odd
                and self._mask & _MASK_RENDER_BACKGROUND
            ):
                self._cycle = 1
                self._scanline = 0
                self._frame_rendered = True
                self._frame_odd = not self._frame_odd
                return

        if self._is_rendering() and self._scanline < 241 and self._cycle == 260:
            self._cartridge.scanline()

        self._cycle += 1
        if self._cycle > 340:
            self._cycle = 0
            self._scanline += 1
            if self._scanline > 261:
                self._scanline = 0
                self._frame_rendered = True
                self._frame_odd = not self._frame_odd

    # CPU interface

    def read(self, address: int) -> int:
        data = 0
        reg = address & 0x7

        if reg == PPURegister.STATUS:
            data = (self._status & 0xE0) | (self._data_buffer & 0x1F)
            self._status &= ~_STATUS_VERTICAL_BLANK & 0xFF
            self._nmi = False
            self._offset = False
        elif reg == PPURegister.OAM_DATA:
            data = self._oam[self._oam_address]
        elif reg == PPURegister.DATA:
            data = self._data_buffer
            self._data_buffer = self._video_bus_read(self._vram_address.value)
            if self._vram_address.value > 0x3EFF:
                data = self._data_buffer
            self._increment_vram_address()

        return data

    def write(self, address: int, data: int) -> None:
        data &= 0xFF
        reg = address & 0x7

        if reg == PPURegister.CONTROL:
            self._control = data
            self._tram_address.nametable = data & _CTRL_NAMETABLE
        elif reg == PPURegister.MASK:
            self._mask = data
        elif reg == PPURegister.OAM_ADDRESS:
            self._oam_address = data
        elif reg == PPURegister.OAM_DATA:
            self._oam[self._oam_address] = data
            self._oam_address = (self._oam_address + 1) & 0xFF
        elif reg == PPURegister.SCROLL:
            if not self._offset:
                self._tram_address.coarse_x = (data >> 3) & 0x1F
                self._fine_x = data & 0x7
            else:
                self._tram_address.coarse_y = (data >> 3) & 0x1F
                self._tram_address.fine_y = data & 0x7
            self._offset = not self._offset
        elif reg == PPURegister.ADDRESS:
            if not self._offset:
                self._tram_address.value = (self._tram_address.value & 0x00FF) | (
                    (data & 0x3F) << 8
                )
            else:
                self._tram_address.value = (self._tram_address.value & 0xFF00) | data
                self._vram_address = _LoopyAddress(self._tram_address.value)
            self._offset = not self._offset
        elif reg == PPURegister.DATA:
            self._video_bus_write(self._vram_address.value, data)
            self._increment_vram_address()

    # Video bus

    def _increment_vram_address(self) -> None:
        step = 32 if self._control & _CTRL_INCREMENT else 1
        self._vram_address.value = (self._vram_address.value + step) & 0xFFFF

    def _nametable_mirror(self, address: int) -> int:
        # Deferred import keeps this module free of the ROM parser at load time.
        from .nes_rom import MirroringMode

        mode = self._cartridge.mirroring_mode()
        if mode is MirroringMode.HORIZONTAL:
            return ((address // 2) & 0x400) + (address % 0x400)
        if mode is MirroringMode.VERTICAL:
            return address % 0x800
        return (address - 0x2000) % len(self._video_ram)

    def _video_bus_read(self, address: int) -> int:
        if address < 0x2000:
            return self._cartridge.ppu_read(address)
        if address < 0x3F00:
            return self._video_ram[self._nametable_mirror(address)]
        palette_address = (address - 0x3F00) & 0x1F
        if palette_address % 4 == 0:
            palette_address = 0
        return self._palette_ram[palette_address]

    def _video_bus_write(self, address: int, data: int) -> None:
        if address < 0x2000:
            self._cartridge.ppu_write(address, data)
        elif address < 0x3F00:
            self._video_ram[self._nametable_mirror(address)] = data
        else:
            palette_address = (address - 0x3F00) & 0x1F
            if palette_address > 0x0F and palette_address % 4 == 0:
                palette_address -= 0x10
            self._palette_ram[palette_address] = data

    def _read_color_from_palette(self, pixel: int, palette: int) -> int:
        address = palette * 4 + pixel
        if address > 0x0F and address % 4 == 0:
            address -= 0x10
        return PALETTE[self._palette_ram[address] & 0x3F]

    # Scrolling

    def _is_rendering(self) -> bool:
        return bool(self._mask & (_MASK_RENDER_BACKGROUND | _MASK_RENDER_SPRITES))

    def _address_transfer_x(self) -> None:
        v, t = self._vram_address, self._tram_address
        v.coarse_x = t.coarse_x
        v.nametable = (v.nametable & 2) | (t.nametable & 1)

    def _address_transfer_y(self) -> None:
        v, t = self._vram_address, self._tram_address
        v.coarse_y = t.coarse_y
        v.fine_y = t.fine_y
        v.nametable = (v.nametable & 1) | (t.nametable & 2)

    def _scroll_horizontal(self) -> None:
        v = self._vram_address
        v.coarse_x = v.coarse_x + 1
        if v.coarse_x == 0:
            v.nametable = v.nametable ^ 1

    def _scroll_vertical(self) -> None:
        v = self._vram_address
        v.fine_y = v.fine_y + 1
        if v.fine_y == 0:
            v.coarse_y = v.coarse_y + 1
            if v.coarse_y == 30:
                v.coarse_y = 0
                v.nametable = v.nametable ^ 2

    # Shifters

    def _load_background_shifter(self) -> None:
        self._bg_pattern_low = (self._bg_pattern_low & 0xFF00) | self._bg_byte_low
        self._bg_pattern_high = (self._bg_pattern_high & 0xFF00) | self._bg_byte_high
        self._bg_attribute_low = (self._bg_attribute_low & 0xFF00) | (
            0xFF if self._bg_attribute & 1 else 0
        )
        self._bg_attribute_high = (self._bg_attribute_high & 0xFF00) | (
            0xFF if self._bg_attribute & 2 else 0
        )

    def _update_background_shifter(self) -> None:
        self._bg_pattern_low = (self._bg_pattern_low << 1) & 0xFFFF
        self._bg_pattern_high = (self._bg_pattern_high << 1) & 0xFFFF
        self._bg_attribute_low = (self._bg_attribute_low << 1) & 0xFFFF
        self._bg_attribute_high = (self._bg_attribute_high << 1) & 0xFFFF

    def _update_sprite_shifter(self) -> None:
        for i, sprite in enumerate(self._oam_scanline[: self._sprite_count]):
            if sprite[3] > 0:
                sprite[3] -= 1
            else:
                self._sprite_pattern_low[i] = (self._sprite_pattern_low[i] << 1) & 0xFF
                self._sprite_pattern_high[i] = (self._sprite_pattern_high[i] << 1) & 0xFF

    def _clear_sprite_shifter(self) -> None:
        self._sprite_pattern_low = [0] * 8
        self._sprite_pattern_high = [0] * 8

    def _update_sprites(self) -> None:
        if self._scanline == 261:
            return

        self._oam_scanline = [[0xFF, 0xFF, 0xFF, 0xFF] for _ in range(8)]
        self._sprite_count = 0
        self._status &= ~_STATUS_SPRITE_OVERFLOW & 0xFF
        self._sprite_zero_hit_possible = False

        sprite_height = 16 if self._control & _CTRL_SPRITE_SIZE else 8

        for i in range(0, 256, 4):
            y, sprite_id, attribute, x = self._oam[i:i + 4]
            sprite_row = self._scanline - y
            if not (self._sprite_count < 9 and 0 <= sprite_row < sprite_height):
                continue

            if self._sprite_count == 8:
                self._status |= _STATUS_SPRITE_OVERFLOW
                break

            if i == 0:
                self._sprite_zero_hit_possible = True

            if attribute & _SPRITE_FLIP_VERTICAL:
                sprite_row = sprite_height - 1 - sprite_row

            pattern_table = 1 if self._control & _CTRL_SPRITE_TABLE else 0
            tile_index = sprite_id
            if sprite_height == 16:
                pattern_table = sprite_id & 1
                tile_index = sprite_id & 0xFE
                if sprite_row > 7:
                    tile_index += 1
                sprite_row &= 0x07

            sprite_address = ((pattern_table << 12) | (tile_index * 16) | sprite_row) & 0xFFFF
            data_low = self._video_bus_read(sprite_address)
            data_high = self._video_bus_read((sprite_address + 8) & 0xFFFF)

            if attribute & _SPRITE_FLIP_HORIZONTAL:
                data_low = reverse_byte(data_low)
                data_high = reverse_byte(data_high)

            self._sprite_pattern_low[self._sprite_count] = data_low
            self._sprite_pattern_high[self._sprite_count] = data_high
            self._oam_scanline[self._sprite_count] = [y, sprite_id, attribute, x]
            self._sprite_count += 1

    def _sprite_zero_hit(self, spr_pixel: int, bg_pixel: int) -> None:
        both_left = (self._mask & _MASK_BACKGROUND_LEFT) and (self._mask & _MASK_SPRITES_LEFT)
        if (
            self._sprite_zero_hit_possible
            and spr_pixel > 0
            and bg_pixel > 0
            and (self._cycle > 7 or both_left)
            and self._cycle > 1
            and self._cycle != 255
        ):
            self._status |= _STATUS_SPRITE_ZERO_HIT

    # Rendering

    def _background_pattern_address(self) -> int:
        table = 1 if self._control & _CTRL_BACKGROUND_TABLE else 0
        return (table << 12) | (self._bg_nametable << 4) | self._vram_address.fine_y

    def _render_cycle(self) -> None:
        cycle = self._cycle
        if 1 < cycle < 258 or 321 < cycle < 338:
            if self._mask & _MASK_RENDER_BACKGROUND:
                self._update_background_shifter()

        if cycle > 0 and (cycle < 256 or cycle > 320) and cycle < 337:
            if self._mask & _MASK_RENDER_SPRITES and cycle < 256:
                self._update_sprite_shifter()

            step = (cycle - 1) % 8
            v = self._vram_address
            if step == 0:
                self._load_background_shifter()
                self._bg_nametable = self._video_bus_read(0x2000 | (v.value & 0x0FFF))
            elif step == 2:
                attribute = self._video_bus_read(
                    0x23C0
                    | (v.value & 0x0C00)
                    | ((v.value >> 4) & 0x38)
                    | ((v.value >> 2) & 0x07)
                )
                if v.coarse_y & 2:
                    attribute >>= 4
                if v.coarse_x & 2:
                    attribute >>= 2
                self._bg_attribute = attribute & 3
            elif step == 4:
                self._bg_byte_low = self._video_bus_read(self._background_pattern_address())
            elif step == 6:
                self._bg_byte_high = self._video_bus_read(
                    self._background_pattern_address() | 0x8
                )
            elif step == 7:
                self._scroll_horizontal()
        elif cycle == 256:
            self._scroll_vertical()
        elif cycle == 257:
            self._address_transfer_x()
            self._update_sprites()
        elif cycle in (337, 339):
            self._bg_nametable = self._video_bus_read(
                0x2000 | (self._vram_address.value & 0x0FFF)
            )

    def _render_pixel(self) -> None:
        bg_pixel = bg_palette = 0
        spr_pixel = spr_palette = spr_priority = 0

        if self._mask & _MASK_RENDER_BACKGROUND:
            bit = 15 - self._fine_x
            bg_pixel = ((self._bg_pattern_low >> bit) & 1) | (
                ((self._bg_pattern_high >> bit) & 1) << 1
            )
            bg_palette = ((self._bg_attribute_low >> bit) & 1) | (
                ((self._bg_attribute_high >> bit) & 1) << 1
            )

        if self._cycle < 8 and not self._mask & _MASK_BACKGROUND_LEFT:
            bg_pixel = bg_palette = 0

        if self._mask & _MASK_RENDER_SPRITES:
            for i, sprite in enumerate(self._oam_scanline[: self._sprite_count]):
                if sprite[3] == 0:
                    low = (self._sprite_pattern_low[i] >> 7) & 1
                    high = (self._sprite_pattern_high[i] >> 7) & 1
                    spr_pixel = (high << 1) | low
                    spr_palette = (sprite[2] & 0x3) + 4
                    spr_priority = (sprite[2] >> 5) & 1

                if i == 0:
                    self._sprite_zero_hit(spr_pixel, bg_pixel)

                if spr_pixel != 0:
                    break

        if self._cycle < 8 and not self._mask & _MASK_SPRITES_LEFT:
            spr_pixel = spr_palette = 0

        if spr_pixel == 0 and bg_pixel == 0:
            pixel = palette = 0
        elif spr_pixel > 0 and (spr_priority == 0 or bg_pixel == 0):
            pixel, palette = spr_pixel, spr_palette
        else:
            pixel, palette = bg_pixel, bg_palette

        color = self._read_color_from_palette(pixel, palette)
        self._frame_buffer[self._scanline * SCREEN_WIDTH + self._cycle] = color