# famicore

An emulator for the Nintendo Entertainment System. It emulates the 6502 CPU
(including the common unofficial opcodes), the picture processing unit, the
two standard controllers and the cartridge mappers NROM (0), MMC1 (1),
UxROM (2), CNROM (3) and MMC3 (4). ROM images in the iNES and NES 2.0
formats are read.

## Installation

```
pip install .
```

## Running

Open the emulator window, optionally loading a ROM image right away:

```
famicore path/to/game.nes
```

If the ROM given on the command line cannot be loaded, the command logs the
reason and exits without opening a window.

Keyboard shortcuts:

| Keys     | Action                                   |
|----------|------------------------------------------|
| Ctrl+O   | Open a ROM file (uses a Tk file dialog)  |
| Ctrl+R   | Reset the console                        |
| Ctrl+P   | Pause or resume                          |
| Ctrl+W   | Power off (unload the cartridge)         |
| Ctrl+F   | Toggle full screen                       |
| Esc      | Leave full screen                        |
| F1       | Show the about box (Enter or Esc closes) |

Closing the window asks for confirmation: Y or Enter quits, N or Esc stays.
Emulation is held while a dialog is shown. Outside full screen, the top-left
corner shows the state: `Idle`, `Running...` or `Paused`.

Default controller keys:

| Button | Player 1 | Player 2 |
|--------|----------|----------|
| A      | Keypad 2 | H        |
| B      | Keypad 3 | J        |
| Select | Keypad 5 | Y        |
| Start  | Keypad 6 | U        |
| D-pad  | Arrows   | W A S D  |

Game controllers, where pygame supports them, are given the first free port
when connected; a port with a game controller ignores its keyboard keys. The
left stick works as the D-pad.

## Using the core as a library

The emulation core does not need a window:

```python
from famicore.input_manager import InputManager
from famicore.emulator import Emulator

emulator = Emulator(InputManager())
if emulator.load_rom_file("game.nes"):
    emulator.run()                     # emulate one video frame
    pixels = emulator.screen_buffer()  # 256 * 240 values, 0xRRGGBB, row by row
```

`Emulator.load_rom_file` returns `False` and logs the reason when the file
cannot be loaded. Input is fed through `InputManager.key_down(scancode)` and
`InputManager.key_up(scancode)`, using the scancodes in `KeyboardConfig`, or
through `InputManager.connect_controller(controller_id, state_reader)`, where
the reader returns the pressed `Button` values and the left stick's x and y.

ROM headers can be inspected with `famicore.nes_rom.NesRom`:

```python
from famicore.nes_rom import NesRom

rom = NesRom.from_file("game.nes")
print(rom.mapper_id(), rom.program_rom_size(), rom.mirroring_mode())
```

`NesRom.from_file` raises `NesFileOpenError` when the file cannot be read;
`NesRom(data)` raises `NesInvalidRomError` for a bad header and
`NesUnsupportedError` for an unknown header version. All three derive from
`NesRomError`.

Other building blocks: `famicore.cpu.CPU`, `famicore.ppu.PPU`,
`famicore.mappers.create_mapper`, `famicore.cartridge.Cartridge`,
`famicore.system_bus.SystemBus` and `famicore.opcodes.decode`, which returns
the mnemonic, addressing mode, length and base cycle count of an opcode.

## What it does not do

- There is no sound: the audio unit is not emulated, writes to its registers
  are ignored and reads from them return 0.
- Cartridge RAM is not saved to disk, and there are no save states.
- Controller keys cannot be changed from the window; pass a different
  `KeyboardConfig` to `InputManager` when using the core as a library.

## Tests

```
pip install .[test]
pytest
```