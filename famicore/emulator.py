"""The console: wires CPU, PPU, cartridge and controllers together and runs frames."""

import os

from .cartridge import Cartridge
from .controller import Controller
from .cpu import CPU
from .ppu import PPU
from .system_bus import SystemBus

__all__ = ["Emulator"]


class Emulator:
    """A whole console, driven one video frame at a time."""

    def __init__(self, input_manager):
        self.input_manager = input_manager
        self.cartridge = Cartridge()
        self.ppu = PPU(self.cartridge)
        self.controller = Controller(input_manager)
        self.bus = SystemBus(self.ppu, self.cartridge, self.controller)
        self.cpu = CPU(self.bus)
        self.bus.set_cpu(self.cpu)
        self._paused = False

    def reset(self) -> None:
        """Reset the console; does nothing when no cartridge is loaded."""
        if not self.cartridge.loaded():
            return
        self._paused = False
        self.ppu.reset()
        self.cpu.reset()

    def power_off(self) -> None:
        self.cartridge.reset()

    def run(self) -> None:
        """Emulate until the PPU has finished one frame."""
        if not self.cartridge.loaded() or self._paused:
            return

        ppu, cpu, cartridge = self.ppu, self.cpu, self.cartridge
        ppu.frame_start()
        while not ppu.frame_rendered():
            # The PPU runs three dots per CPU cycle.
            ppu.tick()
            ppu.tick()
            ppu.tick()
            cpu.tick()

            if ppu.nmi():
                cpu.nmi()
                ppu.nmi_clear()

            if cartridge.irq():
                cpu.irq()
                cartridge.irq_clear()

    def load_rom_file(self, file_path: str | os.PathLike) -> bool:
        if not self.cartridge.load_from_file(file_path):
            return False
        self.reset()
        return True

    def running(self) -> bool:
        return self.cartridge.loaded()

    def paused(self) -> bool:
        return self._paused

    def toggle_pause(self) -> None:
        if self.cartridge.loaded():
            self._paused = not self._paused

    def screen_buffer(self) -> list[int]:
        return self.ppu.frame_buffer()