"""The CPU address space: RAM, PPU registers, I/O ports and cartridge."""

__all__ = ["SystemBus"]

_RAM_SIZE = 0x800
_OAM_DATA_PORT = 0x2004


class SystemBus:
    """Routes CPU reads and writes to the device that owns each address."""

    def __init__(self, ppu, cartridge, controller):
        self._ram = bytearray(_RAM_SIZE)
        self._cpu = None
        self._ppu = ppu
        self._cartridge = cartridge
        self._controller = controller

    def set_cpu(self, cpu) -> None:
        self._cpu = cpu

    def read(self, address: int) -> int:
        if address < 0x2000:
            return self._ram[address & 0x7FF]
        if address < 0x4000:
            return self._ppu.read(address)
        if address < 0x4016:
            return 0  # audio registers are write-only here
        if address < 0x4020:
            if address == 0x4016:
                return self._controller.read(0)
            if address == 0x4017:
                return self._controller.read(1)
            return 0
        return self._cartridge.cpu_read(address)

    def write(self, address: int, data: int) -> None:
        data &= 0xFF
        if address < 0x2000:
            self._ram[address & 0x7FF] = data
        elif address < 0x4000:
            self._ppu.write(address, data)
        elif address < 0x4020:
            if address == 0x4014:
                self._oam_dma(data)
            elif address == 0x4016:
                self._controller.write(data)
            # other addresses belong to the audio unit, which is not emulated
        else:
            self._cartridge.cpu_write(address, data)

    def _oam_dma(self, page: int) -> None:
        if self._cpu is None:
            raise RuntimeError("OAM DMA requires a CPU attached to the bus")
        self._cpu.dma()
        base = 0x100 * page
        for offset in range(256):
            self.write(_OAM_DATA_PORT, self.read(base + offset))