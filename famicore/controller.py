"""The two serial controller ports at $4016 and $4017."""

from .input_manager import CONTROLLER_COUNT
from .logger import LogLevel, log_f

__all__ = ["Controller"]


class Controller:
    """Shift registers latched from the input manager while strobe is high."""

    def __init__(self, input_manager):
        self._input_manager = input_manager
        self._registers = [0] * CONTROLLER_COUNT
        self._strobe = False

    def read(self, index: int) -> int:
        """Return the next button bit of a port, with the open-bus bit 6 set."""
        if not 0 <= index < CONTROLLER_COUNT:
            log_f(LogLevel.WARNING, "Invalid controller index %d", index)
            return 0

        if self._strobe:
            return 0x40 | (self._input_manager.get_buttons_state(index) & 0x1)

        value = 0x40 | (self._registers[index] & 0x1)
        self._registers[index] = 0x80 | (self._registers[index] >> 1)
        return value

    def write(self, data: int) -> None:
        """Set the strobe; its falling edge latches the current button states."""
        if self._strobe and not data & 0x1:
            self._registers = [
                self._input_manager.get_buttons_state(i) for i in range(CONTROLLER_COUNT)
            ]
        self._strobe = bool(data & 0x1)