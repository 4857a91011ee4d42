"""Maps keyboard keys and gamepads onto the two NES controller ports."""

from dataclasses import dataclass
from enum import IntFlag
from typing import Callable, Iterable

from .logger import LogLevel, log_f

__all__ = [
    "Button",
    "KeyboardConfig",
    "InputManager",
    "CONTROLLER_COUNT",
    "AXIS_THRESHOLD",
]

CONTROLLER_COUNT = 2
AXIS_THRESHOLD = 8000

GamepadReader = Callable[[], tuple[Iterable[int], int, int]]


class Button(IntFlag):
    """NES controller buttons, in the order the shift register reports them."""

    A = 1 << 0
    B = 1 << 1
    SELECT = 1 << 2
    START = 1 << 3
    UP = 1 << 4
    DOWN = 1 << 5
    LEFT = 1 << 6
    RIGHT = 1 << 7


@dataclass(frozen=True)
class KeyboardConfig:
    """Scancodes bound to each button, one per controller port."""

    key_a: tuple[int, int] = (90, 11)  # keypad 2, H
    key_b: tuple[int, int] = (91, 13)  # keypad 3, J
    key_select: tuple[int, int] = (93, 28)  # keypad 5, Y
    key_start: tuple[int, int] = (94, 24)  # keypad 6, U
    key_up: tuple[int, int] = (82, 26)  # up arrow, W
    key_down: tuple[int, int] = (81, 22)  # down arrow, S
    key_left: tuple[int, int] = (80, 4)  # left arrow, A
    key_right: tuple[int, int] = (79, 7)  # right arrow, D

    def _bindings(self, index: int):
        return (
            (Button.A, self.key_a[index]),
            (Button.B, self.key_b[index]),
            (Button.SELECT, self.key_select[index]),
            (Button.START, self.key_start[index]),
            (Button.UP, self.key_up[index]),
            (Button.DOWN, self.key_down[index]),
            (Button.LEFT, self.key_left[index]),
            (Button.RIGHT, self.key_right[index]),
        )


class InputManager:
    """Tracks pressed keys and connected gamepads.

    A gamepad is given as a reader: a callable returning the pressed
    buttons and the left stick's x and y axes.
    """

    def __init__(self, key_config: KeyboardConfig | None = None):
        self.key_config = key_config or KeyboardConfig()
        self._pressed: set[int] = set()
        self._slots: list[tuple[object, GamepadReader] | None] = [None] * CONTROLLER_COUNT
        self._waiting: dict[object, GamepadReader] = {}

    def key_down(self, scancode: int) -> None:
        self._pressed.add(scancode)

    def key_up(self, scancode: int) -> None:
        self._pressed.discard(scancode)

    def _slot_of(self, controller_id) -> int | None:
        for index, slot in enumerate(self._slots):
            if slot is not None and slot[0] == controller_id:
                return index
        return None

    def connect_controller(self, controller_id, state_reader: GamepadReader) -> int | None:
        """Assign a gamepad to the first free port; return the port or None if all are taken."""
        assigned = self._slot_of(controller_id)
        if assigned is not None:
            return assigned
        free = next((i for i, slot in enumerate(self._slots) if slot is None), None)
        if free is None:
            self._waiting[controller_id] = state_reader
            return None
        self._waiting.pop(controller_id, None)
        self._slots[free] = (controller_id, state_reader)
        return free

    def disconnect_controller(self, controller_id) -> bool:
        """Remove a gamepad; a waiting gamepad takes the port it freed."""
        if controller_id in self._waiting:
            del self._waiting[controller_id]
            return True
        slot = self._slot_of(controller_id)
        if slot is None:
            return False
        self._slots[slot] = None
        if self._waiting:
            next_id = next(iter(self._waiting))
            self.connect_controller(next_id, self._waiting[next_id])
        return True

    def controller_count(self) -> int:
        return sum(slot is not None for slot in self._slots)

    def get_buttons_state(self, index: int) -> int:
        """Return the button bits for a port, from its gamepad or the keyboard."""
        if not 0 <= index < CONTROLLER_COUNT:
            log_f(LogLevel.WARNING, "Invalid controller index %d", index)
            return 0

        value = 0
        slot = self._slots[index]
        if slot is not None:
            buttons, axis_x, axis_y = slot[1]()
            for button in buttons:
                value |= int(button)
            if axis_y < -AXIS_THRESHOLD:
                value |= Button.UP
            if axis_y > AXIS_THRESHOLD:
                value |= Button.DOWN
            if axis_x < -AXIS_THRESHOLD:
                value |= Button.LEFT
            if axis_x > AXIS_THRESHOLD:
                value |= Button.RIGHT
        else:
            for button, scancode in self.key_config._bindings(index):
                if scancode in self._pressed:
                    value |= button
        return int(value) & 0xFF