"""Desktop front end: window, keyboard shortcuts, gamepads and the frame loop."""

import os
import sys
from array import array

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402

from .emulator import Emulator  # noqa: E402
from .input_manager import Button, InputManager  # noqa: E402
from .logger import LogLevel, log_f  # noqa: E402
from .platform import file_name, file_remove_extension  # noqa: E402
from .ppu import SCREEN_HEIGHT, SCREEN_WIDTH  # noqa: E402

try:
    from pygame._sdl2 import controller as _sdl_controller
except ImportError:  # gamepads are optional
    _sdl_controller = None

__all__ = ["Application", "window_title_for", "main", "APP_NAME", "FRAME_RATE"]

APP_NAME = "Famicore"
FRAME_RATE = 60
_BACKGROUND = (15, 15, 15)
_TEXT_COLOR = (255, 255, 255)
_TITLE_COLOR = (0, 128, 255)


def window_title_for(file_path: str) -> str:
    """Window title shown while the given ROM file is loaded."""
    return f"{APP_NAME} - {file_remove_extension(file_name(os.fspath(file_path)))}"


def _gamepad_reader(pad):
    """Build an input-manager reader over a game controller."""
    bindings = (
        (pygame.CONTROLLER_BUTTON_A, Button.A),
        (pygame.CONTROLLER_BUTTON_B, Button.B),
        (pygame.CONTROLLER_BUTTON_Y, Button.SELECT),
        (pygame.CONTROLLER_BUTTON_START, Button.START),
        (pygame.CONTROLLER_BUTTON_DPAD_UP, Button.UP),
        (pygame.CONTROLLER_BUTTON_DPAD_DOWN, Button.DOWN),
        (pygame.CONTROLLER_BUTTON_DPAD_LEFT, Button.LEFT),
        (pygame.CONTROLLER_BUTTON_DPAD_RIGHT, Button.RIGHT),
    )

    def read():
        pressed = [button for code, button in bindings if pad.get_button(code)]
        return (
            pressed,
            pad.get_axis(pygame.CONTROLLER_AXIS_LEFTX),
            pad.get_axis(pygame.CONTROLLER_AXIS_LEFTY),
        )

    return read


class Application:
    """The emulator window and its event loop."""

    def __init__(self):
        self.input_manager = InputManager()
        self.emulator = Emulator(self.input_manager)
        self.window_title = APP_NAME
        self.window_size = (SCREEN_WIDTH * 2, SCREEN_HEIGHT * 2)
        self.fullscreen = False
        self.running = False
        self.exit_requested = False
        self.show_about = False
        self._screen = None
        self._font = None
        self._pads = {}

    # Window state

    def set_window_title(self, title: str) -> None:
        self.window_title = title
        if self._screen is not None:
            pygame.display.set_caption(title)

    def toggle_fullscreen(self) -> None:
        self.fullscreen = not self.fullscreen
        if self._screen is None:
            return
        if self.fullscreen:
            self._screen = pygame.display.set_mode((0, 0), pygame.FULLSCREEN)
        else:
            self._screen = pygame.display.set_mode(self.window_size, pygame.RESIZABLE)

    def popup_open(self) -> bool:
        """True while a dialog is shown; emulation is held meanwhile."""
        return self.exit_requested or self.show_about

    # Cartridge

    def load_rom(self, file_path) -> bool:
        """Load a ROM file and name the window after it."""
        if not self.emulator.load_rom_file(file_path):
            return False
        self.set_window_title(window_title_for(file_path))
        return True

    def power_off(self) -> None:
        self.emulator.power_off()
        self.set_window_title(APP_NAME)

    def open_nes_file(self) -> None:
        path = self._ask_rom_path()
        if path:
            self.load_rom(path)

    @staticmethod
    def _ask_rom_path():
        try:
            import tkinter
            from tkinter import filedialog
        except ImportError:
            log_f(LogLevel.WARNING, "No file dialog available")
            return None
        try:
            root = tkinter.Tk()
        except tkinter.TclError as exc:
            log_f(LogLevel.WARNING, "Cannot open file dialog: %s", exc)
            return None
        root.withdraw()
        try:
            path = filedialog.askopenfilename(
                title="Open", filetypes=[("NES File", "*.nes")]
            )
        finally:
            root.destroy()
        return path or None

    # Input

    def handle_key(self, key: int, mod: int) -> None:
        """React to a key press: dialog answers first, then shortcuts."""
        ctrl = bool(mod & pygame.KMOD_CTRL)

        if self.exit_requested:
            if key in (pygame.K_y, pygame.K_RETURN):
                self.running = False
            elif key in (pygame.K_n, pygame.K_ESCAPE):
                self.exit_requested = False
            return

        if self.show_about:
            if key in (pygame.K_RETURN, pygame.K_ESCAPE):
                self.show_about = False
            return

        if ctrl and key == pygame.K_o:
            self.open_nes_file()
        elif key == pygame.K_ESCAPE:
            if self.fullscreen:
                self.toggle_fullscreen()
        elif ctrl and key == pygame.K_r:
            self.emulator.reset()
        elif ctrl and key == pygame.K_f:
            self.toggle_fullscreen()
        elif ctrl and key == pygame.K_p:
            self.emulator.toggle_pause()
        elif ctrl and key == pygame.K_w:
            if self.emulator.running():
                self.power_off()
        elif key == pygame.K_F1:
            self.show_about = True

    def _process_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.exit_requested = True
            elif event.type == pygame.KEYDOWN:
                self.input_manager.key_down(event.scancode)
                self.handle_key(event.key, event.mod)
            elif event.type == pygame.KEYUP:
                self.input_manager.key_up(event.scancode)
            elif event.type == pygame.VIDEORESIZE:
                if not self.fullscreen:
                    self.window_size = (event.w, event.h)
            elif _sdl_controller is not None and event.type == pygame.CONTROLLERDEVICEADDED:
                self._on_controller_connected(event.device_index)
            elif _sdl_controller is not None and event.type == pygame.CONTROLLERDEVICEREMOVED:
                self._on_controller_disconnected(event.instance_id)

    def _on_controller_connected(self, device_index: int) -> None:
        try:
            pad = _sdl_controller.Controller(device_index)
        except pygame.error as exc:
            log_f(LogLevel.WARNING, "Cannot open game controller: %s", exc)
            return
        instance_id = pad.as_joystick().get_instance_id()
        if instance_id in self._pads:
            pad.quit()
            return
        self._pads[instance_id] = pad
        self.input_manager.connect_controller(instance_id, _gamepad_reader(pad))

    def _on_controller_disconnected(self, instance_id: int) -> None:
        pad = self._pads.pop(instance_id, None)
        if pad is None:
            return
        self.input_manager.disconnect_controller(instance_id)
        pad.quit()

    # Display

    def _init_display(self) -> bool:
        try:
            pygame.init()
            self._screen = pygame.display.set_mode(self.window_size, pygame.RESIZABLE)
        except pygame.error as exc:
            log_f(LogLevel.FATAL, "Display initialisation error: %s", exc)
            return False
        pygame.display.set_caption(self.window_title)
        self._font = pygame.font.Font(None, 22)
        if _sdl_controller is not None:
            _sdl_controller.init()
        return True

    def _shutdown(self) -> None:
        for pad in self._pads.values():
            pad.quit()
        self._pads.clear()
        self._screen = None
        self._font = None
        pygame.quit()

    def _frame_surface(self):
        pixels = array("I", (color | 0xFF000000 for color in self.emulator.screen_buffer()))
        if sys.byteorder == "little":
            pixels.byteswap()
        return pygame.image.frombuffer(pixels.tobytes(), (SCREEN_WIDTH, SCREEN_HEIGHT), "ARGB")

    def _status_text(self) -> str:
        if not self.emulator.running():
            return "Idle"
        return "Paused" if self.emulator.paused() else "Running..."

    def _draw_dialog(self, lines) -> None:
        rendered = [
            self._font.render(text, True, color) for text, color in lines
        ]
        width = max(surface.get_width() for surface in rendered) + 24
        height = sum(surface.get_height() + 6 for surface in rendered) + 18
        screen_w, screen_h = self._screen.get_size()
        box = pygame.Rect((screen_w - width) // 2, (screen_h - height) // 2, width, height)
        pygame.draw.rect(self._screen, (48, 48, 48), box)
        pygame.draw.rect(self._screen, (90, 90, 90), box, 1)
        y = box.top + 12
        for surface in rendered:
            self._screen.blit(surface, (box.left + 12, y))
            y += surface.get_height() + 6

    def _render(self) -> None:
        screen = self._screen
        screen.fill(_BACKGROUND)

        if self.emulator.running():
            frame = self._frame_surface()
            width, height = screen.get_size()
            scale = min(width / SCREEN_WIDTH, height / SCREEN_HEIGHT)
            size = (max(1, int(SCREEN_WIDTH * scale)), max(1, int(SCREEN_HEIGHT * scale)))
            scaled = pygame.transform.scale(frame, size)
            screen.blit(scaled, ((width - size[0]) // 2, (height - size[1]) // 2))

        if not self.fullscreen:
            status = self._font.render(self._status_text(), True, _TEXT_COLOR)
            screen.blit(status, (6, 4))

        if self.exit_requested:
            self._draw_dialog([
                ("Are you sure you want to exit?", _TEXT_COLOR),
                ("Y: Yes    N: No", _TEXT_COLOR),
            ])
        elif self.show_about:
            self._draw_dialog([
                (APP_NAME, _TITLE_COLOR),
                (f"- pygame - {pygame.version.ver}", _TEXT_COLOR),
                ("Ctrl+O open, Ctrl+R reset, Ctrl+P pause", _TEXT_COLOR),
                ("Ctrl+W power off, Ctrl+F full screen", _TEXT_COLOR),
                ("Enter: OK", _TEXT_COLOR),
            ])

        pygame.display.flip()

    # Main loop

    def run(self, argv=None) -> int:
        """Run until the user quits; returns 0, or -1 on a start-up error."""
        args = list(sys.argv if argv is None else argv)
        if len(args) > 1 and not self.emulator.load_rom_file(args[1]):
            return -1

        if not self._init_display():
            pygame.quit()
            return -1

        try:
            self.running = True
            clock = pygame.time.Clock()
            while self.running:
                self._process_events()
                if not self.popup_open():
                    self.emulator.run()
                self._render()
                clock.tick(FRAME_RATE)
        finally:
            self._shutdown()
        return 0


def main(argv=None) -> int:
    return Application().run(argv)


if __name__ == "__main__":
    sys.exit(main())