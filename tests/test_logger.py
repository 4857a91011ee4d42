import pytest

from famicore.logger import LogLevel, format_message, log_f


def test_format_with_arguments():
    line = format_message(LogLevel.WARNING, "Invalid controller index %u", 3)
    assert line == "[WARNING]: Invalid controller index 3\n"


def test_format_hex_argument():
    line = format_message(LogLevel.ERROR, "CPU: halt! opcode: %02X", 0x2)
    assert line == "[ERROR]: CPU: halt! opcode: 02\n"


def test_format_without_arguments_keeps_percent():
    line = format_message(LogLevel.INFO, "100%")
    assert line == "[INFO]: 100%\n"


@pytest.mark.parametrize("level", list(LogLevel))
def test_prefix_names_level(level):
    assert format_message(level, "x").startswith(f"[{level.name}]: ")


def test_long_message_is_truncated():
    line = format_message(LogLevel.INFO, "%s", "a" * 5000)
    body = line[len("[INFO]: "):-1]
    assert len(body) == 1023


@pytest.mark.parametrize(
    "level, to_stderr",
    [
        (LogLevel.INFO, False),
        (LogLevel.WARNING, False),
        (LogLevel.ERROR, True),
        (LogLevel.FATAL, True),
    ],
)
def test_levels_from_error_upwards_go_to_stderr(capsys, level, to_stderr):
    log_f(level, "message")
    captured = capsys.readouterr()
    expected = f"[{level.name}]: message\n"
    if to_stderr:
        assert (captured.out, captured.err) == ("", expected)
    else:
        assert (captured.out, captured.err) == (expected, "")


def test_info_goes_to_stdout(capsys):
    log_f(LogLevel.INFO, "loaded %s", "game")
    captured = capsys.readouterr()
    assert captured.out == "[INFO]: loaded game\n"
    assert captured.err == ""


def test_error_goes_to_stderr(capsys):
    log_f(LogLevel.FATAL, "failed %d", 7)
    captured = capsys.readouterr()
    assert captured.err == "[FATAL]: failed 7\n"
    assert captured.out == ""