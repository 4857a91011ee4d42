from famicore.platform import file_name, file_remove_extension, file_size


def test_file_size_matches_written_bytes(tmp_path):
    path = tmp_path / "data.bin"
    payload = b"\x00\x01\x02\x03\x04\x05\x06"
    path.write_bytes(payload)
    assert file_size(str(path)) == len(payload)


def test_file_size_of_empty_file(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    assert file_size(path) == 0


def test_file_name_with_forward_slashes():
    assert file_name("roms/classics/game.nes") == "game.nes"


def test_file_name_with_backslashes():
    assert file_name("C:\\roms\\game.nes") == "game.nes"


def test_file_name_mixed_separators():
    assert file_name("roms\\sub/other.nes") == "other.nes"


def test_file_name_without_separator():
    assert file_name("game.nes") == "game.nes"


def test_remove_extension():
    assert file_remove_extension("game.nes") == "game"


def test_remove_only_last_extension():
    assert file_remove_extension("game.v1.nes") == "game.v1"


def test_hidden_name_kept():
    assert file_remove_extension(".hidden") == ".hidden"


def test_name_without_extension_kept():
    assert file_remove_extension("game") == "game"


def test_round_trip_title():
    path = "some/dir/Adventure.nes"
    assert file_remove_extension(file_name(path)) == "Adventure"