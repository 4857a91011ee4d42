"""Small file-system helpers used when loading ROM images."""

import os

__all__ = ["file_size", "file_name", "file_remove_extension"]


def file_size(file_path: str | os.PathLike) -> int:
    """Return the size of a file in bytes."""
    return os.path.getsize(file_path)


def file_name(path: str) -> str:
    """Return the last component of a path, accepting both separator styles."""
    cut = max(path.rfind("/"), path.rfind("\\"))
    return path[cut + 1:]


def file_remove_extension(file_name: str) -> str:
    """Strip the last extension; names starting with a dot are kept whole."""
    dot = file_name.rfind(".")
    if dot > 0:
        return file_name[:dot]
    return file_name