"""Checks that configured paths exist and are of the expected kind."""

import os
import stat


def _validate_path_exists(path: str, want_dir: bool) -> str:
    if not path:
        raise ValueError("path is not specified")

    abs_path = os.path.abspath(path)
    try:
        mode = os.stat(abs_path).st_mode
    except FileNotFoundError as exc:
        raise FileNotFoundError(f"the path [{abs_path}] doesn't exist") from exc
    except OSError as exc:
        raise FileNotFoundError(f"the path [{abs_path}] can't be read: {exc}") from exc

    if want_dir and stat.S_ISREG(mode):
        raise NotADirectoryError(f"the path [{abs_path}] is not a directory")
    if not want_dir and stat.S_ISDIR(mode):
        raise IsADirectoryError(f"the path [{abs_path}] is not a file")
    return abs_path


def validate_dir_path(path: str) -> str:
    """Return the absolute form of path, which must exist and be a directory."""
    return _validate_path_exists(path, True)


def validate_file_path(path: str) -> str:
    """Return the absolute form of path, which must exist and not be a directory."""
    return _validate_path_exists(path, False)