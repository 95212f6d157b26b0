"""Small file helpers."""

from __future__ import annotations

import fnmatch
import logging
import os
import time

log = logging.getLogger(__name__)


def filter_files_in_dir(substring: str, path: str) -> list[str]:
    """Return, sorted, the paths starting with ``path`` whose name holds ``substring``."""
    pattern = path + f"*{substring}*"
    directory, name_pattern = os.path.split(pattern)
    try:
        names = os.listdir(directory or ".")
    except OSError:
        return []
    try:
        return sorted(
            os.path.join(directory, name)
            for name in names
            if fnmatch.fnmatchcase(name, name_pattern)
        )
    except Exception:  # malformed pattern
        log.error("failure finding files {%s} at path {%s}", substring, path)
        return []


def get_file_age(path: str) -> float:
    """Return seconds since the file was created, or 0 when that is unknown."""
    try:
        st = os.stat(path)
    except OSError as err:
        log.error("%s", err)
        return 0.0

    birth = getattr(st, "st_birthtime", None)
    if birth is None:
        log.warning("File %s has no birth time.", path)
        return 0.0

    return time.time() - birth