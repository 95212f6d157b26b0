"""Fixed values and environment-derived paths used across the package."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass

VERSION = "0.1"

# Size constraints: 2 GiB.
MIN_OSD_SIZE = 2147483648

CLIENT_CONFIG_GLOBAL_HOST = "*"
BOOTSTRAP_PORT = 7443

# Seconds.
RGW_RESTART_AGE_THRESHOLD = 2

LOOP_SPEC_ID = "loop,"
DEVICE_PATH_PREFIX = "/dev/disk/by-id/"
RGW_SOCK_PATTERN = "client.radosgw.gateway"
CLI_FORCE_PROMPT = (
    "If you understand the *RISK* and you're *ABSOLUTELY CERTAIN* that is what "
    "you want, pass --yes-i-really-mean-it."
)


def _join(*parts: str) -> str:
    """Join path parts, skipping empty ones, and clean the result."""
    present = [part for part in parts if part]
    if not present:
        return ""
    joined = posixpath.normpath("/".join(present))
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined


@dataclass(frozen=True)
class PathConst:
    """Filesystem locations derived from the snap environment."""

    conf_path: str
    run_path: str
    data_path: str
    log_path: str
    root_fs: str
    proc_path: str


def get_path_const() -> PathConst:
    """Build the path set from the current environment."""
    snap_data = os.environ.get("SNAP_DATA", "")
    snap_common = os.environ.get("SNAP_COMMON", "")
    test_root = os.environ.get("TEST_ROOT_PATH", "")
    return PathConst(
        conf_path=_join(snap_data, "conf"),
        run_path=_join(snap_data, "run"),
        data_path=_join(snap_common, "data"),
        log_path=_join(snap_common, "logs"),
        root_fs=_join(test_root, "/"),
        proc_path=_join(test_root, "/proc"),
    )


def get_path_file_mode() -> dict[str, int]:
    """Map each managed directory to the permission bits it should have."""
    paths = get_path_const()
    return {
        paths.conf_path: 0o750,
        paths.run_path: 0o700,
        paths.data_path: 0o700,
        paths.log_path: 0o700,
    }