"""Checks on block devices: mounted, or in use by an OSD."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from microceph.constants import get_path_const

log = logging.getLogger(__name__)

_OSD_LINKS = ("block", "block.wal", "block.db")


def _resolve(path: str) -> str:
    """Fully resolve symlinks; raise FileNotFoundError if the path is missing."""
    return str(Path(path).resolve(strict=True))


def is_mounted(device: str) -> bool:
    """Tell whether ``device`` appears as a source in the mounts table."""
    paths = get_path_const()
    resolved = _resolve(os.path.join(paths.root_fs, device.lstrip("/")))
    with open(os.path.join(paths.proc_path, "mounts"), encoding="utf-8") as mounts:
        for line in mounts:
            parts = line.split()
            if parts and parts[0] == resolved:
                return True
    return False


def is_ceph_device(device: str) -> bool:
    """Tell whether ``device`` backs the data, WAL or DB of any local OSD."""
    try:
        resolved = _resolve(device)
    except OSError as err:
        log.error("failed to resolve device path: %s", err)
        raise

    base_dir = os.path.join(get_path_const().data_path, "osd")
    try:
        entries = sorted(os.scandir(base_dir), key=lambda e: e.name)
    except OSError as err:
        log.debug("couldn't read osd data dir %s: %s", base_dir, err)
        return False

    for entry in entries:
        if not entry.is_dir(follow_symlinks=False) or not entry.name.startswith("ceph-"):
            continue
        for link_name in _OSD_LINKS:
            link_path = os.path.join(base_dir, entry.name, link_name)
            try:
                target = _resolve(link_path)
            except FileNotFoundError:
                continue
            except OSError as err:
                log.error("failed to resolve symlink %s: %s", link_path, err)
                raise
            if target == resolved:
                log.debug("device %s is used as %s for OSD %s", device, link_name, entry.name)
                return True

    log.debug("device %s is not used as WAL or DB device for any OSD", device)
    return False