"""Argument checks and result reporting for disk add and remove requests."""

from __future__ import annotations

import re
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Optional, TextIO

from microceph.constants import LOOP_SPEC_ID

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_CHUNK_RE = re.compile(r"(\d+)")


@dataclass
class DiskReport:
    """Outcome of adding one disk."""

    path: str = ""
    report: str = ""
    error: str = ""


@dataclass
class DiskAddResponse:
    """Outcome of a disk add request."""

    validation_error: str = ""
    reports: list[DiskReport] = field(default_factory=list)


def validate_batch_args(
    args: Sequence[str], wal_device: str = "", db_device: str = ""
) -> None:
    """Raise ValueError if a batch add uses WAL/DB devices or loop specs."""
    if len(args) == 1:
        return
    if wal_device:
        raise ValueError("--wal-device flag is not supported for batch disk addition")
    if db_device:
        raise ValueError("--db-device flag is not supported for batch disk addition")
    for disk_path in args:
        if disk_path.startswith(LOOP_SPEC_ID):
            raise ValueError(
                f"loop spec {disk_path} is not supported as an argument to batch "
                "disk addition, use separately"
            )


def _natural_key(text: str) -> tuple:
    return tuple(
        (0, int(chunk), chunk) if chunk.isdigit() else (1, 0, chunk)
        for chunk in _CHUNK_RE.split(text)
        if chunk
    )


def _render_table(header: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    header = [h.upper() for h in header]
    widths = [len(h) for h in header]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"
    lines = [border]
    lines.append("| " + " | ".join(h.center(w) for h, w in zip(header, widths)) + " |")
    lines.append(border)
    for row in rows:
        lines.append("| " + " | ".join(c.ljust(w) for c, w in zip(row, widths)) + " |")
        lines.append(border)
    return "\n".join(lines) + "\n"


def report_add_disk_failures(
    response: DiskAddResponse, out: Optional[TextIO] = None
) -> None:
    """Print the per-disk results as a table and raise if any disk failed."""
    out = out if out is not None else sys.stdout

    if response.validation_error:
        out.write("Validation Error found\n")
        raise ValueError(response.validation_error)

    if not response.reports:
        return

    failures = [r for r in response.reports if "Failure" in r.report]
    rows = sorted(
        ([r.path, r.report] for r in response.reports),
        key=lambda row: tuple(_natural_key(cell) for cell in row),
    )

    out.write("\n")
    out.write(_render_table(["Path", "Status"], rows))

    if len(failures) == 1:
        raise RuntimeError(failures[-1].error)
    if len(failures) > 1:
        raise RuntimeError(
            f"failed adding multiple ({len(failures)}) disks, please check logs for details"
        )


def _parse_int64(text: str) -> Optional[int]:
    if not _INT_RE.fullmatch(text):
        return None
    number = int(text)
    if not _INT64_MIN <= number <= _INT64_MAX:
        return None
    return number


def parse_osd_id(value: str) -> int:
    """Parse an OSD given as ``$id`` or ``osd.$id``."""
    number = _parse_int64(value)
    if number is not None:
        return number
    if len(value) < 4 or value[:4] != "osd.":
        raise ValueError(
            f"error: osd input must be either in the form $id or osd.$id, got {value}"
        )
    number = _parse_int64(value[4:])
    if number is None:
        raise ValueError(
            f"error: osd input must be either in the form $id or osd.$id: got {value}"
        )
    return number


def validate_remove_flags(confirm_downgrade: bool, prohibit_crush_scaledown: bool) -> None:
    """Raise ValueError if mutually exclusive removal flags are both set."""
    if confirm_downgrade and prohibit_crush_scaledown:
        raise ValueError(
            "bad Request, --confirm-failure-domain-downgrade and "
            "--prohibit-crush-scaledown flags are exclusive to each other"
        )