"""Records of the Ceph disks (OSDs) attached to each cluster member."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional

from microceph.db import ConflictError, Database, NotFoundError

_SELECT = (
    "SELECT disks.id, internal_cluster_members.name AS member, disks.path"
    " FROM disks"
    " JOIN internal_cluster_members ON disks.member_id = internal_cluster_members.id"
)
_ORDER = " ORDER BY internal_cluster_members.id, disks.path"

_MEMBER_ID = (
    "(SELECT internal_cluster_members.id FROM internal_cluster_members"
    " WHERE internal_cluster_members.name = ?)"
)

_MEMBERS_DISK_COUNT = (
    "SELECT internal_cluster_members.name AS member, count(disks.id) AS num_disks"
    " FROM disks"
    " JOIN internal_cluster_members ON disks.member_id = internal_cluster_members.id"
    "{where}"
    " GROUP BY internal_cluster_members.id"
    " ORDER BY internal_cluster_members.id"
)


@dataclass
class Disk:
    """A disk on a particular cluster member; its id is the OSD number."""

    member: str = ""
    path: str = ""
    id: int = 0


@dataclass(frozen=True)
class DiskFilter:
    """Selects disks by member, or by member and path."""

    member: Optional[str] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class MemberDisk:
    """How many disks a member holds."""

    member: str
    num_disks: int


@dataclass(frozen=True)
class OSDRecord:
    """An OSD as reported to clients: its number, host and device path."""

    osd: int
    location: str
    path: str


def _clause(flt: DiskFilter) -> tuple[str, list[str]]:
    if flt.member is not None and flt.path is not None:
        return (
            "( internal_cluster_members.name = ? AND disks.path = ? )",
            [flt.member, flt.path],
        )
    if flt.member is not None:
        return "( internal_cluster_members.name = ? )", [flt.member]
    if flt.path is None:
        raise ValueError("Cannot filter on empty DiskFilter")
    raise ValueError("No statement exists for the given Filter")


def get_disks(conn: sqlite3.Connection, *filters: DiskFilter) -> list[Disk]:
    """Return disks ordered by member then path; several filters are ORed."""
    args: list[str] = []
    clauses: list[str] = []
    for flt in filters:
        clause, clause_args = _clause(flt)
        clauses.append(clause)
        args.extend(clause_args)

    sql = _SELECT
    if clauses:
        sql += " WHERE " + " OR ".join(clauses)
    sql += _ORDER

    return [
        Disk(id=row_id, member=member, path=path)
        for row_id, member, path in conn.execute(sql, args)
    ]


def get_disk(conn: sqlite3.Connection, member: str, path: str) -> Disk:
    """Return the disk at ``path`` on ``member``."""
    objects = get_disks(conn, DiskFilter(member=member, path=path))
    if not objects:
        raise NotFoundError("Disk not found")
    if len(objects) > 1:
        raise RuntimeError('More than one "disks" entry matches')
    return objects[0]


def get_disk_id(conn: sqlite3.Connection, member: str, path: str) -> int:
    """Return the row id (OSD number) of the disk at ``path`` on ``member``."""
    row = conn.execute(
        "SELECT disks.id FROM disks"
        " JOIN internal_cluster_members ON disks.member_id = internal_cluster_members.id"
        " WHERE internal_cluster_members.name = ? AND disks.path = ?",
        (member, path),
    ).fetchone()
    if row is None:
        raise NotFoundError("Disk not found")
    return row[0]


def disk_exists(conn: sqlite3.Connection, member: str, path: str) -> bool:
    """Tell whether a disk at ``path`` exists on ``member``."""
    try:
        get_disk_id(conn, member, path)
    except NotFoundError:
        return False
    return True


def create_disk(conn: sqlite3.Connection, item: Disk) -> int:
    """Insert ``item`` and return its new id."""
    if disk_exists(conn, item.member, item.path):
        raise ConflictError('This "disks" entry already exists')
    cursor = conn.execute(
        f"INSERT INTO disks (member_id, path) VALUES ({_MEMBER_ID}, ?)",
        (item.member, item.path),
    )
    return cursor.lastrowid


def delete_disk(conn: sqlite3.Connection, member: str, path: str) -> None:
    """Delete the disk at ``path`` on ``member``."""
    cursor = conn.execute(
        f"DELETE FROM disks WHERE member_id = {_MEMBER_ID} AND path = ?",
        (member, path),
    )
    if cursor.rowcount == 0:
        raise NotFoundError("Disk not found")
    if cursor.rowcount > 1:
        raise RuntimeError(f"Query deleted {cursor.rowcount} Disk rows instead of 1")


def delete_disks(conn: sqlite3.Connection, member: str) -> None:
    """Delete every disk on ``member``."""
    conn.execute(f"DELETE FROM disks WHERE member_id = {_MEMBER_ID}", (member,))


def update_disk(conn: sqlite3.Connection, member: str, path: str, item: Disk) -> None:
    """Replace the member and path of the disk stored at ``path`` on ``member``."""
    row_id = get_disk_id(conn, member, path)
    cursor = conn.execute(
        f"UPDATE disks SET member_id = {_MEMBER_ID}, path = ? WHERE id = ?",
        (item.member, item.path, row_id),
    )
    if cursor.rowcount != 1:
        raise RuntimeError(f"Query updated {cursor.rowcount} rows instead of 1")


def members_disk_count(conn: sqlite3.Connection, exclude: int) -> list[MemberDisk]:
    """Count disks per member holding any; ``exclude`` (unless -1) is left out."""
    if exclude == -1:
        rows = conn.execute(_MEMBERS_DISK_COUNT.format(where=""))
    else:
        rows = conn.execute(
            _MEMBERS_DISK_COUNT.format(where=" WHERE disks.id != ?"), (exclude,)
        )
    return [MemberDisk(member=member, num_disks=count) for member, count in rows]


class MemberCounter:
    """Counts cluster members that hold at least one disk."""

    def count(self, db: Database) -> int:
        """Return the number of members with at least one disk."""
        with db.transaction() as conn:
            return len(members_disk_count(conn, -1))

    def count_exclude(self, db: Database, exclude: int) -> int:
        """Return the number of members with a disk other than OSD ``exclude``."""
        with db.transaction() as conn:
            return len(members_disk_count(conn, exclude))


class OSDQuery:
    """Queries on OSD records by OSD number."""

    def have_osd(self, db: Database, osd: int) -> bool:
        """Tell whether OSD ``osd`` is recorded."""
        with db.transaction() as conn:
            (present,) = conn.execute(
                "SELECT count(*) FROM disks WHERE disks.id = ?", (osd,)
            ).fetchone()
        return present > 0

    def path(self, db: Database, osd: int) -> str:
        """Return the device path of OSD ``osd``."""
        with db.transaction() as conn:
            row = conn.execute(
                "SELECT disks.path FROM disks WHERE disks.id = ?", (osd,)
            ).fetchone()
        if row is None:
            raise NotFoundError(f'Failed to get "osdPath" objects: no OSD {osd}')
        return row[0]

    def delete(self, db: Database, member: str, osd: int) -> None:
        """Delete the record of OSD ``osd`` held by ``member``."""
        path = self.path(db, osd)
        with db.transaction() as conn:
            delete_disk(conn, member, path)

    def list(self, db: Database) -> list[OSDRecord]:
        """Return every OSD record."""
        with db.transaction() as conn:
            records = get_disks(conn)
        return [
            OSDRecord(osd=disk.id, location=disk.member, path=disk.path)
            for disk in records
        ]

    def update_path(self, db: Database, osd: int, path: str) -> None:
        """Set the device path of OSD ``osd``."""
        with db.transaction() as conn:
            conn.execute("UPDATE disks SET path = ? WHERE disks.id = ?", (path, osd))