"""Records of the Ceph client configuration, per cluster member."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional

from microceph.db import ConflictError, NotFoundError

_SELECT = (
    "SELECT client_config.id, internal_cluster_members.name AS host,"
    " client_config.key, client_config.value"
    " FROM client_config"
    " JOIN internal_cluster_members"
    " ON client_config.member_id = internal_cluster_members.id"
)
_ORDER = " ORDER BY internal_cluster_members.id, client_config.key"

_MEMBER_ID = (
    "(SELECT internal_cluster_members.id FROM internal_cluster_members"
    " WHERE internal_cluster_members.name = ?)"
)


@dataclass
class ClientConfigItem:
    """A client configuration key and value applied to one host."""

    host: str = ""
    key: str = ""
    value: str = ""
    id: int = 0


@dataclass(frozen=True)
class ClientConfigItemFilter:
    """Selects client config items by host, by key, or by both."""

    host: Optional[str] = None
    key: Optional[str] = None


def _clause(flt: ClientConfigItemFilter) -> tuple[str, list[str]]:
    if flt.key is not None and flt.host is not None:
        return (
            "( client_config.key = ? AND internal_cluster_members.name = ? )",
            [flt.key, flt.host],
        )
    if flt.key is not None:
        return "( client_config.key = ? )", [flt.key]
    if flt.host is not None:
        return "( internal_cluster_members.name = ? )", [flt.host]
    raise ValueError("Cannot filter on empty ClientConfigItemFilter")


def get_client_config_items(
    conn: sqlite3.Connection, *filters: ClientConfigItemFilter
) -> list[ClientConfigItem]:
    """Return host-bound items ordered by member then key; several filters are ORed."""
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
        ClientConfigItem(id=row_id, host=host, key=key, value=value)
        for row_id, host, key, value in conn.execute(sql, args)
    ]


def get_client_config_item(
    conn: sqlite3.Connection, host: str, key: str
) -> ClientConfigItem:
    """Return the item for ``key`` on ``host``."""
    objects = get_client_config_items(conn, ClientConfigItemFilter(host=host, key=key))
    if not objects:
        raise NotFoundError("ClientConfigItem not found")
    if len(objects) > 1:
        raise RuntimeError('More than one "client_config" entry matches')
    return objects[0]


def get_client_config_item_id(conn: sqlite3.Connection, host: str, key: str) -> int:
    """Return the row id of the item for ``key`` on ``host``."""
    row = conn.execute(
        "SELECT client_config.id FROM client_config"
        " JOIN internal_cluster_members"
        " ON client_config.member_id = internal_cluster_members.id"
        " WHERE internal_cluster_members.name = ? AND client_config.key = ?",
        (host, key),
    ).fetchone()
    if row is None:
        raise NotFoundError("ClientConfigItem not found")
    return row[0]


def client_config_item_exists(conn: sqlite3.Connection, host: str, key: str) -> bool:
    """Tell whether an item for ``key`` exists on ``host``."""
    try:
        get_client_config_item_id(conn, host, key)
    except NotFoundError:
        return False
    return True


def create_client_config_item(conn: sqlite3.Connection, item: ClientConfigItem) -> int:
    """Insert ``item`` and return its new id."""
    if client_config_item_exists(conn, item.host, item.key):
        raise ConflictError('This "client_config" entry already exists')
    cursor = conn.execute(
        f"INSERT INTO client_config (member_id, key, value) VALUES ({_MEMBER_ID}, ?, ?)",
        (item.host, item.key, item.value),
    )
    return cursor.lastrowid


def delete_client_config_item(conn: sqlite3.Connection, key: str, host: str) -> None:
    """Delete the item for ``key`` on ``host``."""
    cursor = conn.execute(
        f"DELETE FROM client_config WHERE key = ? AND member_id = {_MEMBER_ID}",
        (key, host),
    )
    if cursor.rowcount == 0:
        raise NotFoundError("ClientConfigItem not found")
    if cursor.rowcount > 1:
        raise RuntimeError(
            f"Query deleted {cursor.rowcount} ClientConfigItem rows instead of 1"
        )


def delete_client_config_items(conn: sqlite3.Connection, key: str) -> None:
    """Delete every item for ``key``, on any host or global."""
    conn.execute("DELETE FROM client_config WHERE key = ?", (key,))


def update_client_config_item(
    conn: sqlite3.Connection, host: str, key: str, item: ClientConfigItem
) -> None:
    """Replace the host, key and value of the item stored for ``key`` on ``host``."""
    row_id = get_client_config_item_id(conn, host, key)
    cursor = conn.execute(
        f"UPDATE client_config SET member_id = {_MEMBER_ID}, key = ?, value = ?"
        " WHERE id = ?",
        (item.host, item.key, item.value, row_id),
    )
    if cursor.rowcount != 1:
        raise RuntimeError(f"Query updated {cursor.rowcount} rows instead of 1")