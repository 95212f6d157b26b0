"""Records of the cluster-wide Ceph configuration table."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Optional, TypeVar

from microceph.db import ConflictError, NotFoundError

T = TypeVar("T")

_SELECT = "SELECT config.id, config.key, config.value FROM config"
_ORDER = " ORDER BY config.key"


def _select(
    conn: sqlite3.Connection, select: str, order: str, clauses: Sequence[str], args: Sequence[Any]
) -> sqlite3.Cursor:
    """Run ``select`` with the clauses ORed together, then ``order``."""
    sql = select
    if clauses:
        sql += " WHERE " + " OR ".join(clauses)
    return conn.execute(sql + order, list(args))


def _only(objects: list[T], entity: str, table: str) -> T:
    """Return the one object in ``objects``."""
    if not objects:
        raise NotFoundError(f"{entity} not found")
    if len(objects) > 1:
        raise RuntimeError(f'More than one "{table}" entry matches')
    return objects[0]


def _row_id(conn: sqlite3.Connection, sql: str, args: Sequence[Any], entity: str) -> int:
    """Return the id selected by ``sql``."""
    row = conn.execute(sql, list(args)).fetchone()
    if row is None:
        raise NotFoundError(f"{entity} not found")
    return row[0]


def _found(lookup: Callable[..., Any], *args: Any) -> bool:
    """Tell whether ``lookup`` succeeds rather than raising NotFoundError."""
    try:
        lookup(*args)
    except NotFoundError:
        return False
    return True


def _insert(
    conn: sqlite3.Connection, exists: bool, table: str, sql: str, args: Sequence[Any]
) -> int:
    """Insert a row unless it already exists, and return its id."""
    if exists:
        raise ConflictError(f'This "{table}" entry already exists')
    return conn.execute(sql, list(args)).lastrowid


def _delete_one(conn: sqlite3.Connection, sql: str, args: Sequence[Any], entity: str) -> None:
    """Delete exactly one row."""
    count = conn.execute(sql, list(args)).rowcount
    if count == 0:
        raise NotFoundError(f"{entity} not found")
    if count > 1:
        raise RuntimeError(f"Query deleted {count} {entity} rows instead of 1")


def _update_one(conn: sqlite3.Connection, sql: str, args: Sequence[Any]) -> None:
    """Update exactly one row."""
    count = conn.execute(sql, list(args)).rowcount
    if count != 1:
        raise RuntimeError(f"Query updated {count} rows instead of 1")


@dataclass
class ConfigItem:
    """One Ceph configuration key and its value."""

    key: str = ""
    value: str = ""
    id: int = 0


@dataclass(frozen=True)
class ConfigItemFilter:
    """Selects config items by key."""

    key: Optional[str] = None


def get_config_items(conn: sqlite3.Connection, *filters: ConfigItemFilter) -> list[ConfigItem]:
    """Return config items ordered by key; several filters are combined with OR."""
    if any(flt.key is None for flt in filters):
        raise ValueError("Cannot filter on empty ConfigItemFilter")
    clauses = ["( config.key = ? )"] * len(filters)
    args = [flt.key for flt in filters]
    return [
        ConfigItem(id=row_id, key=key, value=value)
        for row_id, key, value in _select(conn, _SELECT, _ORDER, clauses, args)
    ]


def get_config_item(conn: sqlite3.Connection, key: str) -> ConfigItem:
    """Return the config item with ``key``."""
    return _only(get_config_items(conn, ConfigItemFilter(key=key)), "ConfigItem", "config")


def get_config_item_id(conn: sqlite3.Connection, key: str) -> int:
    """Return the row id of the config item with ``key``."""
    return _row_id(conn, "SELECT config.id FROM config WHERE config.key = ?", (key,), "ConfigItem")


def config_item_exists(conn: sqlite3.Connection, key: str) -> bool:
    """Tell whether a config item with ``key`` exists."""
    return _found(get_config_item_id, conn, key)


def create_config_item(conn: sqlite3.Connection, item: ConfigItem) -> int:
    """Insert ``item`` and return its new id."""
    return _insert(
        conn,
        config_item_exists(conn, item.key),
        "config",
        "INSERT INTO config (key, value) VALUES (?, ?)",
        (item.key, item.value),
    )


def delete_config_item(conn: sqlite3.Connection, key: str) -> None:
    """Delete the config item with ``key``."""
    _delete_one(conn, "DELETE FROM config WHERE key = ?", (key,), "ConfigItem")


def update_config_item(conn: sqlite3.Connection, key: str, item: ConfigItem) -> None:
    """Replace the key and value of the config item currently stored under ``key``."""
    row_id = get_config_item_id(conn, key)
    _update_one(
        conn, "UPDATE config SET key = ?, value = ? WHERE id = ?", (item.key, item.value, row_id)
    )