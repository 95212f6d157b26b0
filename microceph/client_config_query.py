"""Queries over client configuration, merging global and per-host values."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass

from microceph.client_config_items import (
    ClientConfigItem,
    ClientConfigItemFilter,
    delete_client_config_item,
    delete_client_config_items,
    get_client_config_items,
)
from microceph.constants import CLIENT_CONFIG_GLOBAL_HOST
from microceph.db import Database, StatusError

log = logging.getLogger(__name__)

_GLOBAL_SELECT = (
    "SELECT client_config.id, client_config.key, client_config.value FROM client_config"
    " WHERE client_config.member_id IS NULL"
    " ORDER BY client_config.key"
)
_GLOBAL_SELECT_BY_KEY = (
    "SELECT client_config.id, client_config.key, client_config.value FROM client_config"
    " WHERE ( client_config.key = ? AND client_config.member_id IS NULL )"
)
_GLOBAL_UPSERT = (
    "INSERT OR REPLACE INTO client_config (member_id, key, value) VALUES (NULL, ?, ?)"
)
_HOST_UPSERT = (
    "INSERT OR REPLACE INTO client_config (member_id, key, value)"
    " VALUES ((SELECT internal_cluster_members.id FROM internal_cluster_members"
    " WHERE internal_cluster_members.name = ?), ?, ?)"
)


@dataclass
class ClientConfig:
    """A client configuration entry as presented to API users."""

    key: str = ""
    value: str = ""
    host: str = ""


def to_client_configs(items: Iterable[ClientConfigItem]) -> list[ClientConfig]:
    """Convert stored items to API entries; an empty host means global."""
    return [
        ClientConfig(
            key=item.key,
            value=item.value,
            host=item.host or CLIENT_CONFIG_GLOBAL_HOST,
        )
        for item in items
    ]


def squash_client_configs(
    global_configs: Iterable[ClientConfigItem],
    host_configs: Iterable[ClientConfigItem],
) -> list[ClientConfigItem]:
    """Overlay host values on global ones, giving one item per key."""
    merged: dict[str, ClientConfigItem] = {}
    for config in global_configs:
        merged[config.key] = config
    for config in host_configs:
        merged[config.key] = config
    log.info("Squashed configs: %s", merged)
    return list(merged.values())


def _upsert(conn: sqlite3.Connection, item: ClientConfigItem) -> None:
    if item.host == CLIENT_CONFIG_GLOBAL_HOST:
        conn.execute(_GLOBAL_UPSERT, (item.key, item.value))
    else:
        conn.execute(_HOST_UPSERT, (item.host, item.key, item.value))


def _rewrap(err: Exception, message: str) -> Exception:
    if isinstance(err, StatusError):
        return type(err)(f"{message}: {err}", err.status)
    return RuntimeError(f"{message}: {err}")


class ClientConfigQuery:
    """Reads and writes client configuration in a cluster database."""

    def add_new(self, db: Database, key: str, value: str, host: str) -> None:
        """Set ``key`` to ``value`` for ``host`` (``*`` for global), replacing any old value."""
        item = ClientConfigItem(host=host, key=key, value=value)
        try:
            with db.transaction() as conn:
                _upsert(conn, item)
        except sqlite3.Error as err:
            raise RuntimeError(f"failed to add client config: {err}") from err

    def get_all(self, db: Database) -> list[ClientConfigItem]:
        """Return every global item followed by every host item."""
        global_configs = self.get_global_configs(db, "")
        host_configs = self.get_all_for_filter(db)
        return global_configs + host_configs

    def get_all_for_key(self, db: Database, key: str) -> list[ClientConfigItem]:
        """Return the global item and all host items for ``key``."""
        global_configs = self.get_global_configs(db, key)
        host_configs = self.get_all_for_filter(db, ClientConfigItemFilter(key=key))
        return global_configs + host_configs

    def get_all_for_host(self, db: Database, host: str) -> list[ClientConfigItem]:
        """Return the items that apply to ``host``: host values override global ones."""
        global_configs = self.get_global_configs(db, "")
        host_configs = self.get_all_for_filter(db, ClientConfigItemFilter(host=host))
        return squash_client_configs(global_configs, host_configs)

    def get_all_for_key_and_host(
        self, db: Database, key: str, host: str
    ) -> list[ClientConfigItem]:
        """Return the host item for ``key`` on ``host``, if any."""
        return self.get_all_for_filter(db, ClientConfigItemFilter(host=host, key=key))

    def get_all_for_filter(
        self, db: Database, *filters: ClientConfigItemFilter
    ) -> list[ClientConfigItem]:
        """Return host-bound items matching any of ``filters`` (all when none)."""
        with db.transaction() as conn:
            return get_client_config_items(conn, *filters)

    def get_global_configs(self, db: Database, key: str) -> list[ClientConfigItem]:
        """Return global items, only the one for ``key`` when it is not empty."""
        with db.transaction() as conn:
            if key:
                rows = conn.execute(_GLOBAL_SELECT_BY_KEY, (key,)).fetchall()
            else:
                rows = conn.execute(_GLOBAL_SELECT).fetchall()
        return [
            ClientConfigItem(
                id=row_id, host=CLIENT_CONFIG_GLOBAL_HOST, key=item_key, value=value
            )
            for row_id, item_key, value in rows
        ]

    def remove_all_for_key(self, db: Database, key: str) -> None:
        """Delete every record of ``key``, global and per host."""
        try:
            with db.transaction() as conn:
                delete_client_config_items(conn, key)
        except (StatusError, sqlite3.Error) as err:
            raise _rewrap(err, f"failed to clean existing keys {key}") from err

    def remove_one_for_key_and_host(self, db: Database, key: str, host: str) -> None:
        """Delete the record of ``key`` on ``host``."""
        try:
            with db.transaction() as conn:
                delete_client_config_item(conn, key, host)
        except (StatusError, sqlite3.Error) as err:
            raise _rewrap(err, f"failed to clean existing keys {key}") from err


client_config_query = ClientConfigQuery()