"""SQLite-backed cluster database with the package's schema extensions."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

_MEMBERS_TABLE = """
CREATE TABLE IF NOT EXISTS internal_cluster_members (
  id                            INTEGER  PRIMARY KEY AUTOINCREMENT NOT NULL,
  name                          TEXT     NOT  NULL,
  UNIQUE(name)
);
"""

_SCHEMA_UPDATE_1 = """
CREATE TABLE config (
  id                            INTEGER  PRIMARY KEY AUTOINCREMENT NOT NULL,
  key                           TEXT     NOT  NULL,
  value                         TEXT     NOT  NULL,
  UNIQUE(key)
);

CREATE TABLE disks (
  id                            INTEGER  PRIMARY KEY AUTOINCREMENT NOT NULL,
  member_id                     INTEGER  NOT  NULL,
  path                          TEXT     NOT  NULL,
  osd                           INTEGER  NOT  NULL,
  FOREIGN KEY (member_id) REFERENCES "internal_cluster_members" (id) ON DELETE CASCADE,
  UNIQUE(member_id, path),
  UNIQUE(osd)
);

CREATE TABLE services (
  id                            INTEGER  PRIMARY KEY AUTOINCREMENT NOT NULL,
  member_id                     INTEGER  NOT  NULL,
  service                       TEXT     NOT  NULL,
  FOREIGN KEY (member_id) REFERENCES "internal_cluster_members" (id) ON DELETE CASCADE,
  UNIQUE(member_id, service)
);
"""

# Adds the client config table.
_SCHEMA_UPDATE_2 = """
CREATE TABLE client_config (
  id                            INTEGER  PRIMARY KEY AUTOINCREMENT NOT NULL,
  member_id                     INTEGER,
  key                           TEXT     NOT  NULL,
  value                         TEXT     NOT  NULL,
  FOREIGN KEY (member_id) REFERENCES "internal_cluster_members" (id) ON DELETE CASCADE
);

CREATE UNIQUE INDEX cc_index ON client_config(coalesce(member_id, 0), key);
"""

# Rebuilds the disks table keyed by OSD number, dropping the osd column.
_SCHEMA_UPDATE_3 = """
CREATE TABLE disks2 (
  id                            INTEGER  PRIMARY KEY AUTOINCREMENT NOT NULL,
  member_id                     INTEGER  NOT  NULL,
  path                          TEXT     NOT  NULL,
  FOREIGN KEY (member_id) REFERENCES "internal_cluster_members" (id) ON DELETE CASCADE,
  UNIQUE(member_id, path)
);
INSERT INTO disks2 (id, member_id, path)
SELECT osd, member_id, path FROM disks;
DROP TABLE disks;
ALTER TABLE disks2 RENAME TO disks;
"""

SCHEMA_UPDATES = (_SCHEMA_UPDATE_1, _SCHEMA_UPDATE_2, _SCHEMA_UPDATE_3)


class StatusError(Exception):
    """An error carrying an HTTP-like status code."""

    status = 500

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        if status is not None:
            self.status = status


class NotFoundError(StatusError, LookupError):
    """The requested record does not exist."""

    status = 404


class ConflictError(StatusError):
    """The record to be created already exists."""

    status = 409


class Database:
    """A cluster database stored in a SQLite file (or ``:memory:``)."""

    def __init__(self, path: str):
        self._conn = sqlite3.connect(path, isolation_level=None)
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(_MEMBERS_TABLE)
        self._apply_updates()

    def _apply_updates(self) -> None:
        current = self.schema_version()
        for number, update in enumerate(SCHEMA_UPDATES[current:], start=current + 1):
            try:
                self._conn.executescript(
                    f"BEGIN;\n{update}\nPRAGMA user_version = {number};\nCOMMIT;"
                )
            except sqlite3.Error:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the block in a transaction; commit on success, roll back on error."""
        self._conn.execute("BEGIN")
        try:
            yield self._conn
        except BaseException:
            self._conn.execute("ROLLBACK")
            raise
        else:
            self._conn.execute("COMMIT")

    def add_member(self, name: str) -> int:
        """Register a cluster member and return its id."""
        with self.transaction() as conn:
            row = conn.execute(
                "SELECT id FROM internal_cluster_members WHERE name = ?", (name,)
            ).fetchone()
            if row is not None:
                raise ConflictError(f"Cluster member {name!r} already exists")
            cursor = conn.execute(
                "INSERT INTO internal_cluster_members (name) VALUES (?)", (name,)
            )
            return cursor.lastrowid

    def schema_version(self) -> int:
        """Return how many schema extensions have been applied."""
        return self._conn.execute("PRAGMA user_version").fetchone()[0]

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()