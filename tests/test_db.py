import sqlite3

import pytest

from microceph.db import ConflictError, Database, NotFoundError, SCHEMA_UPDATES


@pytest.fixture
def db(tmp_path):
    database = Database(str(tmp_path / "state.db"))
    yield database
    database.close()


def _query(db, sql, params=()):
    with db.transaction() as conn:
        return conn.execute(sql, params).fetchall()


def test_schema_version_counts_all_updates(db):
    assert db.schema_version() == len(SCHEMA_UPDATES)
    assert db.schema_version() == 3


def test_tables_created(db):
    tables = {name for (name,) in _query(db, "SELECT name FROM sqlite_master WHERE type = 'table'")}
    assert {"config", "disks", "services", "client_config", "internal_cluster_members"} <= tables
    assert "disks2" not in tables


def test_disks_table_has_no_osd_column(db):
    assert [row[1] for row in _query(db, "PRAGMA table_info(disks)")] == ["id", "member_id", "path"]


def test_reopen_keeps_version_and_data(tmp_path):
    path = str(tmp_path / "cluster.db")
    with Database(path) as first:
        member_id = first.add_member("node1")
    with Database(path) as second:
        assert second.schema_version() == len(SCHEMA_UPDATES)
        assert _query(second, "SELECT id, name FROM internal_cluster_members") == [
            (member_id, "node1")
        ]


def test_add_member_duplicate(db):
    db.add_member("node1")
    with pytest.raises(ConflictError) as info:
        db.add_member("node1")
    assert info.value.status == 409


def test_add_member_ids_distinct(db):
    assert db.add_member("a") != db.add_member("b")


def test_transaction_rolls_back_on_error(db):
    with pytest.raises(RuntimeError):
        with db.transaction() as conn:
            conn.execute("INSERT INTO config (key, value) VALUES ('k', 'v')")
            raise RuntimeError("boom")
    assert _query(db, "SELECT * FROM config") == []


def test_transaction_commits(db):
    with db.transaction() as conn:
        conn.execute("INSERT INTO config (key, value) VALUES ('k', 'v')")
    assert _query(db, "SELECT key, value FROM config") == [("k", "v")]


def test_global_client_config_unique(db):
    with pytest.raises(sqlite3.IntegrityError):
        with db.transaction() as conn:
            for value in ("a", "b"):
                conn.execute(
                    "INSERT INTO client_config (member_id, key, value) VALUES (NULL, 'k', ?)",
                    (value,),
                )


def test_member_delete_cascades(db):
    member_id = db.add_member("node1")
    with db.transaction() as conn:
        conn.execute("INSERT INTO services (member_id, service) VALUES (?, 'mon')", (member_id,))
        conn.execute("DELETE FROM internal_cluster_members WHERE id = ?", (member_id,))
        assert conn.execute("SELECT * FROM services").fetchall() == []


def test_not_found_error_status():
    err = NotFoundError("missing")
    assert err.status == 404
    assert isinstance(err, LookupError)