import pytest

from microceph.client_config_items import (
    ClientConfigItem,
    ClientConfigItemFilter,
    client_config_item_exists,
    create_client_config_item,
    delete_client_config_item,
    delete_client_config_items,
    get_client_config_item,
    get_client_config_item_id,
    get_client_config_items,
    update_client_config_item,
)
from microceph.db import ConflictError, Database, NotFoundError


@pytest.fixture
def db():
    database = Database(":memory:")
    database.add_member("node1")
    database.add_member("node2")
    yield database
    database.close()


def _add(conn, host, key, value):
    return create_client_config_item(conn, ClientConfigItem(host=host, key=key, value=value))


def _pairs(items):
    return [(i.host, i.key, i.value) for i in items]


def test_create_and_get(db):
    with db.transaction() as conn:
        new_id = _add(conn, "node1", "rbd_cache", "true")
        item = get_client_config_item(conn, "node1", "rbd_cache")
    assert item.id == new_id
    assert (item.host, item.key, item.value) == ("node1", "rbd_cache", "true")


def test_get_all_ordered_by_member_then_key(db):
    with db.transaction() as conn:
        _add(conn, "node2", "a_key", "2a")
        _add(conn, "node1", "z_key", "1z")
        _add(conn, "node1", "a_key", "1a")
        items = get_client_config_items(conn)
    assert _pairs(items) == [
        ("node1", "a_key", "1a"),
        ("node1", "z_key", "1z"),
        ("node2", "a_key", "2a"),
    ]


def test_global_rows_not_listed(db):
    with db.transaction() as conn:
        conn.execute(
            "INSERT INTO client_config (member_id, key, value) VALUES (NULL, ?, ?)",
            ("rbd_cache", "false"),
        )
        _add(conn, "node1", "rbd_cache", "true")
        items = get_client_config_items(conn)
    assert _pairs(items) == [("node1", "rbd_cache", "true")]


def test_filters(db):
    with db.transaction() as conn:
        _add(conn, "node1", "k1", "v1")
        _add(conn, "node1", "k2", "v2")
        _add(conn, "node2", "k1", "v3")
        by_key = get_client_config_items(conn, ClientConfigItemFilter(key="k1"))
        by_host = get_client_config_items(conn, ClientConfigItemFilter(host="node2"))
        both = get_client_config_items(conn, ClientConfigItemFilter(host="node1", key="k2"))
        ored = get_client_config_items(
            conn,
            ClientConfigItemFilter(host="node2"),
            ClientConfigItemFilter(key="k2"),
        )
    assert _pairs(by_key) == [("node1", "k1", "v1"), ("node2", "k1", "v3")]
    assert _pairs(by_host) == [("node2", "k1", "v3")]
    assert _pairs(both) == [("node1", "k2", "v2")]
    assert _pairs(ored) == [("node1", "k2", "v2"), ("node2", "k1", "v3")]


def test_empty_filter_rejected(db):
    with db.transaction() as conn:
        with pytest.raises(ValueError, match="empty ClientConfigItemFilter"):
            get_client_config_items(conn, ClientConfigItemFilter())


def test_get_missing_raises_not_found(db):
    with db.transaction() as conn:
        with pytest.raises(NotFoundError) as info:
            get_client_config_item(conn, "node1", "missing")
    assert info.value.status == 404


def test_id_and_exists(db):
    with db.transaction() as conn:
        new_id = _add(conn, "node2", "k", "v")
        assert get_client_config_item_id(conn, "node2", "k") == new_id
        assert client_config_item_exists(conn, "node2", "k") is True
        assert client_config_item_exists(conn, "node1", "k") is False
        with pytest.raises(NotFoundError):
            get_client_config_item_id(conn, "node1", "k")


def test_create_duplicate_conflicts(db):
    with db.transaction() as conn:
        _add(conn, "node1", "k", "v")
        with pytest.raises(ConflictError) as info:
            _add(conn, "node1", "k", "other")
    assert info.value.status == 409


def test_same_key_on_different_hosts(db):
    with db.transaction() as conn:
        first = _add(conn, "node1", "k", "v")
        second = _add(conn, "node2", "k", "v")
    assert first != second


def test_delete_one(db):
    with db.transaction() as conn:
        _add(conn, "node1", "k", "v")
        _add(conn, "node2", "k", "v")
        delete_client_config_item(conn, "k", "node1")
        remaining = get_client_config_items(conn)
    assert _pairs(remaining) == [("node2", "k", "v")]


def test_delete_one_missing(db):
    with db.transaction() as conn:
        with pytest.raises(NotFoundError):
            delete_client_config_item(conn, "k", "node1")


def test_delete_many_includes_global(db):
    with db.transaction() as conn:
        conn.execute(
            "INSERT INTO client_config (member_id, key, value) VALUES (NULL, ?, ?)",
            ("k", "g"),
        )
        _add(conn, "node1", "k", "v")
        _add(conn, "node2", "other", "v")
        delete_client_config_items(conn, "k")
        (total,) = conn.execute("SELECT count(*) FROM client_config").fetchone()
        remaining = get_client_config_items(conn)
    assert total == 1
    assert _pairs(remaining) == [("node2", "other", "v")]


def test_update(db):
    with db.transaction() as conn:
        row_id = _add(conn, "node1", "k", "v")
        update_client_config_item(
            conn, "node1", "k", ClientConfigItem(host="node2", key="k2", value="v2")
        )
        item = get_client_config_item(conn, "node2", "k2")
        assert client_config_item_exists(conn, "node1", "k") is False
    assert item.id == row_id
    assert item.value == "v2"


def test_update_missing(db):
    with db.transaction() as conn:
        with pytest.raises(NotFoundError):
            update_client_config_item(conn, "node1", "k", ClientConfigItem("node1", "k", "v"))