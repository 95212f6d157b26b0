import pytest

from microceph.config_items import (
    ConfigItem,
    ConfigItemFilter,
    config_item_exists,
    create_config_item,
    delete_config_item,
    get_config_item,
    get_config_item_id,
    get_config_items,
    update_config_item,
)
from microceph.db import ConflictError, Database, NotFoundError


@pytest.fixture
def database():
    with Database(":memory:") as db:
        yield db


@pytest.fixture
def conn(database):
    with database.transaction() as connection:
        yield connection


def _seed(conn, *pairs):
    return [create_config_item(conn, ConfigItem(key=k, value=v)) for k, v in pairs]


def _keys(items):
    return [(i.key, i.value) for i in items]


def test_create_and_get(conn):
    (item_id,) = _seed(conn, ("cluster_network", "10.0.0.0/24"))
    assert get_config_item(conn, "cluster_network") == ConfigItem(
        key="cluster_network", value="10.0.0.0/24", id=item_id
    )
    assert get_config_item_id(conn, "cluster_network") == item_id


def test_list_sorted_by_key(conn):
    pairs = [("zeta", "1"), ("alpha", "2"), ("mid", "3")]
    _seed(conn, *pairs)
    assert _keys(get_config_items(conn)) == sorted(pairs)


@pytest.mark.parametrize(
    "wanted,expected",
    [(["b"], [("b", "2")]), (["c", "a"], [("a", "1"), ("c", "3")])],
)
def test_filters_are_ored(conn, wanted, expected):
    _seed(conn, ("a", "1"), ("b", "2"), ("c", "3"))
    filters = [ConfigItemFilter(key=k) for k in wanted]
    assert _keys(get_config_items(conn, *filters)) == expected


def test_empty_filter_rejected(conn):
    with pytest.raises(ValueError, match="Cannot filter on empty ConfigItemFilter"):
        get_config_items(conn, ConfigItemFilter())


@pytest.mark.parametrize(
    "call",
    [
        lambda c: get_config_item(c, "absent"),
        lambda c: get_config_item_id(c, "absent"),
        lambda c: delete_config_item(c, "absent"),
        lambda c: update_config_item(c, "absent", ConfigItem(key="x", value="y")),
    ],
)
def test_missing_item_not_found(conn, call):
    with pytest.raises(NotFoundError, match="ConfigItem not found"):
        call(conn)


def test_exists(conn):
    _seed(conn, ("a", "1"))
    assert config_item_exists(conn, "a") is True
    assert config_item_exists(conn, "b") is False


def test_create_duplicate(conn):
    _seed(conn, ("a", "1"))
    with pytest.raises(ConflictError, match="already exists"):
        create_config_item(conn, ConfigItem(key="a", value="2"))


def test_delete(conn):
    _seed(conn, ("a", "1"), ("b", "2"))
    delete_config_item(conn, "a")
    assert _keys(get_config_items(conn)) == [("b", "2")]


def test_update(conn):
    (item_id,) = _seed(conn, ("a", "1"))
    update_config_item(conn, "a", ConfigItem(key="renamed", value="new"))
    assert config_item_exists(conn, "a") is False
    assert get_config_item(conn, "renamed") == ConfigItem(key="renamed", value="new", id=item_id)


def test_failed_transaction_discards_create(database):
    with pytest.raises(ConflictError):
        with database.transaction() as conn:
            _seed(conn, ("a", "1"), ("a", "1"))
    with database.transaction() as conn:
        assert get_config_items(conn) == []