"""Records of the Ceph services placed on each cluster member."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional

from microceph.config_items import (
    _delete_one,
    _found,
    _insert,
    _only,
    _row_id,
    _select,
    _update_one,
)

_SELECT = (
    "SELECT services.id, internal_cluster_members.name AS member, services.service"
    " FROM services"
    " JOIN internal_cluster_members ON services.member_id = internal_cluster_members.id"
)
_ORDER = " ORDER BY internal_cluster_members.id, services.service"

_MEMBER_ID = (
    "(SELECT internal_cluster_members.id FROM internal_cluster_members"
    " WHERE internal_cluster_members.name = ?)"
)


@dataclass
class Service:
    """A Ceph service running on a particular cluster member."""

    member: str = ""
    service: str = ""
    id: int = 0


@dataclass(frozen=True)
class ServiceFilter:
    """Selects services by member, by service name, or by both."""

    member: Optional[str] = None
    service: Optional[str] = None


def _clause(flt: ServiceFilter) -> tuple[str, list[str]]:
    if flt.member is not None and flt.service is not None:
        return (
            "( internal_cluster_members.name = ? AND services.service = ? )",
            [flt.member, flt.service],
        )
    if flt.service is not None:
        return "( services.service = ? )", [flt.service]
    if flt.member is not None:
        return "( internal_cluster_members.name = ? )", [flt.member]
    raise ValueError("Cannot filter on empty ServiceFilter")


def get_services(conn: sqlite3.Connection, *filters: ServiceFilter) -> list[Service]:
    """Return services ordered by member then name; several filters are ORed."""
    clauses: list[str] = []
    args: list[str] = []
    for flt in filters:
        clause, clause_args = _clause(flt)
        clauses.append(clause)
        args.extend(clause_args)
    return [
        Service(id=row_id, member=member, service=service)
        for row_id, member, service in _select(conn, _SELECT, _ORDER, clauses, args)
    ]


def get_service(conn: sqlite3.Connection, member: str, service: str) -> Service:
    """Return the service named ``service`` on ``member``."""
    found = get_services(conn, ServiceFilter(member=member, service=service))
    return _only(found, "Service", "services")


def get_service_id(conn: sqlite3.Connection, member: str, service: str) -> int:
    """Return the row id of the service named ``service`` on ``member``."""
    return _row_id(
        conn,
        "SELECT services.id FROM services"
        " JOIN internal_cluster_members ON services.member_id = internal_cluster_members.id"
        " WHERE internal_cluster_members.name = ? AND services.service = ?",
        (member, service),
        "Service",
    )


def service_exists(conn: sqlite3.Connection, member: str, service: str) -> bool:
    """Tell whether the service named ``service`` exists on ``member``."""
    return _found(get_service_id, conn, member, service)


def create_service(conn: sqlite3.Connection, item: Service) -> int:
    """Insert ``item`` and return its new id."""
    return _insert(
        conn,
        service_exists(conn, item.member, item.service),
        "services",
        f"INSERT INTO services (member_id, service) VALUES ({_MEMBER_ID}, ?)",
        (item.member, item.service),
    )


def delete_service(conn: sqlite3.Connection, member: str, service: str) -> None:
    """Delete the service named ``service`` on ``member``."""
    _delete_one(
        conn,
        f"DELETE FROM services WHERE member_id = {_MEMBER_ID} AND service = ?",
        (member, service),
        "Service",
    )


def delete_services(conn: sqlite3.Connection, member: str) -> None:
    """Delete every service on ``member``."""
    conn.execute(f"DELETE FROM services WHERE member_id = {_MEMBER_ID}", (member,))


def update_service(
    conn: sqlite3.Connection, member: str, service: str, item: Service
) -> None:
    """Replace the member and name of the service stored as ``service`` on ``member``."""
    row_id = get_service_id(conn, member, service)
    _update_one(
        conn,
        f"UPDATE services SET member_id = {_MEMBER_ID}, service = ? WHERE id = ?",
        (item.member, item.service, row_id),
    )