"""Lookups of host addresses against networks."""

from __future__ import annotations

import ipaddress
import logging
import socket
from collections.abc import Callable, Iterable
from typing import Optional, Union

import psutil

log = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPInterface = Union[ipaddress.IPv4Interface, ipaddress.IPv6Interface]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]

_BROADCAST = ipaddress.IPv4Address("255.255.255.255")


def _host_interfaces() -> Iterable[IPInterface]:
    """Yield every IP address configured on the host, with its prefix."""
    for addrs in psutil.net_if_addrs().values():
        for snic in addrs:
            if snic.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            if not snic.netmask:
                continue
            address = snic.address.split("%", 1)[0]
            try:
                if "/" in snic.netmask:
                    prefix = int(snic.netmask.rsplit("/", 1)[1])
                else:
                    prefix = bin(int(ipaddress.ip_address(snic.netmask))).count("1")
                yield ipaddress.ip_interface(f"{address}/{prefix}")
            except ValueError as err:
                log.warning("error reading interface address %s: %s", snic.address, err)


def _normalize(ip: IPAddress) -> IPAddress:
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        return ip.ipv4_mapped
    return ip


def _parse_ip(address: str) -> Optional[IPAddress]:
    try:
        return _normalize(ipaddress.ip_address(address))
    except ValueError:
        return None


def _parse_cidr(subnet: str) -> IPNetwork:
    _, sep, prefix = subnet.partition("/")
    if not sep or not prefix.isdigit():
        raise ValueError(f"invalid CIDR address: {subnet}")
    try:
        return ipaddress.ip_network(subnet, strict=False)
    except ValueError as err:
        raise ValueError(f"invalid CIDR address: {subnet}") from err


def _is_global_unicast(ip: IPAddress) -> bool:
    ip = _normalize(ip)
    return not (
        ip.is_unspecified
        or ip.is_loopback
        or ip.is_multicast
        or ip.is_link_local
        or ip == _BROADCAST
    )


def _contains(network: IPNetwork, ip: IPAddress) -> bool:
    return _normalize(ip) in network


class Network:
    """Address checks against the host's network interfaces."""

    def __init__(self, interfaces: Optional[Callable[[], Iterable[IPInterface]]] = None):
        self._interfaces = interfaces or _host_interfaces

    def _global_interfaces(self) -> Iterable[IPInterface]:
        return (iface for iface in self._interfaces() if _is_global_unicast(iface.ip))

    def find_ip_on_subnet(self, subnet: str) -> str:
        """Return the first global unicast host address inside ``subnet``."""
        network = _parse_cidr(subnet)
        for iface in self._global_interfaces():
            if _contains(network, iface.ip):
                return str(_normalize(iface.ip))
        raise LookupError(f"no IP belongs to provided subnet {subnet}")

    def find_network_address(self, address: str) -> str:
        """Return the host interface address (``ip/prefix``) equal to ``address``."""
        mon_ip = _parse_ip(address)
        if mon_ip is None:
            raise ValueError(f"provided address {address} is invalid")

        seen: list[str] = []
        for iface in self._global_interfaces():
            seen.append(str(iface))
            if _normalize(iface.ip) == mon_ip:
                return str(iface)

        raise LookupError(
            f"provided mon-ip ({mon_ip}) does not belong to any suitable network: "
            f"[{' '.join(seen)}]"
        )

    def is_ip_on_subnet(self, address: str, subnet: str) -> bool:
        """Tell whether ``address`` lies inside ``subnet``; invalid input gives False."""
        ip = _parse_ip(address)
        if ip is None:
            return False
        try:
            network = _parse_cidr(subnet)
        except ValueError:
            return False
        return _contains(network, ip)


network = Network()