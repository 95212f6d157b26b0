"""Bootstrap parameters and their validation."""

from __future__ import annotations

from dataclasses import dataclass

from microceph.network import network


@dataclass
class BootstrapConfig:
    """Parameters given when a new cluster is set up."""

    mon_ip: str = ""
    public_net: str = ""
    cluster_net: str = ""

    def encode(self) -> dict[str, str]:
        """Return the string map carried with the bootstrap request."""
        return {
            "MonIp": self.mon_ip,
            "PublicNet": self.public_net,
            "ClusterNet": self.cluster_net,
        }

    @classmethod
    def decode(cls, data: dict[str, str]) -> "BootstrapConfig":
        """Build a config from a string map; missing keys become empty."""
        return cls(
            mon_ip=data.get("MonIp", ""),
            public_net=data.get("PublicNet", ""),
            cluster_net=data.get("ClusterNet", ""),
        )


def pre_check_bootstrap_config(data: BootstrapConfig) -> None:
    """Raise ValueError if the mon address lies outside the public network."""
    if data.mon_ip and data.public_net:
        if not network.is_ip_on_subnet(data.mon_ip, data.public_net):
            raise ValueError(
                f"provided mon-ip {data.mon_ip} is not available on provided "
                f"public network {data.public_net}"
            )