"""Masking of client IP addresses for user privacy."""

from __future__ import annotations

import ipaddress

from dnscollector.model import Config

_IPV4_PREFIX = 16
_IPV6_PREFIX = 64


class IpAnonymizer:
    """Truncates IPv4 addresses to /16 and IPv6 addresses to /64."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.enabled = config.user_privacy.anonymize_ip

    def anonymize(self, ip: str) -> str:
        """Return ``ip`` with its host part zeroed.

        Raises ValueError if ``ip`` is not a valid address.
        """
        address = ipaddress.ip_address(ip)
        if "." in ip:
            if isinstance(address, ipaddress.IPv6Address):
                if address.ipv4_mapped is None:
                    raise ValueError(f"cannot apply an IPv4 mask to {ip!r}")
                address = address.ipv4_mapped
            prefix = _IPV4_PREFIX
        else:
            prefix = _IPV6_PREFIX
        network = ipaddress.ip_network(f"{address}/{prefix}", strict=False)
        return str(network.network_address)