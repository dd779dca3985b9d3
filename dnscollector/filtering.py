"""Decides which DNS messages are dropped before dispatch."""

from __future__ import annotations

import ipaddress
import logging
import re
from collections.abc import Iterator

from dnscollector.model import Config, DnsMessage

_Network = ipaddress.IPv4Network | ipaddress.IPv6Network


def _read_lines(path: str) -> Iterator[str]:
    with open(path, encoding="utf-8") as handle:
        for line in handle:
            yield line.rstrip("\r\n")


class FilteringProcessor:
    """Drops messages by type, rcode, client address or queried domain."""

    def __init__(self, config: Config, logger: logging.Logger | None = None) -> None:
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.drop_domains = False
        self.drop_rcodes: set[str] = set()
        self.drop_networks: list[_Network] = []
        self.keep_networks: list[_Network] = []
        self.fqdns: set[str] = set()
        self.domain_patterns: dict[str, re.Pattern[str]] = {}

        self.load_rcodes()
        self.load_domains_list()
        self.load_query_ip_list()

    def load_rcodes(self) -> None:
        self.drop_rcodes.update(self.config.filtering.drop_rcodes)

    def _read_ip_file(self, path: str) -> tuple[int, list[_Network]]:
        read = 0
        networks: list[_Network] = []
        for line in _read_lines(path):
            read += 1
            entry = line.lower()
            try:
                if "/" in entry:
                    networks.append(ipaddress.ip_network(entry, strict=False))
                else:
                    networks.append(ipaddress.ip_network(ipaddress.ip_address(entry)))
            except ValueError:
                self.logger.error(
                    "filtering - %s in %s is neither an IP address nor a prefix", entry, path
                )
        return read, networks

    def load_query_ip_list(self) -> None:
        """(Re)load the drop and keep client address lists."""
        filtering = self.config.filtering
        for path, target, label in (
            (filtering.drop_query_ip_file, "drop_networks", "drop"),
            (filtering.keep_query_ip_file, "keep_networks", "keep"),
        ):
            if not path:
                continue
            try:
                read, networks = self._read_ip_file(path)
            except OSError as err:
                self.logger.error("filtering - unable to open query ip file: %s", err)
                read = 0
            else:
                setattr(self, target, networks)
            self.logger.info("filtering - loaded with %d query ip to the %s list", read, label)

    def load_domains_list(self) -> None:
        """Load exact names and regular expressions of domains to drop."""
        filtering = self.config.filtering

        if filtering.drop_fqdn_file:
            try:
                self.fqdns.update(line.lower() for line in _read_lines(filtering.drop_fqdn_file))
            except OSError as err:
                self.logger.error("filtering - unable to open fqdn file: %s", err)
            else:
                self.logger.info("filtering - loaded with %d fqdn to the drop list", len(self.fqdns))
            self.drop_domains = True

        if filtering.drop_domain_file:
            try:
                for line in _read_lines(filtering.drop_domain_file):
                    domain = line.lower()
                    self.domain_patterns[domain] = re.compile(domain)
            except OSError as err:
                self.logger.error("filtering - unable to open regex list file: %s", err)
            else:
                self.logger.info(
                    "filtering - loaded with %d domains to the drop list", len(self.domain_patterns)
                )
            self.drop_domains = True

    def check_if_drop(self, dm: DnsMessage) -> bool:
        """Return True if the message should be discarded."""
        filtering = self.config.filtering
        if not filtering.log_queries and dm.is_query():
            return True
        if not filtering.log_replies and dm.is_reply():
            return True

        if dm.dns.rcode in self.drop_rcodes:
            return True

        try:
            ip = ipaddress.ip_address(dm.network.query_ip)
        except ValueError:
            ip = None
        if ip is not None:
            if any(ip in net for net in self.keep_networks):
                return False
            if any(ip in net for net in self.drop_networks):
                return True

        if self.drop_domains:
            if dm.dns.qname in self.fqdns:
                return True
            if any(p.search(dm.dns.qname) for p in self.domain_patterns.values()):
                return True

        return False