"""Data model for captured DNS messages and collector configuration."""

from __future__ import annotations

from dataclasses import dataclass, field

DNS_QUERY = "QUERY"
DNS_REPLY = "REPLY"

_UNSET = "-"


def _default_common_qtypes() -> list[str]:
    return ["A", "AAAA", "CNAME", "TXT", "PTR", "NAPTR", "DNSKEY", "SRV", "SOA", "NS", "MX", "DS"]


@dataclass
class DnsFlags:
    """Header flags of a DNS message."""

    qr: bool = False
    tc: bool = False
    aa: bool = False
    ra: bool = False
    ad: bool = False


@dataclass
class DnsInfo:
    """DNS-level attributes of a captured message."""

    type: str = _UNSET
    id: int = 0
    opcode: int = 0
    rcode: str = _UNSET
    qname: str = _UNSET
    qtype: str = _UNSET
    qname_public_suffix: str = _UNSET
    qname_effective_tld_plus_one: str = _UNSET
    length: int = 0
    payload: bytes = b""
    malformed_packet: bool = False
    flags: DnsFlags = field(default_factory=DnsFlags)


@dataclass
class NetworkInfo:
    """Transport-level attributes of a captured message."""

    family: str = _UNSET
    protocol: str = _UNSET
    query_ip: str = _UNSET
    query_port: str = _UNSET
    response_ip: str = _UNSET
    response_port: str = _UNSET
    autonomous_system_number: str = _UNSET
    autonomous_system_org: str = _UNSET


@dataclass
class DnstapInfo:
    """Capture metadata: operation, identity, timing and latency."""

    operation: str = _UNSET
    identity: str = _UNSET
    time_sec: int = 0
    time_nsec: int = 0
    timestamp: float = 0.0
    timestamp_rfc3339: str = _UNSET
    latency: float = 0.0
    latency_sec: str = _UNSET


@dataclass
class DnsMessage:
    """A single DNS query or reply with its capture context."""

    dns: DnsInfo = field(default_factory=DnsInfo)
    network: NetworkInfo = field(default_factory=NetworkInfo)
    dnstap: DnstapInfo = field(default_factory=DnstapInfo)

    def is_query(self) -> bool:
        return self.dns.type == DNS_QUERY

    def is_reply(self) -> bool:
        return self.dns.type == DNS_REPLY


@dataclass
class FilteringConfig:
    """Settings for dropping messages before they are dispatched."""

    log_queries: bool = True
    log_replies: bool = True
    drop_rcodes: list[str] = field(default_factory=list)
    drop_query_ip_file: str = ""
    keep_query_ip_file: str = ""
    drop_fqdn_file: str = ""
    drop_domain_file: str = ""


@dataclass
class StatisticsConfig:
    """Settings for per-stream statistics and metric export."""

    top_max_items: int = 10
    common_qtypes: list[str] = field(default_factory=_default_common_qtypes)
    threshold_qname_len: int = 80
    threshold_packet_len: int = 1000
    threshold_slow: float = 0.5
    prom_prefix: str = "dnscollector"


@dataclass
class UserPrivacyConfig:
    """Settings for anonymising client addresses and query names."""

    anonymize_ip: bool = False
    minimaze_qname: bool = False


@dataclass
class CacheConfig:
    """Settings for the query cache used to compute latency."""

    enable: bool = True
    query_timeout: int = 10


@dataclass
class Config:
    """Configuration of the processing stage."""

    qname_lower_case: bool = True
    filtering: FilteringConfig = field(default_factory=FilteringConfig)
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    user_privacy: UserPrivacyConfig = field(default_factory=UserPrivacyConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)