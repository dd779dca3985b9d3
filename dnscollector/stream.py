"""Traffic statistics accumulated for one stream of DNS messages."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from enum import Enum

from dnscollector.model import Config, DnsMessage
from dnscollector.topmap import TopMap, TopMapItem


class StatKind(Enum):
    """The per-name hit tables kept for a stream."""

    DOMAINS = "domains"
    NXDOMAINS = "nxdomains"
    SLOW_DOMAINS = "slow_domains"
    SUSPICIOUS_DOMAINS = "suspicious_domains"
    CLIENTS = "clients"
    SUSPICIOUS_CLIENTS = "suspicious_clients"
    FIRST_LEVEL_DOMAINS = "first_level_domains"
    PUBLIC_SUFFIX = "public_suffix"
    EFFECTIVE_TLD_PLUS_ONE = "effective_tld_plus_one"
    RRTYPES = "rrtypes"
    RCODES = "rcodes"
    OPERATIONS = "operations"
    TRANSPORTS = "transports"
    IPPROTO = "ipproto"
    AS = "as"


# Tables that survive a reset.
_KEPT_ON_RESET = frozenset({StatKind.PUBLIC_SUFFIX, StatKind.EFFECTIVE_TLD_PLUS_ONE})


@dataclass
class Counters:
    """Scalar counters and histograms of a stream."""

    pps: int = 0
    pps_max: int = 0
    packets: int = 0
    packets_prev: int = 0
    packets_malformed: int = 0

    qps: int = 0
    qps_max: int = 0
    queries: int = 0
    queries_prev: int = 0

    latency_0_1: int = 0
    latency_1_10: int = 0
    latency_10_50: int = 0
    latency_50_100: int = 0
    latency_100_500: int = 0
    latency_500_1000: int = 0
    latency_1000_inf: int = 0
    latency_max: float = 0.0
    latency_min: float = 0.0

    qname_length_0_10: int = 0
    qname_length_10_20: int = 0
    qname_length_20_40: int = 0
    qname_length_40_60: int = 0
    qname_length_60_100: int = 0
    qname_length_100_inf: int = 0
    qname_length_max: int = 0
    qname_length_min: int = 0

    query_length_0_50: int = 0
    query_length_50_100: int = 0
    query_length_100_250: int = 0
    query_length_250_500: int = 0
    query_length_500_inf: int = 0
    query_length_max: int = 0
    query_length_min: int = 0

    reply_length_0_50: int = 0
    reply_length_50_100: int = 0
    reply_length_100_250: int = 0
    reply_length_250_500: int = 0
    reply_length_500_inf: int = 0
    reply_length_max: int = 0
    reply_length_min: int = 0

    received_bytes_total: int = 0
    sent_bytes_total: int = 0

    truncated: int = 0
    authoritative_answer: int = 0
    recursion_available: int = 0
    authentic_data: int = 0


def _packet_bucket(length: int) -> str:
    if length <= 50:
        return "0_50"
    if length <= 100:
        return "50_100"
    if length <= 250:
        return "100_250"
    if length <= 500:
        return "250_500"
    return "500_inf"


def _qname_bucket(length: int) -> str:
    if length <= 10:
        return "0_10"
    if length <= 20:
        return "10_20"
    if length <= 40:
        return "20_40"
    if length <= 60:
        return "40_60"
    if length <= 100:
        return "60_100"
    return "100_inf"


def _latency_bucket(latency: float) -> str | None:
    if latency == 0.0:
        return None
    if 0.0 < latency <= 0.001:
        return "0_1"
    if 0.001 < latency <= 0.010:
        return "1_10"
    if 0.010 < latency <= 0.050:
        return "10_50"
    if 0.050 < latency <= 0.100:
        return "50_100"
    if 0.100 < latency <= 0.500:
        return "100_500"
    if 0.500 < latency <= 1.000:
        return "500_1000"
    return "1000_inf"


def _bump(counters: Counters, name: str) -> None:
    setattr(counters, name, getattr(counters, name) + 1)


class StreamStats:
    """Counters, histograms and top lists for a single named stream."""

    def __init__(self, config: Config, name: str) -> None:
        self.name = name
        self.config = config
        self.common_qtypes = set(config.statistics.common_qtypes)
        self._lock = threading.Lock()
        self._total = Counters()
        self._counts: dict[StatKind, dict[str, int]] = {}
        self._tops: dict[StatKind, TopMap] = {}
        self._as_owners: dict[str, str] = {}
        for kind in StatKind:
            self._clear_table(kind)

    def _clear_table(self, kind: StatKind) -> None:
        self._counts[kind] = {}
        self._tops[kind] = TopMap(self.config.statistics.top_max_items)

    def _hit(self, kind: StatKind, key: str) -> None:
        table = self._counts[kind]
        table[key] = table.get(key, 0) + 1
        self._tops[kind].record(key, table[key])

    def _flag_suspicious(self, dm: DnsMessage) -> None:
        self._hit(StatKind.SUSPICIOUS_DOMAINS, dm.dns.qname)
        self._hit(StatKind.SUSPICIOUS_CLIENTS, dm.network.query_ip)

    def record(self, dm: DnsMessage) -> None:
        """Account for one DNS message."""
        with self._lock:
            self._record(dm)

    def _record(self, dm: DnsMessage) -> None:
        total = self._total
        stats_config = self.config.statistics
        total.packets += 1

        if dm.dns.malformed_packet:
            total.packets_malformed += 1
            self._hit(StatKind.SUSPICIOUS_CLIENTS, dm.network.query_ip)
            return

        length = dm.dns.length
        if dm.is_query():
            total.queries += 1
            total.received_bytes_total += length
            side = "query"
        else:
            total.sent_bytes_total += length
            side = "reply"
        self._track_min_max(f"{side}_length", length)
        _bump(total, f"{side}_length_{_packet_bucket(length)}")

        qname_len = len(dm.dns.qname.encode("utf-8"))
        self._track_min_max("qname_length", qname_len)
        _bump(total, f"qname_length_{_qname_bucket(qname_len)}")

        if qname_len >= stats_config.threshold_qname_len:
            self._flag_suspicious(dm)
        if dm.dns.qtype not in self.common_qtypes:
            self._flag_suspicious(dm)
        if length >= stats_config.threshold_packet_len:
            self._flag_suspicious(dm)

        latency = dm.dnstap.latency
        if latency > total.latency_max:
            total.latency_max = latency
        if latency > 0.0 and (total.latency_min == 0.0 or latency < total.latency_min):
            total.latency_min = latency
        bucket = _latency_bucket(latency)
        if bucket is not None:
            _bump(total, f"latency_{bucket}")

        self._hit(StatKind.IPPROTO, dm.network.family)
        self._hit(StatKind.TRANSPORTS, dm.network.protocol)

        qname = dm.dns.qname
        dot = qname.rfind(".")
        if dot > -1:
            self._hit(StatKind.FIRST_LEVEL_DOMAINS, qname[dot + 1:])

        etld_plus_one = dm.dns.qname_effective_tld_plus_one
        if etld_plus_one not in ("-", ""):
            self._hit(StatKind.PUBLIC_SUFFIX, dm.dns.qname_public_suffix)
        if etld_plus_one != "-":
            self._hit(StatKind.EFFECTIVE_TLD_PLUS_ONE, etld_plus_one)

        self._hit(StatKind.DOMAINS, qname)
        if dm.dns.rcode == "NXDOMAIN":
            self._hit(StatKind.NXDOMAINS, qname)
        if latency > stats_config.threshold_slow:
            self._hit(StatKind.SLOW_DOMAINS, qname)

        self._hit(StatKind.CLIENTS, dm.network.query_ip)
        self._hit(StatKind.RRTYPES, dm.dns.qtype)
        self._hit(StatKind.RCODES, dm.dns.rcode)
        self._hit(StatKind.OPERATIONS, dm.dnstap.operation)

        flags = dm.dns.flags
        if flags.tc:
            total.truncated += 1
        if flags.aa:
            total.authoritative_answer += 1
        if flags.ra:
            total.recursion_available += 1
        if flags.ad:
            total.authentic_data += 1

        asn = dm.network.autonomous_system_number
        self._as_owners.setdefault(asn, dm.network.autonomous_system_org)
        self._hit(StatKind.AS, asn)

    def _track_min_max(self, prefix: str, value: int) -> None:
        total = self._total
        minimum = getattr(total, f"{prefix}_min")
        if minimum == 0 or value < minimum:
            setattr(total, f"{prefix}_min", value)
        if value > getattr(total, f"{prefix}_max"):
            setattr(total, f"{prefix}_max", value)

    def compute(self) -> None:
        """Update packet and query rates since the previous call."""
        with self._lock:
            total = self._total
            if total.packets > 0 and total.packets_prev > 0:
                total.pps = total.packets - total.packets_prev
            total.packets_prev = total.packets
            total.pps_max = max(total.pps_max, total.pps)

            if total.queries > 0 and total.queries_prev > 0:
                total.qps = total.queries - total.queries_prev
            total.queries_prev = total.queries
            total.qps_max = max(total.qps_max, total.qps)

    def reset(self) -> None:
        """Clear counters and tables.

        The 500ms-1s latency bucket and the public suffix and effective
        TLD+1 tables are kept.
        """
        with self._lock:
            kept_latency = self._total.latency_500_1000
            self._total = Counters(latency_500_1000=kept_latency)
            for kind in StatKind:
                if kind not in _KEPT_ON_RESET:
                    self._clear_table(kind)
            self._as_owners = {}

    def counters(self) -> Counters:
        """Return a snapshot of the scalar counters."""
        with self._lock:
            return dataclasses.replace(self._total)

    def total(self, kind: StatKind) -> int:
        """Return the number of distinct names seen in a table."""
        with self._lock:
            return len(self._counts[kind])

    def top(self, kind: StatKind) -> list[TopMapItem]:
        """Return the top names of a table, highest hit count first."""
        with self._lock:
            return self._tops[kind].get()

    def counts(self, kind: StatKind) -> dict[str, int]:
        """Return a copy of the hit counts of a table."""
        with self._lock:
            return dict(self._counts[kind])

    def as_owners(self) -> dict[str, str]:
        """Return a copy of the autonomous system number to owner map."""
        with self._lock:
            return dict(self._as_owners)