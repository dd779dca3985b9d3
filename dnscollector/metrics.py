"""Prometheus text exposition of the collected statistics."""

from __future__ import annotations

import math
from decimal import Decimal

from dnscollector.statistics import StreamsStats
from dnscollector.stream import StatKind

# (metric suffix, help text, metric type), in exposition order.
_METRICS: tuple[tuple[str, str, str], ...] = (
    ("build_info", "Build version", "gauge"),
    ("requesters_total", "Number of clients", "counter"),
    ("requesters_top_total", "Number of hit per client, partitioned by client ip", "counter"),
    ("domains_total", "Number of domains", "counter"),
    ("domains_top_total", "Number of hit per domain, partitioned by qname", "counter"),
    ("domains_nx_total", "Number of unknown domains", "counter"),
    ("domains_nx_top_total", "Number of hit per unknown domain, partitioned by qname", "counter"),
    ("domains_slow_total", "Number of slow domains", "counter"),
    ("domains_slow_top_total", "Number of hit per slow domain, partitioned by qname", "counter"),
    ("domains_suspicious_total", "Number of suspicious domains", "counter"),
    (
        "domains_suspicious_top_total",
        "Number of hit per suspicious domains, partitioned by qname",
        "counter",
    ),
    ("pps", "Number of packets per second received", "gauge"),
    ("pps_max_total", "Maximum number of packets per second received", "counter"),
    ("packets_total", "Number of packets", "counter"),
    ("operations_total", "Number of packet, partitioned by operations", "counter"),
    ("transports_total", "Number of packets, partitioned by transport", "counter"),
    ("ipproto_total", "Number of packets, partitioned by IP protocol", "counter"),
    ("qtypes_total", "Number of qtypes, partitioned by qtype", "counter"),
    ("rcodes_total", "Number of rcodes, partitioned by rcode type", "counter"),
    ("latency_total", "Number of queries answered, partitioned by latency interval", "counter"),
    ("latency_max_total", "Maximum latency observed", "counter"),
    ("latency_min_total", "Minimum latency observed", "counter"),
    ("qname_len_total", "Number of qname, partitioned by qname length", "counter"),
    ("qname_len_max_total", "Maximum qname length observed", "counter"),
    ("qname_len_min_total", "Minimum qname length observed", "counter"),
    ("query_len_total", "Number of query, partitioned by query length", "counter"),
    ("query_len_max_total", "Maximum query length observed", "counter"),
    ("query_len_min_total", "Minimum query length observed", "counter"),
    ("reply_len_total", "Number of reply, partitioned by reply length", "counter"),
    ("reply_len_max_total", "Maximum reply length observed", "counter"),
    ("reply_len_min_total", "Minimum reply length observed", "counter"),
    ("packets_malformed_total", "Number of packets", "counter"),
    ("requesters_suspicious_total", "Number of suspicious clients", "counter"),
    (
        "requesters_suspicious_top_total",
        "Number of hit per suspicious clients, partitioned by ip",
        "counter",
    ),
    ("received_bytes_total", "Total bytes received", "counter"),
    ("sent_bytes_total", "Total bytes sent", "counter"),
    ("firstleveldomains_total", "Number of first level domains", "counter"),
    ("firstleveldomains_top_total", "Number of hit per first level domains", "counter"),
    ("publicsuffix_total", "Number of first level domains", "counter"),
    ("publicsuffix_top_total", "Number of hit per first level domains", "counter"),
    ("effectivetldplusone_total", "Number of first level domains", "counter"),
    ("effectivetldplusone_top_total", "Number of hit per first level domains", "counter"),
    ("qps", "Number of queries per second received", "gauge"),
    ("qps_max_total", "Maximum number of queries per second received", "counter"),
    ("truncated_total", "Total truncated replies", "counter"),
    ("authoritative_answer_total", "Total authoritative answer replies", "counter"),
    ("recursion_available_total", "Total recursion available replies", "counter"),
    ("authentic_data_total", "Total authentic data replies", "counter"),
    ("as_stats_total", "Total autonomous system observed", "counter"),
    ("as_stats_top_total", "Top number of hit per autonomous system", "counter"),
)

_LATENCY_BUCKETS = (
    ("<1ms", "latency_0_1"),
    ("1-10ms", "latency_1_10"),
    ("10-50ms", "latency_10_50"),
    ("50-100ms", "latency_50_100"),
    ("100-500ms", "latency_100_500"),
    ("500-1s", "latency_500_1000"),
    (">1s", "latency_1000_inf"),
)

_QNAME_BUCKETS = (
    ("<10", "qname_length_0_10"),
    ("10-20", "qname_length_10_20"),
    ("20-40", "qname_length_20_40"),
    ("40-60", "qname_length_40_60"),
    ("60-100", "qname_length_60_100"),
    (">100", "qname_length_100_inf"),
)

_PACKET_BUCKETS = (
    ("<50b", "0_50"),
    ("50-100b", "50_100"),
    ("100-250b", "100_250"),
    ("250-500b", "250_500"),
    (">500b", "500_inf"),
)


def _format_value(value: float | int) -> str:
    """Format a number the way the exposition expects (shortest form)."""
    if isinstance(value, bool) or isinstance(value, int):
        return str(int(value))
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign = "-" if value < 0 else ""
    number = Decimal(repr(abs(value))).normalize()
    digits = "".join(str(d) for d in number.as_tuple().digits)
    exponent = number.adjusted()
    if exponent < -4 or exponent >= 21:
        mantissa = digits[0] + (f".{digits[1:]}" if len(digits) > 1 else "")
        exp_sign = "+" if exponent >= 0 else "-"
        return f"{sign}{mantissa}e{exp_sign}{abs(exponent):02d}"
    return sign + format(number, "f")


def metric_help_lines(prefix: str) -> list[str]:
    """Return the HELP and TYPE header lines for every metric."""
    lines: list[str] = []
    for name, text, kind in _METRICS:
        lines.append(f"# HELP {prefix}_{name} {text}")
        lines.append(f"# TYPE {prefix}_{name} {kind}")
    return lines


def _top_lines(
    stats: StreamsStats, stream: str, prefix: str, metric: str, label: str, kind: StatKind
) -> list[str]:
    return [
        f'{prefix}_{metric}{{stream="{stream}",{label}="{item.name}"}} {item.hit}'
        for item in stats.top(stream, kind)
    ]


def _total_line(stats: StreamsStats, stream: str, prefix: str, metric: str, kind: StatKind) -> str:
    return f'{prefix}_{metric}{{stream="{stream}"}} {stats.total(stream, kind)}'


def stream_metric_lines(stats: StreamsStats, stream: str, prefix: str) -> list[str]:
    """Return the sample lines for one stream."""
    counters = stats.counters(stream)
    lines: list[str] = []

    def total_and_top(metric: str, label: str, kind: StatKind) -> None:
        lines.append(_total_line(stats, stream, prefix, f"{metric}_total", kind))
        lines.extend(_top_lines(stats, stream, prefix, f"{metric}_top_total", label, kind))

    def scalar(metric: str, value: float | int) -> None:
        lines.append(f'{prefix}_{metric}{{stream="{stream}"}} {_format_value(value)}')

    total_and_top("requesters", "ip", StatKind.CLIENTS)
    total_and_top("domains", "domain", StatKind.DOMAINS)
    total_and_top("publicsuffix", "domain", StatKind.PUBLIC_SUFFIX)
    total_and_top("effectivetldplusone", "domain", StatKind.EFFECTIVE_TLD_PLUS_ONE)
    total_and_top("domains_nx", "domain", StatKind.NXDOMAINS)
    total_and_top("domains_slow", "domain", StatKind.SLOW_DOMAINS)
    total_and_top("domains_suspicious", "domain", StatKind.SUSPICIOUS_DOMAINS)

    scalar("pps", counters.pps)
    scalar("pps_max_total", counters.pps_max)

    scalar("packets_total", counters.packets)
    lines.extend(_top_lines(stats, stream, prefix, "operations_total", "operation", StatKind.OPERATIONS))
    lines.extend(_top_lines(stats, stream, prefix, "transports_total", "transport", StatKind.TRANSPORTS))
    lines.extend(_top_lines(stats, stream, prefix, "ipproto_total", "ip", StatKind.IPPROTO))
    lines.extend(_top_lines(stats, stream, prefix, "qtypes_total", "qtype", StatKind.RRTYPES))
    lines.extend(_top_lines(stats, stream, prefix, "rcodes_total", "rcode", StatKind.RCODES))

    for label, field_name in _LATENCY_BUCKETS:
        value = getattr(counters, field_name)
        lines.append(f'{prefix}_latency_total{{stream="{stream}",latency="{label}"}} {value}')
    scalar("latency_max_total", counters.latency_max)
    scalar("latency_min_total", counters.latency_min)

    for label, field_name in _QNAME_BUCKETS:
        value = getattr(counters, field_name)
        lines.append(f'{prefix}_qname_len_total{{stream="{stream}",length="{label}"}} {value}')
    scalar("qname_len_max_total", counters.qname_length_max)
    scalar("qname_len_min_total", counters.qname_length_min)

    for side in ("query", "reply"):
        for label, bucket in _PACKET_BUCKETS:
            value = getattr(counters, f"{side}_length_{bucket}")
            lines.append(f'{prefix}_{side}_len_total{{stream="{stream}",length="{label}"}} {value}')
        scalar(f"{side}_len_max_total", getattr(counters, f"{side}_length_max"))
        scalar(f"{side}_len_min_total", getattr(counters, f"{side}_length_min"))

    scalar("packets_malformed_total", counters.packets_malformed)
    total_and_top("requesters_suspicious", "ip", StatKind.SUSPICIOUS_CLIENTS)

    scalar("received_bytes_total", counters.received_bytes_total)
    scalar("sent_bytes_total", counters.sent_bytes_total)

    total_and_top("firstleveldomains", "domain", StatKind.FIRST_LEVEL_DOMAINS)
    total_and_top("publicsuffix", "domain", StatKind.PUBLIC_SUFFIX)
    total_and_top("effectivetldplusone", "domain", StatKind.EFFECTIVE_TLD_PLUS_ONE)

    scalar("qps", counters.qps)
    scalar("qps_max_total", counters.qps_max)

    scalar("truncated_total", counters.truncated)
    scalar("authoritative_answer_total", counters.authoritative_answer)
    scalar("recursion_available_total", counters.recursion_available)
    scalar("authentic_data_total", counters.authentic_data)

    lines.append(_total_line(stats, stream, prefix, "as_stats_total", StatKind.AS))
    owners = stats.as_owners(stream)
    for item in stats.top(stream, StatKind.AS):
        owner = owners.get(item.name, "-")
        lines.append(
            f'{prefix}_as_stats_top_total{{stream="{stream}",number="{item.name}",'
            f'owner="{owner}"}} {item.hit}'
        )
    return lines


def render_metrics(stats: StreamsStats) -> str:
    """Render all streams in the Prometheus text format."""
    prefix = stats.config.statistics.prom_prefix
    lines = metric_help_lines(prefix)
    lines.append(f'{prefix}_build_info{{version="{stats.version}"}} 1')
    for stream in stats.streams():
        lines.extend(stream_metric_lines(stats, stream, prefix))
    return "\n".join(lines) + "\n"