import pytest

from dnscollector.model import DNS_QUERY, DNS_REPLY, Config, DnsMessage
from dnscollector.stream import StatKind, StreamStats
from dnscollector.topmap import TopMapItem


def make_query(qname="dnscollector.test.", **changes):
    dm = DnsMessage()
    dm.dns.type = DNS_QUERY
    dm.network.family = "INET"
    dm.network.protocol = "UDP"
    dm.dns.qname = qname
    for key, value in changes.items():
        section, attr = key.split("__")
        setattr(getattr(dm, section), attr, value)
    return dm


@pytest.fixture
def stats():
    return StreamStats(Config(), "test")


def test_record_counts_domain(stats):
    stats.record(make_query())
    assert stats.total(StatKind.DOMAINS) == 1


def test_same_domain_counted_once_with_hits(stats):
    stats.record(make_query())
    stats.record(make_query())
    assert stats.total(StatKind.DOMAINS) == 1
    assert stats.counts(StatKind.DOMAINS) == {"dnscollector.test.": 2}
    assert stats.top(StatKind.DOMAINS) == [TopMapItem("dnscollector.test.", 2)]


def test_malformed_only_counts_suspicious_client(stats):
    dm = make_query(dns__malformed_packet=True, network__query_ip="10.0.0.1")
    stats.record(dm)
    counters = stats.counters()
    assert counters.packets == 1
    assert counters.packets_malformed == 1
    assert counters.queries == 0
    assert stats.total(StatKind.DOMAINS) == 0
    assert stats.counts(StatKind.SUSPICIOUS_CLIENTS) == {"10.0.0.1": 1}


def test_query_and_reply_lengths(stats):
    stats.record(make_query(dns__length=40, dns__qtype="A"))
    reply = make_query(dns__length=300, dns__qtype="A")
    reply.dns.type = DNS_REPLY
    stats.record(reply)
    counters = stats.counters()
    assert counters.queries == 1
    assert counters.received_bytes_total == 40
    assert counters.sent_bytes_total == 300
    assert counters.query_length_0_50 == 1
    assert counters.reply_length_250_500 == 1
    assert counters.query_length_min == 40
    assert counters.reply_length_max == 300


def test_uncommon_qtype_is_suspicious(stats):
    stats.record(make_query(dns__qtype="A", network__query_ip="10.0.0.2"))
    assert stats.total(StatKind.SUSPICIOUS_DOMAINS) == 0
    stats.record(make_query(dns__qtype="ANY", network__query_ip="10.0.0.2"))
    assert stats.total(StatKind.SUSPICIOUS_DOMAINS) == 1
    assert stats.counts(StatKind.SUSPICIOUS_CLIENTS) == {"10.0.0.2": 1}


def test_long_packet_is_suspicious(stats):
    stats.record(make_query(dns__qtype="A", dns__length=1000))
    assert stats.counts(StatKind.SUSPICIOUS_DOMAINS) == {"dnscollector.test.": 1}
    assert stats.counters().query_length_500_inf == 1


def test_latency_buckets_and_slow_domains(stats):
    stats.record(make_query(dns__qtype="A", dnstap__latency=0.0005))
    stats.record(make_query(dns__qtype="A", dnstap__latency=0.7))
    stats.record(make_query(dns__qtype="A", dnstap__latency=2.0))
    counters = stats.counters()
    assert counters.latency_0_1 == 1
    assert counters.latency_500_1000 == 1
    assert counters.latency_1000_inf == 1
    assert counters.latency_min == 0.0005
    assert counters.latency_max == 2.0
    assert stats.counts(StatKind.SLOW_DOMAINS) == {"dnscollector.test.": 2}


def test_nxdomain_and_first_level_domain(stats):
    stats.record(make_query("www.example.com", dns__rcode="NXDOMAIN"))
    assert stats.counts(StatKind.NXDOMAINS) == {"www.example.com": 1}
    assert stats.counts(StatKind.FIRST_LEVEL_DOMAINS) == {"com": 1}


def test_public_suffix_requires_etld_plus_one(stats):
    stats.record(make_query("www.example.com"))
    assert stats.total(StatKind.PUBLIC_SUFFIX) == 0
    assert stats.total(StatKind.EFFECTIVE_TLD_PLUS_ONE) == 0
    stats.record(
        make_query(
            "www.example.com",
            dns__qname_public_suffix="com",
            dns__qname_effective_tld_plus_one="example.com",
        )
    )
    assert stats.counts(StatKind.PUBLIC_SUFFIX) == {"com": 1}
    assert stats.counts(StatKind.EFFECTIVE_TLD_PLUS_ONE) == {"example.com": 1}


def test_flags_and_as_owner(stats):
    dm = make_query(network__autonomous_system_number="64500",
                    network__autonomous_system_org="Example Org")
    dm.dns.flags.tc = True
    dm.dns.flags.ad = True
    stats.record(dm)
    other = make_query(network__autonomous_system_number="64500",
                       network__autonomous_system_org="Other")
    stats.record(other)
    counters = stats.counters()
    assert counters.truncated == 1
    assert counters.authentic_data == 1
    assert counters.authoritative_answer == 0
    assert stats.as_owners() == {"64500": "Example Org"}
    assert stats.counts(StatKind.AS) == {"64500": 2}


def test_compute_rates(stats):
    stats.record(make_query())
    stats.compute()
    assert stats.counters().pps == 0
    stats.record(make_query())
    stats.record(make_query())
    stats.compute()
    counters = stats.counters()
    assert counters.pps == 2
    assert counters.pps_max == 2
    assert counters.qps == 2
    assert counters.qps_max == 2


def test_reset_clears_tables_and_counters(stats):
    stats.record(make_query("a.example.com", dns__qname_public_suffix="com",
                            dns__qname_effective_tld_plus_one="example.com",
                            dnstap__latency=0.7))
    stats.reset()
    counters = stats.counters()
    assert counters.packets == 0
    assert counters.queries == 0
    assert stats.total(StatKind.DOMAINS) == 0
    assert stats.top(StatKind.CLIENTS) == []
    assert stats.as_owners() == {}
    assert counters.latency_500_1000 == 1
    assert stats.total(StatKind.PUBLIC_SUFFIX) == 1


def test_counters_is_snapshot(stats):
    snapshot = stats.counters()
    stats.record(make_query())
    assert snapshot.packets == 0
    assert stats.counters().packets == 1


def test_top_is_bounded_by_config():
    config = Config()
    config.statistics.top_max_items = 2
    stats = StreamStats(config, "bounded")
    for name in ("a.test", "b.test", "c.test"):
        stats.record(make_query(name))
    assert stats.total(StatKind.DOMAINS) == 3
    assert len(stats.top(StatKind.DOMAINS)) == 2