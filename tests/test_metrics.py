import pytest

from dnscollector.metrics import metric_help_lines, render_metrics, stream_metric_lines
from dnscollector.model import DNS_QUERY, Config, DnsMessage
from dnscollector.statistics import StreamsStats


def _message(identity="-", latency=0.0, asn="-", org="-"):
    dm = DnsMessage()
    dm.dns.type = DNS_QUERY
    dm.network.family = "INET"
    dm.network.protocol = "UDP"
    dm.dns.qname = "dnscollector.test."
    dm.dnstap.identity = identity
    dm.dnstap.latency = latency
    dm.network.autonomous_system_number = asn
    dm.network.autonomous_system_org = org
    return dm


def _stats(prefix="dnscollector"):
    config = Config()
    config.statistics.prom_prefix = prefix
    return StreamsStats(config, "1.2.3")


def test_help_lines_pair_help_and_type():
    lines = metric_help_lines("dnscollector")
    assert len(lines) % 2 == 0
    for help_line, type_line in zip(lines[::2], lines[1::2]):
        assert help_line.startswith("# HELP dnscollector_")
        name = help_line.split()[2]
        assert type_line.startswith(f"# TYPE {name} ")
        assert type_line.split()[3] in ("gauge", "counter")


def test_help_lines_contain_build_info():
    lines = metric_help_lines("dns")
    assert "# HELP dns_build_info Build version" in lines
    assert "# TYPE dns_build_info gauge" in lines


def test_render_contains_build_version():
    text = render_metrics(_stats())
    assert 'dnscollector_build_info{version="1.2.3"} 1' in text.splitlines()
    assert text.endswith("\n")


def test_render_counts_domain_per_stream():
    stats = _stats()
    stats.record(_message(identity="collector"))
    lines = render_metrics(stats).splitlines()
    assert 'dnscollector_domains_total{stream="global"} 1' in lines
    assert 'dnscollector_domains_total{stream="collector"} 1' in lines
    assert (
        'dnscollector_domains_top_total{stream="collector",domain="dnscollector.test."} 1'
        in lines
    )


def test_stream_lines_packets_and_transport():
    stats = _stats()
    stats.record(_message())
    stats.record(_message())
    lines = stream_metric_lines(stats, "global", "dnscollector")
    assert 'dnscollector_packets_total{stream="global"} 2' in lines
    assert 'dnscollector_transports_total{stream="global",transport="UDP"} 2' in lines
    assert 'dnscollector_ipproto_total{stream="global",ip="INET"} 2' in lines


def test_as_owner_is_reported():
    stats = _stats()
    stats.record(_message(asn="1234", org="Example Org"))
    lines = stream_metric_lines(stats, "global", "dnscollector")
    assert (
        'dnscollector_as_stats_top_total{stream="global",number="1234",owner="Example Org"} 1'
        in lines
    )
    assert 'dnscollector_as_stats_total{stream="global"} 1' in lines


def test_zero_latency_is_printed_as_integer_form():
    stats = _stats()
    stats.record(_message())
    lines = stream_metric_lines(stats, "global", "dnscollector")
    assert 'dnscollector_latency_max_total{stream="global"} 0' in lines
    assert 'dnscollector_latency_min_total{stream="global"} 0' in lines


@pytest.mark.parametrize("latency, text", [(0.25, "0.25"), (1e-05, "1e-05")])
def test_latency_float_formatting(latency, text):
    stats = _stats()
    stats.record(_message(latency=latency))
    lines = stream_metric_lines(stats, "global", "dnscollector")
    assert f'dnscollector_latency_max_total{{stream="global"}} {text}' in lines


def test_custom_prefix_applies_to_every_sample():
    stats = _stats(prefix="dns")
    stats.record(_message(identity="probe"))
    samples = [line for line in render_metrics(stats).splitlines() if not line.startswith("#")]
    assert samples
    assert all(line.startswith("dns_") for line in samples)


def test_every_stream_exposes_same_metric_names():
    stats = _stats()
    stats.record(_message(identity="probe"))

    def names(stream):
        return {line.split("{")[0] for line in stream_metric_lines(stats, stream, "x")}

    assert names("global") == names("probe")


def test_unknown_stream_raises_key_error():
    with pytest.raises(KeyError):
        stream_metric_lines(_stats(), "missing", "dnscollector")