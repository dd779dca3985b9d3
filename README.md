# dnscollector

Building blocks for processing observed DNS traffic: decide which messages
to keep, mask client addresses for privacy, and gather per-stream
statistics that can be rendered in the Prometheus text exposition format.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Overview

| Module | Purpose |
| --- | --- |
| `dnscollector.model` | `DnsMessage` and its parts (`DnsInfo`, `DnsFlags`, `NetworkInfo`, `DnstapInfo`), plus the configuration dataclasses (`Config`, `FilteringConfig`, `StatisticsConfig`, `UserPrivacyConfig`, `CacheConfig`). |
| `dnscollector.anonymizer` | `IpAnonymizer`: zeroes the host part of IPv4 addresses to /16 and of IPv6 addresses to /64. |
| `dnscollector.filtering` | `FilteringProcessor`: drops messages by type, rcode, query IP (keep/drop lists of addresses and prefixes), exact FQDN or domain regular expression. |
| `dnscollector.topmap` | `TopMap` and `TopMapItem`: a bounded ranking of names by hit count. |
| `dnscollector.stream` | `StreamStats`, `Counters` and `StatKind`: counters, histograms and top lists for one stream. |
| `dnscollector.statistics` | `StreamsStats`: a `global` stream plus one stream per capture identity (`dm.dnstap.identity`). |
| `dnscollector.metrics` | `render_metrics`, `metric_help_lines`, `stream_metric_lines`: Prometheus exposition text. |

## Example

```python
from dnscollector.model import DNS_QUERY, Config, DnsMessage
from dnscollector.filtering import FilteringProcessor
from dnscollector.anonymizer import IpAnonymizer
from dnscollector.statistics import StreamsStats
from dnscollector.stream import StatKind
from dnscollector.metrics import render_metrics

config = Config()
config.filtering.drop_rcodes = ["SERVFAIL"]
config.user_privacy.anonymize_ip = True

filtering = FilteringProcessor(config)
anonymizer = IpAnonymizer(config)
stats = StreamsStats(config, version="0.1.0")

dm = DnsMessage()
dm.dns.type = DNS_QUERY
dm.dns.qname = "www.example.com"
dm.dns.qtype = "A"
dm.network.query_ip = "192.168.1.2"

if not filtering.check_if_drop(dm):
    if anonymizer.enabled:
        dm.network.query_ip = anonymizer.anonymize(dm.network.query_ip)  # "192.168.0.0"
    stats.record(dm)

stats.compute()                              # call periodically to update pps/qps
print(stats.total("global", StatKind.DOMAINS))   # 1
print(render_metrics(stats))
```

`IpAnonymizer.anonymize` raises `ValueError` for a string that is not an IP
address.

## Filtering lists

`FilteringConfig` names the files the filter reads when it is created:

- `drop_query_ip_file` / `keep_query_ip_file`: one address or CIDR prefix
  per line. An address in the keep list is never dropped, even when it also
  matches the drop list. Lines that are neither are logged and skipped.
- `drop_fqdn_file`: one query name per line, matched exactly (lower-cased).
- `drop_domain_file`: one regular expression per line, matched anywhere in
  the query name.

`log_queries` and `log_replies` set to `False` drop all queries or all
replies; `drop_rcodes` drops messages with any of the listed rcodes.

## Statistics

`StreamsStats.record` accounts for a message in the `global` stream and in
the stream named after its identity. Per-name tables are read with
`total`, `top` and `counts`, selecting the table with a `StatKind`
(`DOMAINS`, `NXDOMAINS`, `CLIENTS`, `SUSPICIOUS_DOMAINS`, `AS`, ...).
`counters(identity)` returns a `Counters` snapshot and raises `KeyError`
for an unknown stream; the other readers return empty values instead.
`reset(identity)` clears a stream's counters and tables.

A name is counted as suspicious when its length reaches
`threshold_qname_len`, its qtype is not in `common_qtypes`, or the packet
length reaches `threshold_packet_len`. Malformed packets only count towards
packets, malformed packets and suspicious clients.

## What this package does not do

It does not capture or decode DNS traffic, and it does not measure latency
itself: messages must arrive already filled in, with any latency set in
`dm.dnstap.latency`. `render_metrics` returns text; serving it over HTTP is
left to the caller. There is no command-line program.