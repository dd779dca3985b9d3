"""Statistics kept per capture identity, plus a global aggregate."""

from __future__ import annotations

import threading

from dnscollector.model import Config, DnsMessage
from dnscollector.stream import Counters, StatKind, StreamStats
from dnscollector.topmap import TopMapItem

GLOBAL_STREAM = "global"


class StreamsStats:
    """Routes every message to the global stream and to its identity's stream."""

    def __init__(self, config: Config, version: str) -> None:
        self.config = config
        self.version = version
        self._lock = threading.Lock()
        self._streams: dict[str, StreamStats] = {
            GLOBAL_STREAM: StreamStats(config, GLOBAL_STREAM)
        }

    def _find(self, identity: str) -> StreamStats | None:
        with self._lock:
            return self._streams.get(identity)

    def record(self, dm: DnsMessage) -> None:
        """Account for a message in the global stream and its identity's stream."""
        with self._lock:
            self._streams[GLOBAL_STREAM].record(dm)
            identity = dm.dnstap.identity
            stream = self._streams.get(identity)
            if stream is None:
                stream = StreamStats(self.config, identity)
                self._streams[identity] = stream
            stream.record(dm)

    def streams(self) -> list[str]:
        """Return the names of all known streams."""
        with self._lock:
            return list(self._streams)

    def compute(self) -> None:
        """Update the rates of every stream."""
        with self._lock:
            for stream in self._streams.values():
                stream.compute()

    def reset(self, identity: str) -> None:
        """Reset one stream; unknown identities are ignored."""
        stream = self._find(identity)
        if stream is not None:
            stream.reset()

    def counters(self, identity: str) -> Counters:
        """Return the counters of a stream.

        Raises KeyError if the stream does not exist.
        """
        stream = self._find(identity)
        if stream is None:
            raise KeyError(identity)
        return stream.counters()

    def total(self, identity: str, kind: StatKind) -> int:
        """Return the number of distinct names in a table, 0 for unknown streams."""
        stream = self._find(identity)
        return 0 if stream is None else stream.total(kind)

    def top(self, identity: str, kind: StatKind) -> list[TopMapItem]:
        """Return the top names of a table, empty for unknown streams."""
        stream = self._find(identity)
        return [] if stream is None else stream.top(kind)

    def counts(self, identity: str, kind: StatKind) -> dict[str, int]:
        """Return a copy of the hit counts of a table, empty for unknown streams."""
        stream = self._find(identity)
        return {} if stream is None else stream.counts(kind)

    def as_owners(self, identity: str) -> dict[str, str]:
        """Return the AS number to owner map, empty for unknown streams."""
        stream = self._find(identity)
        return {} if stream is None else stream.as_owners()