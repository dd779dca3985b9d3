"""Filtering, IP anonymization and per-stream statistics for observed DNS traffic."""

__version__ = "0.1.0"

__all__ = [
    "model",
    "anonymizer",
    "filtering",
    "topmap",
    "stream",
    "statistics",
    "metrics",
]