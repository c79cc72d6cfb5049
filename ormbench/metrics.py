"""
Derived figures for a finished workload and the process memory summary.

Everything here is pure arithmetic over a BenchmarkSample except
``read_memory_usage``, which samples the current process once.
"""

import logging
import resource
import sys
from dataclasses import dataclass

import psutil

from ormbench.logging_config import get_logger
from ormbench.models import BenchmarkSample

MB = 1024 * 1024


def throughput(operations: int, elapsed: float) -> float:
    """Operations per second; zero when nothing ran or no time elapsed."""
    if operations <= 0 or elapsed <= 0:
        return 0.0
    return operations / elapsed


def mean_latency(operations: int, elapsed: float) -> float:
    """Seconds per operation; zero when nothing ran."""
    if operations <= 0:
        return 0.0
    return elapsed / operations


def in_thousands(count: int | float) -> float:
    return count / 1e3


def _trimmed(value: int, unit: int) -> str:
    """``value / unit`` as a decimal without trailing zeros."""
    whole, rest = divmod(value, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{str(rest).rjust(digits, '0').rstrip('0')}"


def format_duration(seconds: float) -> str:
    """Render a duration the compact way: 1h2m3.5s, 1.5s, 12.3ms, 45µs, 500ns."""
    ns = round(seconds * 1e9)
    if ns <= 0:
        return "0s"
    if ns < 1_000:
        return f"{ns}ns"
    if ns < 1_000_000:
        return f"{_trimmed(ns, 1_000)}µs"
    if ns < 1_000_000_000:
        return f"{_trimmed(ns, 1_000_000)}ms"
    minutes, ns = divmod(ns, 60 * 1_000_000_000)
    hours, minutes = divmod(minutes, 60)
    text = f"{_trimmed(ns, 1_000_000_000)}s"
    if hours:
        return f"{hours}h{minutes}m{text}"
    if minutes:
        return f"{minutes}m{text}"
    return text


@dataclass
class WorkloadMetrics:
    """Throughput and latency derived from one sample."""

    backend: str
    mode: str
    operations: int
    elapsed: float
    throughput: float
    mean_latency: float
    rows_found: int | None = None

    @classmethod
    def from_sample(cls, sample: BenchmarkSample) -> "WorkloadMetrics":
        return cls(
            backend=sample.backend,
            mode=sample.mode,
            operations=sample.operations,
            elapsed=sample.elapsed,
            throughput=throughput(sample.operations, sample.elapsed),
            mean_latency=mean_latency(sample.operations, sample.elapsed),
            rows_found=sample.rows_found,
        )


@dataclass
class MemoryUsage:
    """Resident set size now and its high-water mark, not cumulative allocation."""

    rss_bytes: int
    peak_rss_bytes: int

    @property
    def rss_mb(self) -> float:
        return self.rss_bytes / MB

    @property
    def peak_rss_mb(self) -> float:
        return self.peak_rss_bytes / MB


def read_memory_usage() -> MemoryUsage:
    """Resident set size now and its high-water mark since process start."""
    current = psutil.Process().memory_info().rss
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is reported in kilobytes on Linux and in bytes on macOS.
    if sys.platform != "darwin":
        peak *= 1024
    return MemoryUsage(rss_bytes=current, peak_rss_bytes=max(peak, current))


def format_insert_summary(metrics: WorkloadMetrics) -> str:
    return (
        f"insert finished within {format_duration(metrics.elapsed)} "
        f"({metrics.throughput:.2f} inserts per second, {format_duration(metrics.mean_latency)} latency)"
    )


def format_select_summary(metrics: WorkloadMetrics) -> str:
    return (
        f"selected {in_thousands(metrics.operations):.0f}K times within {format_duration(metrics.elapsed)} "
        f"({metrics.throughput:.2f} selects per second, {format_duration(metrics.mean_latency)} latency, "
        f"{in_thousands(metrics.rows_found or 0):.0f}K found)"
    )


def format_memory(usage: MemoryUsage) -> str:
    return f"allocated mem: {usage.rss_mb:.2f}M RSS out of {usage.peak_rss_mb:.2f}M peak RSS"


class MetricsReporter:
    """Turns samples into summary lines on the ``ormbench`` logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or get_logger("ormbench.metrics")

    def summarize(self, sample: BenchmarkSample) -> WorkloadMetrics:
        metrics = WorkloadMetrics.from_sample(sample)
        if sample.mode == "select":
            self.logger.info(format_select_summary(metrics))
        else:
            self.logger.info(format_insert_summary(metrics))
        return metrics

    def report_memory(self, usage: MemoryUsage | None = None) -> MemoryUsage:
        usage = usage or read_memory_usage()
        self.logger.info(format_memory(usage))
        return usage
