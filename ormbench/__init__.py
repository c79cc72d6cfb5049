from ormbench.adapters import BackendAdapter, get_adapter
from ormbench.config import BackendConfig, WorkloadConfig
from ormbench.generator import RecordGenerator
from ormbench.metrics import MetricsReporter
from ormbench.models import Book, BenchmarkSample
from ormbench.profiling import ProfileScope
from ormbench.runner import BenchmarkRunner

__version__ = "0.1.0"

__all__ = [
    "BackendAdapter",
    "BackendConfig",
    "BenchmarkRunner",
    "BenchmarkSample",
    "Book",
    "MetricsReporter",
    "ProfileScope",
    "RecordGenerator",
    "WorkloadConfig",
    "get_adapter",
]
