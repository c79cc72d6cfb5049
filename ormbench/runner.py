"""
Insert and select workloads.

Both loops are strictly sequential: one adapter call at a time, no retries.
Any adapter failure other than ``EndOfResults`` aborts the workload with a
``BackendOperationError`` chained to the driver exception.
"""

import itertools
import time
from typing import Callable

from ormbench.adapters.base import BackendAdapter
from ormbench.config import WorkloadConfig
from ormbench.errors import BackendOperationError, EndOfResults
from ormbench.generator import RecordGenerator
from ormbench.logging_config import get_logger
from ormbench.metrics import MetricsReporter, format_duration, in_thousands
from ormbench.models import BatchProgress, BenchmarkSample

logger = get_logger(__name__)


class BenchmarkRunner:
    def __init__(
        self,
        workload: WorkloadConfig | None = None,
        generator: RecordGenerator | None = None,
        reporter: MetricsReporter | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.workload = workload or WorkloadConfig()
        self.generator = generator or RecordGenerator()
        self.reporter = reporter or MetricsReporter()
        self.clock = clock

    def run_insert(self, adapter: BackendAdapter) -> BenchmarkSample:
        """Insert ``iteration_count`` fresh records, logging a line per full batch."""
        batch_size = self.workload.batch_size
        sample = BenchmarkSample(backend=adapter.name, mode="insert")

        start = batch_start = self.clock()
        for i in range(self.workload.iteration_count):
            book = self.generator.fill()
            try:
                identifier = adapter.insert_one(book)
            except Exception as e:
                raise BackendOperationError(adapter.name, "insert", i, str(e)) from e
            if identifier is None:
                raise BackendOperationError(adapter.name, "insert", i, "no identifier returned")
            sample.operations += 1

            if i > 0 and i % batch_size == 0:
                now = self.clock()
                progress = BatchProgress(index=i, size=batch_size, elapsed=now - batch_start, last_id=str(identifier))
                sample.batches.append(progress)
                logger.info(
                    "inserted %.1fK within %s (current ID is %s)",
                    in_thousands(batch_size),
                    format_duration(progress.elapsed),
                    progress.last_id,
                )
                batch_start = now

        sample.elapsed = self.clock() - start
        self.reporter.summarize(sample)
        return sample

    def run_select(self, adapter: BackendAdapter) -> BenchmarkSample:
        """Issue ``select_count`` capped selects and count every row returned."""
        threshold = self.workload.price_threshold
        limit = self.workload.select_limit
        sample = BenchmarkSample(backend=adapter.name, mode="select", rows_found=0)

        found = 0
        start = self.clock()
        for i in range(self.workload.select_count):
            try:
                rows = iter(adapter.select_where(threshold, limit))
                try:
                    for _ in itertools.islice(rows, limit):
                        found += 1
                finally:
                    # Release the adapter's cursor even when the cap cut it short.
                    close = getattr(rows, "close", None)
                    if close is not None:
                        close()
            except EndOfResults:
                pass
            except Exception as e:
                raise BackendOperationError(adapter.name, "select", i, str(e)) from e
            sample.operations += 1

        sample.elapsed = self.clock() - start
        sample.rows_found = found
        self.reporter.summarize(sample)
        return sample
