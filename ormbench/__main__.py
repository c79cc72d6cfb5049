"""
Command line entry point.

Usage:
    python -m ormbench --insert asyncpg
    python -m ormbench --select sqlalchemy --cpu select.prof
    python -m ormbench --insert psycopg --select pymongo --mem heap.snapshot --report run.json
"""

import argparse
import sys
from contextlib import ExitStack

from pydantic import ValidationError

from ormbench.adapters import backend_names, get_adapter
from ormbench.config import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SELECT_COUNT,
    DEFAULT_TOTAL_COUNT,
    BackendConfig,
    WorkloadConfig,
)
from ormbench.errors import OrmBenchError
from ormbench.generator import RecordGenerator
from ormbench.logging_config import get_logger, setup_logging
from ormbench.metrics import MetricsReporter, WorkloadMetrics
from ormbench.models import BenchmarkSample
from ormbench.profiling import ProfileScope
from ormbench.report import RunReport, save_report
from ormbench.runner import BenchmarkRunner

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    names = backend_names()
    parser = argparse.ArgumentParser(
        prog="ormbench",
        description="Compare insert and select throughput of database client libraries",
    )
    parser.add_argument("--insert", choices=names, default=None, help="benchmark inserts with the given library")
    parser.add_argument("--select", choices=names, default=None, help="benchmark selects with the given library")
    parser.add_argument("--cpu", metavar="PATH", default=None, help="write cpu profile to file")
    parser.add_argument("--mem", metavar="PATH", default=None, help="write heap snapshot to file")
    parser.add_argument(
        "--total-count",
        type=int,
        default=DEFAULT_TOTAL_COUNT,
        help=f"records to insert, the loop runs one extra iteration (default: {DEFAULT_TOTAL_COUNT})",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=DEFAULT_BATCH_SIZE,
        help=f"inserts between progress lines (default: {DEFAULT_BATCH_SIZE})",
    )
    parser.add_argument(
        "--select-count",
        type=int,
        default=DEFAULT_SELECT_COUNT,
        help=f"select calls to issue (default: {DEFAULT_SELECT_COUNT})",
    )
    parser.add_argument("--report", metavar="PATH", default=None, help="write a JSON summary to file")
    return parser.parse_args(argv)


def run_workloads(
    insert_name: str | None,
    select_name: str | None,
    config: BackendConfig,
    runner: BenchmarkRunner,
) -> list[BenchmarkSample]:
    """Connect every requested backend first, then run insert before select."""
    samples = []
    with ExitStack() as stack:
        insert_adapter = stack.enter_context(get_adapter(insert_name, config)) if insert_name else None
        select_adapter = stack.enter_context(get_adapter(select_name, config)) if select_name else None

        if insert_adapter is not None:
            samples.append(runner.run_insert(insert_adapter))
        if select_adapter is not None:
            samples.append(runner.run_select(select_adapter))
    return samples


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        config = BackendConfig.from_env()
        workload = WorkloadConfig(
            total_count=args.total_count,
            batch_size=args.batch_size,
            select_count=args.select_count,
        )
    except ValidationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    if args.insert is None and args.select is None:
        logger.warning("No workload selected; pass --insert and/or --select")

    generator = RecordGenerator()
    logger.debug("Record generator seeded with %d", generator.seed)
    reporter = MetricsReporter()
    runner = BenchmarkRunner(workload=workload, generator=generator, reporter=reporter)
    report = RunReport()

    try:
        with ProfileScope(cpu_path=args.cpu, heap_path=args.mem):
            samples = run_workloads(args.insert, args.select, config, runner)
            usage = reporter.report_memory()
    except OrmBenchError as e:
        logger.error("%s", e)
        return 1

    if args.report:
        for sample in samples:
            report.add(sample, WorkloadMetrics.from_sample(sample))
        report.set_memory(usage)
        path = save_report(report, args.report)
        logger.info("Report written to %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
