"""Machine-readable summary of a run, written next to the log output."""

import os
import platform
import tempfile
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field

from ormbench.metrics import MemoryUsage, WorkloadMetrics
from ormbench.models import BenchmarkSample


class WorkloadReport(BaseModel):
    sample: BenchmarkSample
    throughput: float
    mean_latency: float


class RunReport(BaseModel):
    schema_version: int = 1
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    python_version: str = Field(default_factory=platform.python_version)
    host_platform: str = Field(default_factory=platform.platform)
    workloads: list[WorkloadReport] = []
    memory: dict[str, int] | None = None

    def add(self, sample: BenchmarkSample, metrics: WorkloadMetrics) -> None:
        self.workloads.append(
            WorkloadReport(sample=sample, throughput=metrics.throughput, mean_latency=metrics.mean_latency)
        )

    def set_memory(self, usage: MemoryUsage) -> None:
        self.memory = asdict(usage)


def save_report(report: RunReport, path: str | Path) -> Path:
    """Write *report* as JSON, replacing *path* atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".json.tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(report.model_dump_json(indent=2))
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return path
