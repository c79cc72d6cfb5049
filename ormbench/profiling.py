"""
CPU and heap profiling around a benchmark run.

CPU profiles are written in the marshal format read by ``pstats.Stats``;
heap snapshots are pickled ``tracemalloc.Snapshot`` objects readable with
``tracemalloc.Snapshot.load``.
"""

import cProfile
import gc
import marshal
import os
import pickle
import tempfile
import tracemalloc
from pathlib import Path
from typing import IO

from ormbench.errors import ProfilingError
from ormbench.logging_config import get_logger

logger = get_logger(__name__)

_heap_mode_entered = False


def enter_heap_profiling_mode() -> None:
    """
    Disable the garbage collector and start allocation tracing.

    This is a process-wide mode entered at most once, before any workload
    runs, so that the final snapshot is not disturbed by collections.
    """
    global _heap_mode_entered
    if _heap_mode_entered:
        raise ProfilingError("heap profiling mode can only be entered once per process")
    _heap_mode_entered = True
    gc.disable()
    tracemalloc.start()


def leave_heap_profiling_mode() -> None:
    if tracemalloc.is_tracing():
        tracemalloc.stop()
    gc.enable()


class ProfileScope:
    """
    Context manager owning the profiling sinks for one run.

    Sinks are opened on entry so that a bad path fails before any workload.
    The CPU profile is finalized on every exit path. The heap snapshot is
    written to a temporary file next to its target and only moved into place
    when the run completed, so a failed run leaves an earlier snapshot intact.
    """

    def __init__(self, cpu_path: str | None = None, heap_path: str | None = None):
        self.cpu_path = cpu_path
        self.heap_path = heap_path
        self._cpu_sink: IO[bytes] | None = None
        self._heap_sink: IO[bytes] | None = None
        self._heap_tmp_path: str | None = None
        self._profiler: cProfile.Profile | None = None
        self._heap_active = False

    @property
    def active(self) -> bool:
        return self._profiler is not None or self._heap_active

    def _open(self, path: str) -> IO[bytes]:
        try:
            return open(path, "wb")
        except OSError as e:
            raise ProfilingError(f"cannot open profile sink {path}: {e}") from e

    def _open_heap_tmp(self, path: str) -> IO[bytes]:
        target = Path(path)
        try:
            fd, self._heap_tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        except OSError as e:
            raise ProfilingError(f"cannot open profile sink {path}: {e}") from e
        return os.fdopen(fd, "wb")

    def __enter__(self) -> "ProfileScope":
        try:
            if self.heap_path:
                self._heap_sink = self._open_heap_tmp(self.heap_path)
            if self.cpu_path:
                self._cpu_sink = self._open(self.cpu_path)
            if self._heap_sink is not None:
                enter_heap_profiling_mode()
                self._heap_active = True
        except ProfilingError:
            self._close_sinks()
            raise

        if self._cpu_sink is not None:
            self._profiler = cProfile.Profile()
            self._profiler.enable()
            logger.info("CPU profiling to %s", self.cpu_path)
        if self._heap_active:
            logger.info("Heap profiling to %s (garbage collection disabled)", self.heap_path)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self._stop_cpu()
        except ProfilingError as e:
            # Never mask the failure that ended the run.
            if exc_type is None:
                raise
            logger.error("%s", e)
        finally:
            self._stop_heap(write_snapshot=exc_type is None)

    def _stop_cpu(self) -> None:
        if self._profiler is None:
            return
        profiler, self._profiler = self._profiler, None
        sink, self._cpu_sink = self._cpu_sink, None
        try:
            profiler.create_stats()
            marshal.dump(profiler.stats, sink)
        except (OSError, ValueError) as e:
            raise ProfilingError(f"could not write CPU profile: {e}") from e
        finally:
            sink.close()
        logger.info("CPU profile written to %s", self.cpu_path)

    def _stop_heap(self, write_snapshot: bool) -> None:
        if not self._heap_active:
            return
        self._heap_active = False
        sink, self._heap_sink = self._heap_sink, None
        tmp_path, self._heap_tmp_path = self._heap_tmp_path, None
        replaced = False
        try:
            if write_snapshot:
                snapshot = tracemalloc.take_snapshot()
                pickle.dump(snapshot, sink, pickle.HIGHEST_PROTOCOL)
                sink.close()
                os.replace(tmp_path, self.heap_path)
                replaced = True
                logger.info("Heap profile written to %s", self.heap_path)
        except OSError as e:
            raise ProfilingError(f"could not write memory profile: {e}") from e
        finally:
            sink.close()
            if not replaced:
                _discard(tmp_path)
            leave_heap_profiling_mode()

    def _close_sinks(self) -> None:
        for sink in (self._cpu_sink, self._heap_sink):
            if sink is not None:
                sink.close()
        _discard(self._heap_tmp_path)
        self._cpu_sink = self._heap_sink = None
        self._heap_tmp_path = None


def _discard(path: str | None) -> None:
    if path is None:
        return
    try:
        os.unlink(path)
    except OSError:
        pass
