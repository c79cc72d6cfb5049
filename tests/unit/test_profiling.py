"""
Unit tests for ormbench.profiling.
Sinks are real files under tmp_path; the process-wide heap flag is reset per test.
"""

import gc
import pstats
import tracemalloc

from unittest.mock import patch

import pytest

from ormbench.errors import ProfilingError
from ormbench.profiling import ProfileScope, enter_heap_profiling_mode, leave_heap_profiling_mode


@pytest.fixture(autouse=True)
def reset_heap_mode(monkeypatch):
    monkeypatch.setattr("ormbench.profiling._heap_mode_entered", False)
    yield
    leave_heap_profiling_mode()


def _busy():
    return sum(i * i for i in range(1000))


class TestCpuProfile:
    """Test the CPU profile sink."""

    def test_writes_pstats_readable_file(self, tmp_path):
        path = tmp_path / "cpu.prof"

        with ProfileScope(cpu_path=str(path)) as scope:
            assert scope.active
            _busy()

        assert not scope.active
        stats = pstats.Stats(str(path))
        assert any(func[2] == "_busy" for func in stats.stats)

    def test_written_even_when_run_fails(self, tmp_path):
        """The CPU profile is finalized on the failure path as well."""
        path = tmp_path / "cpu.prof"

        with pytest.raises(RuntimeError):
            with ProfileScope(cpu_path=str(path)):
                _busy()
                raise RuntimeError("insert failed")

        assert path.stat().st_size > 0
        pstats.Stats(str(path))

    def test_unwritable_path_fails_before_run(self, tmp_path):
        scope = ProfileScope(cpu_path=str(tmp_path / "missing" / "cpu.prof"))

        with pytest.raises(ProfilingError, match="cannot open profile sink"):
            scope.__enter__()

        assert not scope.active

    def test_sink_error_does_not_mask_run_failure(self, tmp_path, caplog):
        """A failing CPU sink is logged while the run's own error propagates."""
        with patch("ormbench.profiling.marshal.dump", side_effect=OSError("No space left on device")):
            with pytest.raises(RuntimeError, match="insert failed"):
                with ProfileScope(cpu_path=str(tmp_path / "cpu.prof")):
                    raise RuntimeError("insert failed")

        assert any("could not write CPU profile" in r.getMessage() for r in caplog.records)

    def test_sink_error_raised_after_clean_run(self, tmp_path):
        with patch("ormbench.profiling.marshal.dump", side_effect=OSError("No space left on device")):
            with pytest.raises(ProfilingError, match="could not write CPU profile"):
                with ProfileScope(cpu_path=str(tmp_path / "cpu.prof")):
                    _busy()


class TestHeapProfile:
    """Test the heap snapshot sink and the GC mode it toggles."""

    def test_writes_loadable_snapshot(self, tmp_path):
        path = tmp_path / "heap.snapshot"

        with ProfileScope(heap_path=str(path)):
            assert not gc.isenabled()
            assert tracemalloc.is_tracing()
            data = [bytearray(1024) for _ in range(10)]

        snapshot = tracemalloc.Snapshot.load(str(path))
        assert isinstance(snapshot, tracemalloc.Snapshot)
        assert len(data) == 10

    def test_gc_restored_on_exit(self, tmp_path):
        with ProfileScope(heap_path=str(tmp_path / "heap.snapshot")):
            pass

        assert gc.isenabled()
        assert not tracemalloc.is_tracing()

    def test_failed_run_keeps_earlier_snapshot(self, tmp_path, monkeypatch):
        """A failed run neither truncates nor replaces a snapshot already on disk."""
        path = tmp_path / "heap.snapshot"
        with ProfileScope(heap_path=str(path)):
            pass
        before = path.read_bytes()
        monkeypatch.setattr("ormbench.profiling._heap_mode_entered", False)

        with pytest.raises(RuntimeError):
            with ProfileScope(heap_path=str(path)):
                raise RuntimeError("select failed")

        assert path.read_bytes() == before
        assert isinstance(tracemalloc.Snapshot.load(str(path)), tracemalloc.Snapshot)
        assert list(tmp_path.iterdir()) == [path]
        assert gc.isenabled()

    def test_failed_first_run_creates_no_file(self, tmp_path):
        path = tmp_path / "heap.snapshot"

        with pytest.raises(RuntimeError):
            with ProfileScope(heap_path=str(path)):
                raise RuntimeError("insert failed")

        assert list(tmp_path.iterdir()) == []
        assert gc.isenabled()

    def test_unwritable_heap_path_fails_before_run(self, tmp_path):
        scope = ProfileScope(heap_path=str(tmp_path / "missing" / "heap.snapshot"))

        with pytest.raises(ProfilingError, match="cannot open profile sink"):
            scope.__enter__()

        assert not scope.active
        assert gc.isenabled()

    def test_heap_mode_only_once(self):
        enter_heap_profiling_mode()

        with pytest.raises(ProfilingError, match="only be entered once"):
            enter_heap_profiling_mode()

    def test_second_scope_closes_its_sinks(self, tmp_path):
        """Failing to enter heap mode closes the sinks that were already opened."""
        enter_heap_profiling_mode()
        scope = ProfileScope(cpu_path=str(tmp_path / "cpu.prof"), heap_path=str(tmp_path / "heap.snapshot"))

        with pytest.raises(ProfilingError):
            scope.__enter__()

        assert scope._cpu_sink is None
        assert scope._heap_sink is None
        assert not scope.active
        assert [p.name for p in tmp_path.iterdir()] == ["cpu.prof"]


class TestNoProfiling:
    def test_inactive_scope_is_a_no_op(self):
        with ProfileScope() as scope:
            assert not scope.active

        assert gc.isenabled()

    def test_both_sinks(self, tmp_path):
        cpu = tmp_path / "cpu.prof"
        heap = tmp_path / "heap.snapshot"

        with ProfileScope(cpu_path=str(cpu), heap_path=str(heap)):
            _busy()

        pstats.Stats(str(cpu))
        tracemalloc.Snapshot.load(str(heap))
