class OrmBenchError(Exception):
    """Base class for failures that abort a benchmark run."""


class ConnectionSetupError(OrmBenchError):
    """A backend could not be connected or prepared."""


class BackendOperationError(OrmBenchError):
    """A single insert or select call failed during a workload."""

    def __init__(self, backend: str, operation: str, iteration: int, message: str):
        self.backend = backend
        self.operation = operation
        self.iteration = iteration
        super().__init__(f"{backend}: {operation} #{iteration} failed: {message}")


class UnknownBackendError(OrmBenchError):
    """The requested backend name is not registered."""

    def __init__(self, name: str, known: list[str]):
        self.name = name
        self.known = known
        super().__init__(f"Unknown backend {name!r}; expected one of: {', '.join(known)}")


class ProfilingError(OrmBenchError):
    """A profiling sink could not be opened or written."""


class EndOfResults(Exception):
    """Raised by an adapter's result iterator when the store reports no more rows.

    This is a sentinel, not a failure: the select workload treats it as the
    normal end of one select call.
    """
