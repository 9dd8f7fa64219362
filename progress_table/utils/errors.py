class ProgressTableError(Exception):
    """Base class for progress table errors."""


class LogicalError(ProgressTableError):
    """Raised when an internal contract is violated, e.g. an unhandled value type."""


class SourceError(ProgressTableError):
    """Raised when an event source cannot be opened or read."""


class ProcessExitedError(SourceError):
    """Raised when the observed process is gone; ends sampling without failing the run."""
