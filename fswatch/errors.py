"""Exceptions raised by fswatch."""


class FsWatchError(Exception):
    """Base class for fswatch errors."""

    pass


class RootNotWatchableError(FsWatchError):
    """The watch root does not exist, is not a directory, or cannot be registered."""

    def __init__(self, path, cause=None):
        self.path = path
        self.cause = cause
        message = f"Can't watch {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class SourceClosed(FsWatchError):
    """Raised by NativeEventSource.get() once the source has shut down."""

    pass


class SourceError(FsWatchError):
    """An error reported by the native event source while delivering events."""

    def __init__(self, cause):
        self.cause = cause
        super().__init__(str(cause))
