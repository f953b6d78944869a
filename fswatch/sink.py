"""Text output for classified events."""

import threading

import click


class EventSink:
    """
    Writes one "<KIND>: <path>" line per event.

    Args:
        file: Text stream to write to. Defaults to standard output.
    """

    def __init__(self, file=None):
        self.file = file
        self._lock = threading.Lock()

    def emit(self, event):
        with self._lock:
            click.echo(str(event), file=self.file)
