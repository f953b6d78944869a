"""
Event classification.

Turns raw (path, op bits) notifications into CREATE/REMOVE/WRITE events,
applies the hidden-entry filter, and grows or prunes the watch set when
directories appear or disappear.
"""

import logging
import os
import stat
from typing import Optional

from fswatch.errors import FsWatchError
from fswatch.events import ClassifiedEvent, EventKind, Op, RawEvent, is_hidden

logger = logging.getLogger(__name__)


def _lstat_is_dir(path: str) -> Optional[bool]:
    """Return whether path is a directory, or None if it cannot be stat'ed."""
    try:
        return stat.S_ISDIR(os.lstat(path).st_mode)
    except OSError:
        return None


class EventClassifier:
    """
    Dispatch policy for raw events.

    Bits are checked in the order REMOVE, CREATE, WRITE, RENAME and the first
    match handles the event. A raw event that carries both CREATE and WRITE
    is therefore reported once, as a CREATE.

    Attributes:
        watchset: The WatchSetManager to extend or shrink.
        sink: Receives every ClassifiedEvent via emit().
    """

    def __init__(self, watchset, sink):
        self.watchset = watchset
        self.sink = sink

    def classify(self, raw: RawEvent) -> Optional[ClassifiedEvent]:
        """
        Classify one raw event, emit it, and apply any watch-set side effect.

        Returns:
            The emitted ClassifiedEvent, or None if the event was dropped.
        """
        if not raw.path or is_hidden(raw.path):
            return None

        if raw.op & Op.REMOVE:
            return self._on_remove(raw.path)
        if raw.op & Op.CREATE:
            return self._on_create(raw.path)
        if raw.op & Op.WRITE:
            return self._emit(ClassifiedEvent(EventKind.WRITE, raw.path, False))
        if raw.op & Op.RENAME:
            self._on_rename(raw.path)
        return None

    def _emit(self, event: ClassifiedEvent) -> ClassifiedEvent:
        self.sink.emit(event)
        return event

    def _on_remove(self, path: str) -> ClassifiedEvent:
        was_dir = _lstat_is_dir(path)
        if not was_dir and self.watchset.contains(path):
            was_dir = True
        event = self._emit(ClassifiedEvent(EventKind.REMOVE, path, was_dir))
        if was_dir:
            self.watchset.remove_tree(path)
        return event

    def _on_create(self, path: str) -> Optional[ClassifiedEvent]:
        is_dir = _lstat_is_dir(path)
        if is_dir is None:
            # Removed again before we got to it.
            logger.debug(f"Dropping create for vanished path {path}")
            return None
        event = self._emit(ClassifiedEvent(EventKind.CREATE, path, is_dir))
        if is_dir:
            try:
                self.watchset.add_tree(path)
            except FsWatchError as e:
                logger.debug(f"New directory {path} vanished before it was watched: {e}")
        return event

    def _on_rename(self, path: str):
        # The new name arrives as its own CREATE; only the old registrations
        # need to go.
        if self.watchset.contains(path):
            self.watchset.remove_tree(path)
