"""
Native event source for fswatch.

A single inotify instance holds one watch per registered directory, so the
number of directories is bounded by fs.inotify.max_user_watches rather than
by the much smaller per-user instance limit. A reader thread turns inotify
events into RawEvent items on a queue which also carries SourceError items;
a sentinel marks the end of the stream once the source stops, whether it was
closed or the reader failed.
"""

import errno
import logging
import os
import queue
import threading
from typing import Dict, Union

from inotify_simple import INotify, flags

from fswatch.errors import SourceClosed, SourceError
from fswatch.events import Op, RawEvent

logger = logging.getLogger(__name__)

_CLOSED = object()

WATCH_FLAGS = (
    flags.CREATE
    | flags.MOVED_TO
    | flags.DELETE
    | flags.DELETE_SELF
    | flags.MODIFY
    | flags.MOVED_FROM
    | flags.MOVE_SELF
    | flags.ATTRIB
)


def _key(path) -> str:
    return os.path.normpath(os.fsdecode(path))


def op_from_mask(mask: int) -> Op:
    """Translate an inotify event mask into Op bits."""
    op = Op(0)
    if mask & (flags.CREATE | flags.MOVED_TO):
        op |= Op.CREATE
    if mask & (flags.DELETE | flags.DELETE_SELF):
        op |= Op.REMOVE
    if mask & flags.MODIFY:
        op |= Op.WRITE
    if mask & (flags.MOVED_FROM | flags.MOVE_SELF):
        op |= Op.RENAME
    if mask & flags.ATTRIB:
        op |= Op.CHMOD
    return op


class _InotifyReader(threading.Thread):
    """
    Reads the inotify descriptor and feeds the source queue.
    """

    def __init__(self, source, poll_interval=0.2):
        super(_InotifyReader, self).__init__(name="fswatch-inotify")
        self.source = source
        self.poll_interval = poll_interval
        self.stop_event = threading.Event()
        self.daemon = True

    def run(self):
        logger.debug("Inotify reader started")
        try:
            while not self.stop_event.is_set():
                try:
                    events = self.source.inotify.read(timeout=int(self.poll_interval * 1000))
                except OSError as e:
                    if self.stop_event.is_set():
                        break
                    self.source._queue.put(SourceError(e))
                    logger.error(f"Inotify read failed, stopping source: {e}")
                    break
                for event in events:
                    self.source._dispatch(event)
        finally:
            self.source._queue.put(_CLOSED)
            logger.debug("Inotify reader stopped")

    def stop(self):
        self.stop_event.set()


class NativeEventSource:
    """
    Per-directory watch registration on one inotify instance.

    add() and remove() are serialized by an internal lock, so callers may
    register and unregister from any thread.

    Attributes:
        inotify: The underlying inotify_simple.INotify handle.
    """

    def __init__(self, inotify=None, poll_interval=0.2):
        self.inotify = inotify if inotify is not None else INotify()
        self._queue = queue.Queue()
        self._paths: Dict[int, str] = {}
        self._wds: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._reader = _InotifyReader(self, poll_interval)
        self._closed = False

    def start(self):
        """Start the reader thread."""
        self._reader.start()
        logger.debug("Native event source started")

    def is_alive(self) -> bool:
        return self._reader.is_alive()

    def add(self, path: str) -> bool:
        """
        Register a single directory for notifications.

        Args:
            path: Directory to watch. Kept as given so event paths read the
                same way the caller spelled them.

        Returns:
            bool: True if newly registered, False if it was already watched.

        Raises:
            OSError: If the path is missing, not a directory, or the kernel
                refuses the watch (ENOSPC once max_user_watches is reached).
        """
        key = _key(path)
        with self._lock:
            if key in self._wds:
                return False
            if not os.path.isdir(path):
                if os.path.exists(path):
                    raise NotADirectoryError(f"Not a directory: {path}")
                raise FileNotFoundError(f"No such directory: {path}")
            wd = self.inotify.add_watch(path, WATCH_FLAGS | flags.ONLYDIR)
            self._wds[key] = wd
            self._paths[wd] = os.fsdecode(path)
        logger.debug(f"Watching {path}")
        return True

    def remove(self, path: str) -> bool:
        """
        Unregister a single directory.

        Returns:
            bool: True if a registration was dropped, False if the path was
                not watched.
        """
        key = _key(path)
        with self._lock:
            wd = self._wds.pop(key, None)
            if wd is None:
                return False
            self._paths.pop(wd, None)
            try:
                self.inotify.rm_watch(wd)
            except OSError as e:
                # EINVAL: the kernel already dropped the watch when the
                # directory went away.
                if e.errno != errno.EINVAL:
                    logger.warning(f"Removing watch on {path} failed: {e}")
        logger.debug(f"Stopped watching {path}")
        return True

    def is_watched(self, path: str) -> bool:
        with self._lock:
            return _key(path) in self._wds

    def watched(self) -> frozenset:
        """Return a snapshot of the normalized watched paths."""
        with self._lock:
            return frozenset(self._wds)

    def _dispatch(self, event):
        if event.mask & flags.Q_OVERFLOW:
            self._queue.put(SourceError(OSError(errno.ENOBUFS, "inotify event queue overflowed")))
            return

        with self._lock:
            watch_path = self._paths.get(event.wd)
            if event.mask & flags.IGNORED:
                # The kernel removed the watch (directory deleted or unmounted).
                if watch_path is not None:
                    self._paths.pop(event.wd, None)
                    if self._wds.get(_key(watch_path)) == event.wd:
                        del self._wds[_key(watch_path)]
                return

        if watch_path is None:
            # Late event for a watch that has been removed.
            return
        op = op_from_mask(event.mask)
        if not op:
            return
        path = os.path.join(watch_path, event.name) if event.name else watch_path
        self._queue.put(RawEvent(path, op))

    def get(self, timeout: float = None) -> Union[RawEvent, SourceError]:
        """
        Return the next raw event or source error.

        Raises:
            queue.Empty: If nothing arrived within timeout.
            SourceClosed: Once the source has stopped and been drained.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            # Leave the sentinel in place for any other reader.
            self._queue.put(_CLOSED)
            raise SourceClosed("event source closed")
        return item

    def close(self, timeout: float = 5.0):
        """Stop the reader, drop all watches and close the inotify handle."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._wds.clear()
            self._paths.clear()
        if self._reader.is_alive():
            self._reader.stop()
            self._reader.join(timeout)
        else:
            self._queue.put(_CLOSED)
        self.inotify.close()
        logger.debug("Native event source closed")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
