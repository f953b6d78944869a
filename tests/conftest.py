import errno
import os
import threading
import time

import pytest
from inotify_simple import Event

from fswatch.classifier import EventClassifier
from fswatch.source import NativeEventSource
from fswatch.watchset import WatchSetManager


class FakeINotify:
    """Stands in for inotify_simple.INotify without touching the kernel."""

    def __init__(self):
        self.added = []
        self.removed = []
        self.live = {}
        self.double_adds = []
        self.fail_paths = {}
        self.read_error = None
        self.closed = False
        self._pending = []
        self._next_wd = 1
        self._lock = threading.Lock()

    def add_watch(self, path, mask):
        key = os.path.normpath(path)
        err = self.fail_paths.get(key)
        if err is not None:
            raise OSError(err, os.strerror(err), path)
        with self._lock:
            for wd, live_path in self.live.items():
                if live_path == key:
                    # The kernel hands back the existing descriptor.
                    self.double_adds.append(path)
                    return wd
            wd = self._next_wd
            self._next_wd += 1
            self.live[wd] = key
            self.added.append(path)
            return wd

    def rm_watch(self, wd):
        with self._lock:
            path = self.live.pop(wd, None)
            if path is None:
                raise OSError(errno.EINVAL, os.strerror(errno.EINVAL))
            self.removed.append(path)

    def push(self, wd, mask, name=""):
        with self._lock:
            self._pending.append(Event(wd, mask, 0, name))

    def read(self, timeout=None, read_delay=None):
        if self.read_error is not None:
            raise self.read_error
        with self._lock:
            events, self._pending = self._pending, []
        if not events and timeout:
            time.sleep(timeout / 1000.0)
        return events

    def close(self):
        self.closed = True


class RecordingSink:
    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def emit(self, event):
        with self._lock:
            self.events.append(event)

    @property
    def lines(self):
        with self._lock:
            return [str(e) for e in self.events]


@pytest.fixture
def inotify():
    return FakeINotify()


@pytest.fixture
def source(inotify):
    with NativeEventSource(inotify=inotify, poll_interval=0.01) as src:
        yield src


@pytest.fixture
def watchset(source):
    return WatchSetManager(source)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def classifier(watchset, sink):
    return EventClassifier(watchset, sink)


@pytest.fixture
def proj(tmp_path):
    """
    proj/
      README.md
      src/lib/
      docs/
      .git/objects/
      .cache/
    """
    root = tmp_path / "proj"
    (root / "src" / "lib").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / ".git" / "objects").mkdir(parents=True)
    (root / ".cache").mkdir()
    (root / "README.md").write_text("# proj\n")
    (root / "src" / "main.py").write_text("print('hi')\n")
    return root

