"""
Process lifecycle for fswatch.

A ReaderWorker thread drains the native event source into the classifier
while the main thread waits for SIGINT/SIGTERM or for the source to close.
Either one moves the lifecycle to SHUTTING_DOWN; the worker is then stopped
and joined before run() returns, so a classification already in progress
(and any watch-set update it triggered) completes first.
"""

import contextlib
import enum
import logging
import queue
import signal
import threading

from fswatch.errors import SourceClosed, SourceError

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class LifecycleState(enum.Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class ReaderWorker(threading.Thread):
    """
    A thread that pulls items from the event source and classifies them.
    """

    def __init__(self, source, classifier, on_closed=None, poll_interval=0.5):
        """
        Initialize the reader thread.

        Args:
            source: NativeEventSource (or anything with the same get()).
            classifier: EventClassifier receiving each RawEvent.
            on_closed (callable): Called once when the source reports it closed.
            poll_interval (float): Seconds to wait for an item before
                re-checking the stop signal.
        """
        super(ReaderWorker, self).__init__(name="fswatch-reader")
        self.source = source
        self.classifier = classifier
        self.on_closed = on_closed
        self.poll_interval = poll_interval
        self.stop_event = threading.Event()
        self.daemon = True

    def run(self):
        logger.debug("ReaderWorker started with poll interval: %s seconds", self.poll_interval)
        while not self.stop_event.is_set():
            try:
                item = self.source.get(timeout=self.poll_interval)
            except queue.Empty:
                continue
            except SourceClosed:
                logger.debug("Event source closed; reader exiting.")
                if self.on_closed is not None:
                    self.on_closed()
                break

            if isinstance(item, SourceError):
                logger.error("error: %s", item)
                continue

            try:
                self.classifier.classify(item)
            except Exception as e:
                logger.exception("Exception classifying %s: %s", item, e)
        logger.debug("ReaderWorker stopped.")

    def stop(self):
        """
        Signal the thread to stop after the item it is handling, if any.
        """
        self.stop_event.set()


class Lifecycle:
    """
    Runs the reader until a termination signal arrives or the source closes.

    Attributes:
        state (LifecycleState): RUNNING until shutdown is requested, then
            SHUTTING_DOWN for good.
    """

    def __init__(self, source, classifier, poll_interval=0.5, join_timeout=5.0,
                 signals=DEFAULT_SIGNALS):
        self.source = source
        self.classifier = classifier
        self.poll_interval = poll_interval
        self.join_timeout = join_timeout
        self.signals = signals
        self.state = LifecycleState.RUNNING
        self._shutdown = threading.Event()
        self._lock = threading.Lock()
        self._handlers_installed = False

    def request_shutdown(self, reason):
        with self._lock:
            if self.state is LifecycleState.SHUTTING_DOWN:
                return
            self.state = LifecycleState.SHUTTING_DOWN
        logger.info("Shutting down: %s", reason)
        self._shutdown.set()

    def _on_signal(self, signum, frame):
        self.request_shutdown(f"received {signal.Signals(signum).name}")

    @contextlib.contextmanager
    def handling_signals(self):
        """
        Route the termination signals to request_shutdown() while active.

        Entering again while already active is a no-op, so callers can cover
        startup work (the initial watch walk) and run() with one block.
        Handlers can only be installed from the main thread; elsewhere this
        does nothing.
        """
        if self._handlers_installed or threading.current_thread() is not threading.main_thread():
            yield
            return
        previous = {}
        for signum in self.signals:
            previous[signum] = signal.signal(signum, self._on_signal)
        self._handlers_installed = True
        try:
            yield
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)
            self._handlers_installed = False

    def run(self):
        """
        Block until shutdown, then stop and join the reader.

        Returns immediately if shutdown was already requested, e.g. by a
        signal that arrived while the initial tree was being watched.

        Returns:
            int: Process exit code (0 for every normal shutdown path).
        """
        with self.handling_signals():
            worker = ReaderWorker(
                self.source,
                self.classifier,
                on_closed=lambda: self.request_shutdown("event source closed"),
                poll_interval=self.poll_interval,
            )
            worker.start()
            try:
                while not self._shutdown.wait(self.poll_interval):
                    if not worker.is_alive():
                        self.request_shutdown("reader exited")
                    elif not self.source.is_alive():
                        self.request_shutdown("event source stopped")
            finally:
                worker.stop()
                worker.join(self.join_timeout)
                if worker.is_alive():
                    logger.warning("Reader did not stop within %s seconds", self.join_timeout)
        return 0
