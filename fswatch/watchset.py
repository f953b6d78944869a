"""
Watch-set maintenance.

WatchSetManager keeps the directories registered with the native event source
in step with the directory tree under the watch root: every non-hidden
directory reachable without crossing a hidden one is watched exactly once,
and nothing else is.
"""

import logging
import os

from fswatch.errors import RootNotWatchableError
from fswatch.events import is_hidden

logger = logging.getLogger(__name__)


def _is_within(path: str, root: str) -> bool:
    """Return True if normalized path equals root or lies beneath it."""
    if path == root:
        return True
    if root == os.curdir:
        return not os.path.isabs(path) and path.split(os.sep)[0] != os.pardir
    return path.startswith(root.rstrip(os.sep) + os.sep)


class WatchSetManager:
    """
    Recursive add/remove of directory watches.

    The manager owns the source handle; nothing else registers or
    unregisters watches. Each single registration is atomic inside the
    source, so add_tree() and remove_tree() can run while events for other
    paths are being classified.
    """

    def __init__(self, source):
        self._source = source

    @property
    def watched(self) -> frozenset:
        return self._source.watched()

    def contains(self, path: str) -> bool:
        return self._source.is_watched(path)

    def _visible_subdirs(self, dirpath, dirnames):
        # Prune hidden directories in place so os.walk never descends into them.
        dirnames[:] = [
            d
            for d in dirnames
            if not is_hidden(d) and not os.path.islink(os.path.join(dirpath, d))
        ]
        return [os.path.join(dirpath, d) for d in dirnames]

    def add_tree(self, root: str) -> int:
        """
        Watch root and every non-hidden directory beneath it.

        Args:
            root: Directory to watch. Hidden descendants and everything below
                them are skipped; files are never registered.

        Returns:
            int: Number of directories newly registered.

        Raises:
            RootNotWatchableError: If root itself cannot be registered.
        """
        try:
            added = int(self._source.add(root))
        except OSError as e:
            raise RootNotWatchableError(root, e) from e

        def on_walk_error(err):
            logger.warning(f"Skipping unreadable directory {err.filename}: {err}")

        for dirpath, dirnames, _ in os.walk(root, onerror=on_walk_error):
            for path in self._visible_subdirs(dirpath, dirnames):
                try:
                    if self._source.add(path):
                        added += 1
                except OSError as e:
                    logger.warning(f"Could not watch {path}: {e}")

        logger.debug(f"add_tree({root}) registered {added} directories")
        return added

    def remove_tree(self, root: str) -> int:
        """
        Stop watching root and every directory beneath it.

        The subtree is usually gone already, so the walk tolerates missing
        entries, and registrations left behind for vanished paths are swept
        from the watch set as well. Unwatched paths are a no-op.

        Returns:
            int: Number of directories unregistered.
        """
        removed = int(self._source.remove(root))

        def on_walk_error(err):
            logger.debug(f"Ignoring {err.filename} during removal: {err}")

        for dirpath, dirnames, _ in os.walk(root, onerror=on_walk_error):
            for path in self._visible_subdirs(dirpath, dirnames):
                removed += int(self._source.remove(path))

        root_key = os.path.normpath(root)
        for path in self._source.watched():
            if _is_within(path, root_key):
                removed += int(self._source.remove(path))

        logger.debug(f"remove_tree({root}) unregistered {removed} directories")
        return removed
