"""
Event types shared by the source, classifier and sink.
"""

import enum
import os
from dataclasses import dataclass
from typing import Optional

HIDDEN_MARKER = "."


class Op(enum.IntFlag):
    """Operation bits carried by a raw event. Several may be set at once."""

    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    CHMOD = 16


class EventKind(enum.Enum):
    CREATE = "CREATE"
    REMOVE = "REMOVE"
    WRITE = "WRITE"


@dataclass(frozen=True)
class RawEvent:
    """An unfiltered notification: a path and the operation bits seen for it."""

    path: str
    op: Op


@dataclass(frozen=True)
class ClassifiedEvent:
    """
    A filtered event ready for output.

    Attributes:
        kind: CREATE, REMOVE or WRITE.
        path: The path as reported by the source.
        is_dir: Whether the entry is a directory. None when unknown, which is
            the usual case for removals since the entry is already gone.
    """

    kind: EventKind
    path: str
    is_dir: Optional[bool] = None

    def __str__(self):
        return f"{self.kind.value}: {self.path}"


def base_name(path: str) -> str:
    return os.path.basename(os.path.normpath(path))


def is_hidden(path: str) -> bool:
    """
    Return True if the base name of path starts with the hidden marker.

    The relative components "." and ".." are not hidden entries.
    """
    name = base_name(path)
    if name in (os.curdir, os.pardir):
        return False
    return name.startswith(HIDDEN_MARKER)
