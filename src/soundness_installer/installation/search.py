"""Bounded, depth-limited filesystem search."""

import os
import time
from collections import deque
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 6
DEFAULT_TIMEOUT = 10.0

EntryPredicate = Callable[[os.DirEntry], bool]


def walk_entries(
    roots: Iterable[Path],
    max_depth: int = DEFAULT_MAX_DEPTH,
    timeout: float = DEFAULT_TIMEOUT,
    prune: Optional[EntryPredicate] = None,
) -> Iterator[os.DirEntry]:
    """Yield directory entries breadth-first below each root in turn.

    Symlinked directories are not followed and unreadable directories are
    skipped. Directories for which ``prune`` returns True are not descended
    into, though they are still yielded. The walk stops once ``timeout``
    seconds have passed.
    """
    deadline = time.monotonic() + timeout

    for root in roots:
        root = Path(root)
        if not root.is_dir():
            continue

        queue = deque([(root, 0)])
        while queue:
            if time.monotonic() > deadline:
                logger.warning(
                    "Filesystem search timed out", root=str(root), timeout=timeout
                )
                return

            directory, depth = queue.popleft()
            try:
                with os.scandir(directory) as it:
                    entries = list(it)
            except OSError:
                continue

            for entry in entries:
                yield entry
                if depth + 1 >= max_depth:
                    continue
                try:
                    is_dir = entry.is_dir(follow_symlinks=False)
                except OSError:
                    continue
                if is_dir and not (prune and prune(entry)):
                    queue.append((Path(entry.path), depth + 1))


def find_first(
    roots: Iterable[Path],
    predicate: EntryPredicate,
    max_depth: int = DEFAULT_MAX_DEPTH,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[Path]:
    """Return the first entry matching predicate, or None."""
    for entry in walk_entries(roots, max_depth, timeout):
        if predicate(entry):
            return Path(entry.path)
    return None


def find_all(
    roots: Iterable[Path],
    predicate: EntryPredicate,
    max_depth: int = DEFAULT_MAX_DEPTH,
    timeout: float = DEFAULT_TIMEOUT,
    prune: Optional[EntryPredicate] = None,
) -> List[Path]:
    """Return every entry matching predicate."""
    return [
        Path(entry.path)
        for entry in walk_entries(roots, max_depth, timeout, prune)
        if predicate(entry)
    ]


def is_executable_named(name: str) -> EntryPredicate:
    def predicate(entry: os.DirEntry) -> bool:
        if entry.name != name:
            return False
        try:
            return entry.is_file() and os.access(entry.path, os.X_OK)
        except OSError:
            return False

    return predicate


def is_file_named(*names: str) -> EntryPredicate:
    wanted = set(names)

    def predicate(entry: os.DirEntry) -> bool:
        if entry.name not in wanted:
            return False
        try:
            return entry.is_file(follow_symlinks=False)
        except OSError:
            return False

    return predicate


def find_executable(
    roots: Iterable[Path],
    name: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
    timeout: float = DEFAULT_TIMEOUT,
) -> Optional[Path]:
    """Find the first executable regular file called name below roots."""
    return find_first(roots, is_executable_named(name), max_depth, timeout)
