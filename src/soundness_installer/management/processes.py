"""Discovery and graceful termination of product processes."""

import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

import psutil
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class TerminationResult:
    """Processes signalled during a stop request."""

    signalled: List[int] = field(default_factory=list)
    exited: List[int] = field(default_factory=list)
    still_running: List[int] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def own_process_tree() -> Set[int]:
    """PIDs of this process and all of its ancestors."""
    pids = {os.getpid()}
    try:
        pids.update(parent.pid for parent in psutil.Process().parents())
    except psutil.Error:
        pass
    return pids


def find_matching_processes(
    needle: str, exclude: Optional[Iterable[int]] = None
) -> List[psutil.Process]:
    """Return processes whose command line mentions needle (case-insensitive)."""
    excluded = set(exclude) if exclude is not None else own_process_tree()
    needle = needle.lower()
    matches = []

    for proc in psutil.process_iter(["pid", "name", "cmdline"]):
        if proc.info["pid"] in excluded:
            continue
        cmdline = " ".join(proc.info.get("cmdline") or []) or (proc.info.get("name") or "")
        if needle in cmdline.lower():
            matches.append(proc)

    return matches


def terminate_processes(
    processes: List[psutil.Process], grace_seconds: float
) -> TerminationResult:
    """Send SIGTERM once to each process and wait up to grace_seconds.

    Processes still alive afterwards are reported, not killed.
    """
    result = TerminationResult()
    signalled = []

    for proc in processes:
        try:
            proc.terminate()
            signalled.append(proc)
            result.signalled.append(proc.pid)
        except psutil.NoSuchProcess:
            continue
        except psutil.Error as e:
            result.errors.append(f"pid {proc.pid}: {e}")

    if signalled:
        gone, alive = psutil.wait_procs(signalled, timeout=grace_seconds)
        result.exited = [p.pid for p in gone]
        result.still_running = [p.pid for p in alive]

    if result.still_running:
        logger.warning(
            "Processes still running after grace period",
            pids=result.still_running,
            grace_seconds=grace_seconds,
        )

    return result
