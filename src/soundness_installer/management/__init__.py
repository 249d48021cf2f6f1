"""Process management for running product processes."""

from .processes import (
    TerminationResult,
    find_matching_processes,
    own_process_tree,
    terminate_processes,
)

__all__ = [
    "TerminationResult",
    "find_matching_processes",
    "own_process_tree",
    "terminate_processes",
]
