"""Insertion guards: duplicate-edge and cycle checks for candidate edges."""

import logging
from typing import Dict, Iterable, List, Set

from policygraph.models import Edge

logger = logging.getLogger(__name__)


def edge_exists(edges: Iterable[Edge], source: str, target: str) -> bool:
    """True if an edge with exactly this ordered pair exists.

    Conditions are not compared.
    """
    return any(e.source == source and e.target == target for e in edges)


def would_create_cycle(edges: Iterable[Edge], source: str, target: str) -> bool:
    """Check whether adding ``source -> target`` would close a cycle.

    Builds adjacency from the current edges plus the candidate, then runs an
    iterative depth-first search from ``target``. Reaching ``source`` means
    the candidate edge closes a loop. Recomputed on every call.

    Args:
        edges: Current edge set.
        source: Candidate source node ID.
        target: Candidate target node ID.

    Returns:
        True for a self-loop or when a cycle would form.
    """
    if not source or not target:
        return False
    if source == target:
        return True

    adjacency: Dict[str, List[str]] = {}
    for edge in edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
    adjacency.setdefault(source, []).append(target)

    visited: Set[str] = set()
    stack: List[str] = [target]
    while stack:
        node = stack.pop()
        if node == source:
            logger.debug(f"Cycle guard: {source} -> {target} closes a cycle")
            return True
        if node in visited:
            continue
        visited.add(node)
        for neighbor in adjacency.get(node, []):
            if neighbor not in visited:
                stack.append(neighbor)

    return False
