"""Export readiness checks for policy graphs.

A graph is complete when every non-leaf node has at least one outgoing edge
and can reach some leaf. The DOT export additionally requires a single root
(exactly one node without incoming edges).
"""

import logging
from typing import Dict, List, Sequence, Set

from policygraph.exceptions import ExportValidationError
from policygraph.models import Edge, Node, NodeType

logger = logging.getLogger(__name__)


def _adjacency(nodes: Sequence[Node], edges: Sequence[Edge]) -> Dict[str, List[str]]:
    adjacency: Dict[str, List[str]] = {n.id: [] for n in nodes}
    for edge in edges:
        adjacency.setdefault(edge.source, []).append(edge.target)
    return adjacency


def validate_graph_for_export(
    nodes: Sequence[Node], edges: Sequence[Edge]
) -> List[str]:
    """Find non-leaf nodes that cannot reach a leaf.

    A node is reported when it has no outgoing edges, or when no leaf is
    reachable from it. Reachability uses an iterative DFS per node, memoized
    per start node for the duration of the call.

    Args:
        nodes: Graph nodes.
        edges: Graph edges.

    Returns:
        Offending node IDs in node order. Empty when the graph is complete.
    """
    adjacency = _adjacency(nodes, edges)
    leaf_ids: Set[str] = {n.id for n in nodes if n.type == NodeType.LEAF}
    memo: Dict[str, bool] = {}

    def can_reach_leaf(start: str) -> bool:
        if start in memo:
            return memo[start]
        visited: Set[str] = set()
        stack = [start]
        found = False
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            if current in leaf_ids or memo.get(current):
                found = True
                break
            for neighbor in adjacency.get(current, []):
                if neighbor not in visited:
                    stack.append(neighbor)
        memo[start] = found
        return found

    bad: List[str] = []
    for node in nodes:
        if node.type == NodeType.LEAF:
            continue
        if not adjacency.get(node.id):
            bad.append(node.id)
            continue
        if not can_reach_leaf(node.id):
            bad.append(node.id)

    if bad:
        logger.debug(f"Export validation: {len(bad)} incomplete nodes: {bad}")
    return bad


def find_roots(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[str]:
    """Return IDs of nodes with zero incoming edges, in node order."""
    targets = {e.target for e in edges}
    return [n.id for n in nodes if n.id not in targets]


def ensure_export_ready(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    require_single_root: bool = False,
) -> None:
    """Check completeness, and optionally root uniqueness.

    Completeness is checked first; the root check runs only on a complete
    graph.

    Raises:
        ExportValidationError: With reason 'incomplete' or 'roots'.
    """
    bad = validate_graph_for_export(nodes, edges)
    if bad:
        raise ExportValidationError(bad, "incomplete")
    if require_single_root:
        roots = find_roots(nodes, edges)
        if len(roots) != 1:
            raise ExportValidationError(roots, "roots")
