"""PolicyGraph - owner of the node and edge collections."""

import logging
from typing import Dict, Iterable, List, Optional

from policygraph.exceptions import StructuralError
from policygraph.models.edge import Condition, Edge
from policygraph.models.nodes import Node, Position

logger = logging.getLogger(__name__)

_UNSET = object()


class PolicyGraph:
    """Node and edge collections of a policy, mutated only through methods.

    Structural invariants checked here: edge endpoints exist, no self-loops,
    leaves are never edge sources, IDs are unique. Duplicate-pair,
    acyclicity and condition-conflict checks belong to the draft workflow,
    which runs them before calling add_edge.

    Accessors return copies, so callers cannot edit the collections in place.
    """

    def __init__(
        self,
        nodes: Optional[Iterable[Node]] = None,
        edges: Optional[Iterable[Edge]] = None,
    ):
        self._nodes: Dict[str, Node] = {}
        self._edges: Dict[str, Edge] = {}
        self._counters: Dict[str, int] = {}
        if nodes is not None or edges is not None:
            self.load(nodes or [], edges or [])

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def nodes(self) -> List[Node]:
        return [n.model_copy(deep=True) for n in self._nodes.values()]

    @property
    def edges(self) -> List[Edge]:
        return [e.model_copy(deep=True) for e in self._edges.values()]

    def get_node(self, node_id: str) -> Optional[Node]:
        node = self._nodes.get(node_id)
        return node.model_copy(deep=True) if node else None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        edge = self._edges.get(edge_id)
        return edge.model_copy(deep=True) if edge else None

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def outgoing(self, node_id: str) -> List[Edge]:
        """Edges whose source is this node."""
        return [e.model_copy(deep=True) for e in self._edges_where(source=node_id)]

    def incoming(self, node_id: str) -> List[Edge]:
        """Edges whose target is this node."""
        return [e.model_copy(deep=True) for e in self._edges_where(target=node_id)]

    def get_upstream_nodes(self, node_id: str) -> List[Node]:
        """Get all nodes that feed into this node."""
        upstream_ids = {e.source for e in self._edges_where(target=node_id)}
        return self._nodes_in(upstream_ids)

    def get_downstream_nodes(self, node_id: str) -> List[Node]:
        """Get all nodes this node feeds into."""
        downstream_ids = {e.target for e in self._edges_where(source=node_id)}
        return self._nodes_in(downstream_ids)

    def _edges_where(
        self, source: Optional[str] = None, target: Optional[str] = None
    ) -> List[Edge]:
        return [
            e
            for e in self._edges.values()
            if (source is None or e.source == source)
            and (target is None or e.target == target)
        ]

    def _nodes_in(self, node_ids: set) -> List[Node]:
        return [
            n.model_copy(deep=True) for n in self._nodes.values() if n.id in node_ids
        ]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # =========================================================================
    # ID allocation
    # =========================================================================

    def new_id(self, prefix: str) -> str:
        """Allocate an ID of the form ``{prefix}{n}`` not used by any node or edge."""
        counter = self._counters.get(prefix, 0)
        while True:
            counter += 1
            candidate = f"{prefix}{counter}"
            if candidate not in self._nodes and candidate not in self._edges:
                self._counters[prefix] = counter
                return candidate

    # =========================================================================
    # Mutation
    # =========================================================================

    def add_node(self, node: Node) -> Node:
        """Add a node.

        Raises:
            ValueError: If a node with the same ID already exists.
        """
        if node.id in self._nodes:
            raise ValueError(f"Node '{node.id}' already exists")
        self._nodes[node.id] = node.model_copy(deep=True)
        logger.debug(f"Added node: id={node.id}, type={node.type}")
        return node

    def add_edge(self, edge: Edge) -> Edge:
        """Add an edge after checking endpoints.

        Raises:
            ValueError: If an edge with the same ID already exists.
            StructuralError: On a self-loop, a missing endpoint, or a leaf source.
        """
        if edge.id in self._edges:
            raise ValueError(f"Edge '{edge.id}' already exists")
        self.check_endpoints(edge.source, edge.target)
        self._edges[edge.id] = edge.model_copy(deep=True)
        logger.debug(f"Added edge: id={edge.id}, {edge.source} -> {edge.target}")
        return edge

    def check_endpoints(self, source: str, target: str) -> None:
        """Check the per-edge structural invariants for a candidate pair.

        Raises:
            StructuralError: On a self-loop, a missing endpoint, or a leaf source.
        """
        if source == target:
            raise StructuralError(source, target, "self_loop")
        if source not in self._nodes or target not in self._nodes:
            raise StructuralError(source, target, "missing_node")
        if self._nodes[source].is_leaf:
            raise StructuralError(source, target, "leaf_source")

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every edge touching it. Unknown IDs are ignored."""
        if self._nodes.pop(node_id, None) is None:
            return
        dropped = [
            eid
            for eid, e in self._edges.items()
            if e.source == node_id or e.target == node_id
        ]
        for eid in dropped:
            del self._edges[eid]
        logger.debug(f"Removed node: id={node_id}, cascaded_edges={len(dropped)}")

    def remove_edge(self, edge_id: str) -> None:
        """Remove an edge. Unknown IDs are ignored."""
        if self._edges.pop(edge_id, None) is not None:
            logger.debug(f"Removed edge: id={edge_id}")

    def remove_many(
        self, node_ids: Iterable[str] = (), edge_ids: Iterable[str] = ()
    ) -> None:
        """Remove a selection of edges and nodes; node removal cascades."""
        for edge_id in edge_ids:
            self.remove_edge(edge_id)
        for node_id in node_ids:
            self.remove_node(node_id)

    def update_node(
        self,
        node_id: str,
        *,
        label: Optional[str] = None,
        expr: object = _UNSET,
        position: object = _UNSET,
    ) -> Node:
        """Update display fields of a node.

        Renaming a leaf also rewrites ``output`` on every edge into it.

        Raises:
            ValueError: If the node is not found.
        """
        node = self._nodes.get(node_id)
        if node is None:
            raise ValueError(f"Node '{node_id}' not found")
        if label is not None:
            node.label = label
            if node.is_leaf:
                for edge in self._edges.values():
                    if edge.target == node_id:
                        edge.output = label
        if expr is not _UNSET:
            node.expr = expr  # type: ignore[assignment]
        if position is not _UNSET:
            node.position = (
                Position.model_validate(position) if position is not None else None
            )
        return node.model_copy(deep=True)

    def set_edge_condition(self, edge_id: str, condition: Optional[Condition]) -> Edge:
        """Replace an edge's condition and re-derive its label.

        Conflict checking is the caller's job.

        Raises:
            ValueError: If the edge is not found.
        """
        edge = self._edges.get(edge_id)
        if edge is None:
            raise ValueError(f"Edge '{edge_id}' not found")
        edge.condition = condition.model_copy() if condition else None
        edge.label = condition.display_label() if condition else None
        return edge.model_copy(deep=True)

    def load(self, nodes: Iterable[Node], edges: Iterable[Edge]) -> None:
        """Replace both collections wholesale.

        Raises:
            ValueError: On duplicate node or edge IDs. The graph is unchanged.
        """
        new_nodes: Dict[str, Node] = {}
        for node in nodes:
            if node.id in new_nodes:
                raise ValueError(f"Duplicate node ID '{node.id}'")
            new_nodes[node.id] = node.model_copy(deep=True)
        new_edges: Dict[str, Edge] = {}
        for edge in edges:
            if edge.id in new_edges:
                raise ValueError(f"Duplicate edge ID '{edge.id}'")
            new_edges[edge.id] = edge.model_copy(deep=True)
        self._nodes = new_nodes
        self._edges = new_edges
        self._counters = {}

    def clear(self) -> None:
        self._nodes = {}
        self._edges = {}
        self._counters = {}
