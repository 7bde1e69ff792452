"""PolicyEditor - the operations a surrounding editor calls.

The editor owns one PolicyGraph and one EdgeDraftWorkflow. Rendering,
gestures and dialogs stay with the caller, which feeds user decisions
(confirm, replace, cancel) back through these methods.
"""

import logging
from typing import Iterable, List, Optional

from policygraph.config import PolicyGraphSettings, get_settings
from policygraph.conflicts import find_conflicting_edges
from policygraph.exceptions import SemanticConflictError, StructuralError
from policygraph.guards import edge_exists, would_create_cycle
from policygraph.models import Condition, Edge, Node, NodeType, PolicyGraph, Position
from policygraph.serialization import export_dot, export_json, import_json
from policygraph.validation import (
    ensure_export_ready,
    find_roots,
    validate_graph_for_export,
)
from policygraph.workflow import DraftState, EdgeDraft, EdgeDraftWorkflow

logger = logging.getLogger(__name__)


class PolicyEditor:
    """Editing session over a single policy graph.

    Usage:
        ```python
        editor = PolicyEditor()
        age = editor.add_node("age", NodeType.INPUT)
        editor.start_draft(age.id)
        editor.propose_draft(None, Condition(op=">=", value="18"), output="allow")
        editor.commit_draft()
        text = editor.request_export_dot()
        ```
    """

    def __init__(
        self,
        graph: Optional[PolicyGraph] = None,
        settings: Optional[PolicyGraphSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.graph = graph if graph is not None else PolicyGraph()
        self.workflow = EdgeDraftWorkflow(self.graph, self.settings)

    # =========================================================================
    # Nodes and edges
    # =========================================================================

    @property
    def nodes(self) -> List[Node]:
        return self.graph.nodes

    @property
    def edges(self) -> List[Edge]:
        return self.graph.edges

    def add_node(
        self,
        label: str,
        type: Optional[NodeType] = NodeType.CONDITION,
        position: Optional[Position] = None,
        node_id: Optional[str] = None,
        expr: Optional[str] = None,
    ) -> Node:
        """Create a node, allocating an ID when none is given.

        Raises:
            ValueError: If ``node_id`` is already in use.
        """
        if node_id is None:
            prefix = (
                self.settings.leaf_id_prefix
                if type == NodeType.LEAF
                else self.settings.node_id_prefix
            )
            node_id = self.graph.new_id(prefix)
        node = Node(id=node_id, label=label, type=type, expr=expr, position=position)
        self.graph.add_node(node)
        logger.info(f"Node added: id={node.id}, type={type}, label={label!r}")
        return node

    def update_node(self, node_id: str, **changes) -> Node:
        """Update label, expr or position of a node. See PolicyGraph.update_node."""
        return self.graph.update_node(node_id, **changes)

    def remove_node(self, node_id: str) -> None:
        """Remove a node and its edges. Idempotent.

        An open draft that starts or ends at the node is cancelled.
        """
        draft = self.workflow.draft
        if draft is not None and node_id in (draft.source, draft.target):
            self.workflow.cancel_draft()
        if self.graph.has_node(node_id):
            self.graph.remove_node(node_id)
            logger.info(f"Node removed: id={node_id}")

    def remove_edge(self, edge_id: str) -> None:
        """Remove an edge. Idempotent."""
        if self.graph.has_edge(edge_id):
            self.graph.remove_edge(edge_id)
            logger.info(f"Edge removed: id={edge_id}")

    def remove_selection(
        self, node_ids: Iterable[str] = (), edge_ids: Iterable[str] = ()
    ) -> None:
        """Remove several nodes and edges at once."""
        node_ids = list(node_ids)
        draft = self.workflow.draft
        if draft is not None and {draft.source, draft.target} & set(node_ids):
            self.workflow.cancel_draft()
        self.graph.remove_many(node_ids, edge_ids)

    def connect_nodes(
        self, source: str, target: str, label: Optional[str] = None
    ) -> Edge:
        """Add an unconditioned edge between two existing nodes.

        Raises:
            StructuralError: On a duplicate pair, a cycle, a self-loop, a
                missing endpoint or a leaf source.
        """
        edges = self.graph.edges
        if edge_exists(edges, source, target):
            raise StructuralError(source, target, "duplicate")
        if would_create_cycle(edges, source, target):
            raise StructuralError(source, target, "cycle")
        edge = Edge(
            id=self.graph.new_id(self.settings.edge_id_prefix),
            source=source,
            target=target,
            label=label or None,
        )
        self.graph.add_edge(edge)
        logger.info(f"Nodes connected: id={edge.id}, {source} -> {target}")
        return edge

    def update_edge_condition(self, edge_id: str, condition: Condition) -> Edge:
        """Change the condition of an existing edge.

        Raises:
            ValueError: If the edge is not found.
            SemanticConflictError: If the new condition overlaps a sibling.
        """
        edge = self.graph.get_edge(edge_id)
        if edge is None:
            raise ValueError(f"Edge '{edge_id}' not found")
        siblings = [e for e in self.graph.edges if e.id != edge_id]
        conflicts = find_conflicting_edges(siblings, edge.source, condition)
        if conflicts:
            raise SemanticConflictError(conflicts)
        updated = self.graph.set_edge_condition(edge_id, condition)
        logger.info(f"Edge condition updated: id={edge_id}, label={updated.label!r}")
        return updated

    # =========================================================================
    # Edge drafts
    # =========================================================================

    @property
    def draft(self) -> Optional[EdgeDraft]:
        return self.workflow.draft

    @property
    def draft_state(self) -> DraftState:
        return self.workflow.state

    def start_draft(self, source: str) -> EdgeDraft:
        return self.workflow.start_draft(source)

    def propose_draft(
        self,
        target: Optional[str] = None,
        condition: Optional[Condition] = None,
        *,
        output: Optional[str] = None,
        position: Optional[Position] = None,
    ) -> EdgeDraft:
        return self.workflow.propose_draft(
            target, condition, output=output, position=position
        )

    def type_condition(self, text: str) -> EdgeDraft:
        return self.workflow.type_condition(text)

    def commit_draft(self) -> Edge:
        return self.workflow.commit_draft()

    def replace_conflicts_and_commit(self) -> Edge:
        return self.workflow.replace_conflicts_and_commit()

    def cancel_draft(self) -> Optional[EdgeDraft]:
        return self.workflow.cancel_draft()

    # =========================================================================
    # Validation and export
    # =========================================================================

    def validate_graph_for_export(self) -> List[str]:
        return validate_graph_for_export(self.graph.nodes, self.graph.edges)

    def find_roots(self) -> List[str]:
        return find_roots(self.graph.nodes, self.graph.edges)

    def export_json(self) -> str:
        return export_json(
            self.graph.nodes, self.graph.edges, self.settings.json_indent
        )

    def export_dot(self) -> str:
        return export_dot(
            self.graph.nodes, self.graph.edges, self.settings.dot_graph_name
        )

    def request_export_json(self) -> str:
        """Export JSON after the completeness check.

        Raises:
            ExportValidationError: If some node cannot reach a leaf.
        """
        ensure_export_ready(self.graph.nodes, self.graph.edges)
        logger.info(f"Exporting JSON: nodes={len(self.graph)}")
        return self.export_json()

    def request_export_dot(self) -> str:
        """Export DOT after the completeness and single-root checks.

        Raises:
            ExportValidationError: With reason 'incomplete' or 'roots'.
        """
        ensure_export_ready(
            self.graph.nodes, self.graph.edges, require_single_root=True
        )
        logger.info(f"Exporting DOT: nodes={len(self.graph)}")
        return self.export_dot()

    def import_json(self, text: str) -> None:
        """Replace the whole graph with the decoded document.

        Any open draft is cancelled. On failure nothing changes.

        Raises:
            ParseError: If the text cannot be decoded.
        """
        nodes, edges = import_json(text)
        self.graph.load(nodes, edges)
        self.workflow.cancel_draft()
        logger.info(f"Imported graph: nodes={len(nodes)}, edges={len(edges)}")
