"""Policy graph editor core.

Maintains a decision policy graph (condition nodes routing to leaf
outcomes) and keeps it sound while it is edited one edge at a time:
- Duplicate-edge and cycle guards
- Condition conflict detection between sibling edges
- Export readiness checks
- JSON interchange and DOT export
"""

from policygraph.conflicts import conditions_conflict
from policygraph.editor import PolicyEditor
from policygraph.exceptions import (
    DraftStateError,
    ExportValidationError,
    ParseError,
    PolicyGraphError,
    SemanticConflictError,
    StructuralError,
)
from policygraph.guards import edge_exists, would_create_cycle
from policygraph.models import Condition, Edge, Node, NodeType, PolicyGraph, Position
from policygraph.serialization import escape, export_dot, export_json, import_json
from policygraph.validation import find_roots, validate_graph_for_export
from policygraph.workflow import DraftState, EdgeDraft, EdgeDraftWorkflow

__all__ = [
    "PolicyEditor",
    "PolicyGraph",
    "Node",
    "NodeType",
    "Position",
    "Edge",
    "Condition",
    "EdgeDraft",
    "EdgeDraftWorkflow",
    "DraftState",
    "conditions_conflict",
    "edge_exists",
    "would_create_cycle",
    "validate_graph_for_export",
    "find_roots",
    "export_json",
    "export_dot",
    "import_json",
    "escape",
    "PolicyGraphError",
    "StructuralError",
    "SemanticConflictError",
    "ExportValidationError",
    "ParseError",
    "DraftStateError",
]
