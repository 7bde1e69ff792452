"""Exceptions for policy graph editing, validation and import."""

from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from policygraph.models import Edge


class PolicyGraphError(Exception):
    """Base class for policy graph errors."""

    pass


class StructuralError(PolicyGraphError):
    """Raised when an edge would break the graph's structural invariants.

    Attributes:
        source: Source node ID of the rejected edge.
        target: Target node ID of the rejected edge.
        reason: One of 'duplicate', 'cycle', 'self_loop', 'missing_node',
            'leaf_source'.
    """

    def __init__(self, source: str, target: str, reason: str) -> None:
        self.source = source
        self.target = target
        self.reason = reason
        super().__init__(f"Edge '{source}' -> '{target}' rejected: {reason}")


class SemanticConflictError(PolicyGraphError):
    """Raised when a condition overlaps conditions on sibling edges.

    Recoverable: the caller either replaces the conflicting edges or
    cancels the draft.

    Attributes:
        conflicts: The existing edges whose conditions overlap.
    """

    def __init__(self, conflicts: List["Edge"]) -> None:
        self.conflicts = conflicts
        ids = ", ".join(e.id for e in conflicts)
        super().__init__(f"Condition conflicts with existing edges: {ids}")


class ExportValidationError(PolicyGraphError):
    """Raised when the graph is not ready for export.

    Attributes:
        node_ids: Offending node IDs.
        reason: 'incomplete' (nodes that cannot reach a leaf) or 'roots'
            (zero or multiple root nodes).
    """

    def __init__(self, node_ids: List[str], reason: str) -> None:
        self.node_ids = node_ids
        self.reason = reason
        if reason == "roots":
            message = (
                f"Expected exactly one root node, found {len(node_ids)}: "
                f"{', '.join(node_ids)}"
            )
        else:
            message = f"Nodes cannot reach a leaf: {', '.join(node_ids)}"
        super().__init__(message)


class ParseError(PolicyGraphError, ValueError):
    """Raised when import text or a condition cannot be parsed."""

    pass


class DraftStateError(PolicyGraphError, RuntimeError):
    """Raised when a draft operation is called in the wrong state.

    This signals a caller bug, not a recoverable runtime condition.
    """

    pass
