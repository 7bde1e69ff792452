"""Edge draft workflow - validated, one-at-a-time edge creation.

A draft moves through these states::

    Idle -> SourceSelected -> DraftProposed -> ConflictPending
                                           -> Committed
    (any) -> Cancelled

Nothing touches the graph until a commit passes the conflict, duplicate
and cycle checks. Commit and replace-and-commit validate first and then
mutate, so a rejected commit leaves the graph unchanged.
"""

import logging
from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, Field

from policygraph.config import PolicyGraphSettings, get_settings
from policygraph.conflicts import find_conflicting_edges
from policygraph.exceptions import (
    DraftStateError,
    SemanticConflictError,
    StructuralError,
)
from policygraph.guards import edge_exists, would_create_cycle
from policygraph.models import Condition, Edge, Node, NodeType, PolicyGraph, Position

logger = logging.getLogger(__name__)

# Longest match first
OPERATOR_TOKENS = ("==", "!=", ">=", "<=", ">", "<", "=", "in")


class ParsedCondition(NamedTuple):
    op: str
    value: str


def parse_condition_input(text: Optional[str]) -> Optional[ParsedCondition]:
    """Split typed text into a leading operator and the remaining value.

    The value may be empty while the user is still typing. Returns None
    when the text does not start with an operator.

    Examples:
        >>> parse_condition_input(">= 18")
        ParsedCondition(op='>=', value='18')
        >>> parse_condition_input("in gold, silver")
        ParsedCondition(op='in', value='gold, silver')
    """
    if not text:
        return None
    t = text.strip()
    lowered = t.lower()
    for op in OPERATOR_TOKENS:
        if op == "in":
            if lowered.startswith("in ") or lowered == "in":
                return ParsedCondition("in", t[2:].strip())
        elif t.startswith(op):
            return ParsedCondition(op, t[len(op) :].strip())
    return None


def apply_condition_text(text: Optional[str], previous_op: str) -> Tuple[str, str]:
    """Resolve the (op, value) pair for text typed into a draft's value field.

    A bare ``=`` is provisional: it keeps ``previous_op`` (or ``==`` when
    there is none) until a value follows it, and then becomes ``==``. Text
    without a leading operator is taken as the value and keeps the operator.
    """
    parsed = parse_condition_input(text)
    if parsed is None:
        return previous_op, text or ""
    if parsed.op == "=":
        if parsed.value:
            return "==", parsed.value
        return previous_op or "==", parsed.value
    return parsed.op, parsed.value


class DraftState(str, Enum):
    """Lifecycle state of an edge draft."""

    IDLE = "idle"
    SOURCE_SELECTED = "source_selected"
    DRAFT_PROPOSED = "draft_proposed"
    CONFLICT_PENDING = "conflict_pending"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


class EdgeDraft(BaseModel):
    """A proposed, not yet committed edge."""

    source: str
    state: DraftState = DraftState.SOURCE_SELECTED

    # None until proposed; also None for a new-leaf draft
    target: Optional[str] = None
    new_leaf: bool = False

    # Condition parts; variable defaults to the source node's label
    variable: str = ""
    op: str = "=="
    value: str = ""

    # New-leaf drafts only
    output: Optional[str] = None
    leaf_position: Optional[Position] = None
    placeholder: Optional[Node] = Field(
        None, description="Preview leaf owned by the draft, not the graph"
    )

    conflicts: List[Edge] = Field(default_factory=list)

    # Filled on commit
    edge: Optional[Edge] = None

    @property
    def condition(self) -> Condition:
        return Condition(variable=self.variable, op=self.op, value=self.value)

    @property
    def target_id(self) -> Optional[str]:
        """Target node ID, using the placeholder ID for new-leaf drafts."""
        if self.new_leaf and self.placeholder is not None:
            return self.placeholder.id
        return self.target


class EdgeDraftWorkflow:
    """Orchestrates proposal, checks and commit of one edge draft at a time.

    Usage:
        ```python
        workflow = EdgeDraftWorkflow(graph)
        workflow.start_draft("age")
        workflow.propose_draft("adult", Condition(op=">=", value="18"))
        try:
            edge = workflow.commit_draft()
        except SemanticConflictError as e:
            # let the user decide
            edge = workflow.replace_conflicts_and_commit()
        ```
    """

    def __init__(
        self, graph: PolicyGraph, settings: Optional[PolicyGraphSettings] = None
    ):
        self.graph = graph
        self.settings = settings or get_settings()
        self._draft: Optional[EdgeDraft] = None

    @property
    def draft(self) -> Optional[EdgeDraft]:
        return self._draft

    @property
    def state(self) -> DraftState:
        return self._draft.state if self._draft else DraftState.IDLE

    @property
    def conflicts(self) -> List[Edge]:
        return list(self._draft.conflicts) if self._draft else []

    # =========================================================================
    # Transitions
    # =========================================================================

    def start_draft(self, source: str) -> EdgeDraft:
        """Designate the source node of a new draft.

        Raises:
            DraftStateError: If another draft is still open.
            ValueError: If the source node is not found.
            StructuralError: If the source is a leaf.
        """
        if self._draft is not None:
            raise DraftStateError(
                f"A draft from '{self._draft.source}' is already open"
            )
        node = self.graph.get_node(source)
        if node is None:
            raise ValueError(f"Node '{source}' not found")
        if node.is_leaf:
            raise StructuralError(source, "", "leaf_source")

        self._draft = EdgeDraft(source=source, variable=node.label)
        logger.debug(f"Draft started: source={source}")
        return self._draft

    def propose_draft(
        self,
        target: Optional[str] = None,
        condition: Optional[Condition] = None,
        *,
        output: Optional[str] = None,
        position: Optional[Position] = None,
    ) -> EdgeDraft:
        """Attach a target and condition to the open draft.

        ``target=None`` proposes a new leaf; a placeholder leaf is created
        for preview and stays with the draft until commit or cancel.
        Proposing again replaces the previous proposal.

        Args:
            target: Existing target node ID, or None for a new leaf.
            condition: Parsed condition. An empty variable falls back to the
                source node's label.
            output: Outcome value for a new leaf.
            position: Layout position for a new leaf.

        Raises:
            DraftStateError: If no draft is open.
            ValueError: If the target node is not found.
        """
        draft = self._require_draft(
            DraftState.SOURCE_SELECTED,
            DraftState.DRAFT_PROPOSED,
            DraftState.CONFLICT_PENDING,
        )
        if target is not None and not self.graph.has_node(target):
            raise ValueError(f"Node '{target}' not found")

        draft.target = target
        draft.new_leaf = target is None
        draft.conflicts = []
        if condition is not None:
            draft.variable = condition.variable or draft.variable
            draft.op = condition.op
            draft.value = condition.value

        if draft.new_leaf:
            draft.output = output
            draft.leaf_position = position
            if draft.placeholder is None:
                draft.placeholder = Node(
                    id=self.graph.new_id(self.settings.leaf_id_prefix),
                    label="",
                    type=NodeType.LEAF,
                )
            draft.placeholder.position = position
        else:
            draft.output = None
            draft.leaf_position = None
            draft.placeholder = None

        draft.state = DraftState.DRAFT_PROPOSED
        logger.debug(
            f"Draft proposed: {draft.source} -> {draft.target_id}, "
            f"condition={draft.condition.display_label()!r}"
        )
        return draft

    def type_condition(self, text: str) -> EdgeDraft:
        """Apply text typed into the draft's value field.

        Raises:
            DraftStateError: If the draft has no proposal yet.
        """
        draft = self._require_draft(
            DraftState.DRAFT_PROPOSED, DraftState.CONFLICT_PENDING
        )
        draft.op, draft.value = apply_condition_text(text, draft.op)
        draft.state = DraftState.DRAFT_PROPOSED
        draft.conflicts = []
        return draft

    def set_output(self, output: Optional[str]) -> EdgeDraft:
        """Set the outcome value of a new-leaf draft."""
        draft = self._require_draft(
            DraftState.DRAFT_PROPOSED, DraftState.CONFLICT_PENDING
        )
        draft.output = output
        return draft

    def commit_draft(self) -> Edge:
        """Commit the proposed draft.

        Raises:
            DraftStateError: If no draft has been proposed.
            SemanticConflictError: If sibling edges have overlapping
                conditions. The draft moves to ConflictPending.
            StructuralError: If the edge is a duplicate or closes a cycle.
                The draft stays proposed.
        """
        draft = self._require_draft(
            DraftState.DRAFT_PROPOSED, DraftState.CONFLICT_PENDING
        )
        edges = self.graph.edges
        conflicts = find_conflicting_edges(edges, draft.source, draft.condition)
        if conflicts:
            draft.conflicts = conflicts
            draft.state = DraftState.CONFLICT_PENDING
            logger.info(
                f"Draft from {draft.source} conflicts with "
                f"{[e.id for e in conflicts]}"
            )
            raise SemanticConflictError(conflicts)

        self._refresh_placeholder(draft)
        self._check_structure(draft, edges)
        return self._apply(draft, remove=[])

    def replace_conflicts_and_commit(self) -> Edge:
        """Remove every conflicting sibling edge, then commit.

        Conflicts are recomputed against the current graph. Duplicate and
        cycle checks run against the graph without those edges before
        anything is removed.

        Raises:
            DraftStateError: If the draft is not in ConflictPending.
            StructuralError: If the edge would still be a duplicate or
                close a cycle. Nothing is removed.
        """
        draft = self._require_draft(DraftState.CONFLICT_PENDING)
        edges = self.graph.edges
        conflicts = find_conflicting_edges(edges, draft.source, draft.condition)
        conflict_ids = {e.id for e in conflicts}
        remaining = [e for e in edges if e.id not in conflict_ids]

        self._refresh_placeholder(draft)
        self._check_structure(draft, remaining)
        return self._apply(draft, remove=sorted(conflict_ids))

    def cancel_draft(self) -> Optional[EdgeDraft]:
        """Discard the open draft and its placeholder leaf, if any.

        Returns:
            The cancelled draft, or None if no draft was open.
        """
        draft = self._draft
        if draft is None:
            return None
        draft.state = DraftState.CANCELLED
        draft.placeholder = None
        draft.conflicts = []
        self._draft = None
        logger.debug(f"Draft cancelled: source={draft.source}")
        return draft

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_draft(self, *states: DraftState) -> EdgeDraft:
        if self._draft is None:
            raise DraftStateError("No edge draft is open")
        if self._draft.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise DraftStateError(
                f"Draft is {self._draft.state.value}; expected one of: {allowed}"
            )
        return self._draft

    def _refresh_placeholder(self, draft: EdgeDraft) -> None:
        # The placeholder ID may have been taken since the proposal
        placeholder = draft.placeholder
        if placeholder is not None and self.graph.has_node(placeholder.id):
            placeholder.id = self.graph.new_id(self.settings.leaf_id_prefix)

    def _check_structure(self, draft: EdgeDraft, edges: List[Edge]) -> None:
        source = draft.source
        target = draft.target_id or ""
        if edge_exists(edges, source, target):
            logger.warning(f"Rejected duplicate edge: {source} -> {target}")
            raise StructuralError(source, target, "duplicate")
        if would_create_cycle(edges, source, target):
            logger.warning(f"Rejected edge closing a cycle: {source} -> {target}")
            raise StructuralError(source, target, "cycle")
        if not self.graph.has_node(source):
            raise StructuralError(source, target, "missing_node")
        if not draft.new_leaf and not self.graph.has_node(target):
            raise StructuralError(source, target, "missing_node")

    def _apply(self, draft: EdgeDraft, remove: List[str]) -> Edge:
        for edge_id in remove:
            self.graph.remove_edge(edge_id)

        output: Optional[str] = None
        if draft.new_leaf:
            leaf = draft.placeholder
            if leaf is None:
                leaf = Node(
                    id=self.graph.new_id(self.settings.leaf_id_prefix),
                    type=NodeType.LEAF,
                    position=draft.leaf_position,
                )
            leaf.label = draft.output or self.settings.default_leaf_label
            self.graph.add_node(leaf)
            output = draft.output
            target = leaf.id
        else:
            target = draft.target or ""
            target_node = self.graph.get_node(target)
            if target_node is not None and target_node.is_leaf:
                output = target_node.label

        condition = draft.condition
        edge = Edge(
            id=self.graph.new_id(self.settings.edge_id_prefix),
            source=draft.source,
            target=target,
            label=condition.display_label(),
            condition=condition,
            output=output,
        )
        self.graph.add_edge(edge)

        draft.edge = edge
        draft.conflicts = []
        draft.state = DraftState.COMMITTED
        self._draft = None
        logger.info(
            f"Committed edge: id={edge.id}, {edge.source} -> {edge.target}, "
            f"label={edge.label!r}, replaced={remove}"
        )
        return edge
