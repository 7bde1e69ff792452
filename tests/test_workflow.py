"""Tests for the edge draft workflow."""

import pytest

from policygraph.config import PolicyGraphSettings
from policygraph.exceptions import (
    DraftStateError,
    SemanticConflictError,
    StructuralError,
)
from policygraph.models import (
    Condition,
    Edge,
    Node,
    NodeType,
    PolicyGraph,
    Position,
)
from policygraph.workflow import (
    DraftState,
    EdgeDraftWorkflow,
    ParsedCondition,
    apply_condition_text,
    parse_condition_input,
)


@pytest.fixture
def workflow(loan_graph):
    return EdgeDraftWorkflow(loan_graph)


@pytest.fixture
def chain_workflow():
    """Workflow over A -> B -> C plus an unconnected node D."""
    graph = PolicyGraph(
        [
            Node(id="A", label="a", type=NodeType.INPUT),
            Node(id="B", label="b", type=NodeType.CONDITION),
            Node(id="C", label="c", type=NodeType.CONDITION),
            Node(id="D", label="d", type=NodeType.CONDITION),
        ]
    )
    wf = EdgeDraftWorkflow(graph)
    for source, target in (("A", "B"), ("B", "C")):
        wf.start_draft(source)
        wf.propose_draft(target, Condition(op=">", value="0"))
        wf.commit_draft()
    return wf


class TestParseConditionInput:
    """Test parse_condition_input."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            (">= 18", ParsedCondition(">=", "18")),
            (">18", ParsedCondition(">", "18")),
            ("== gold", ParsedCondition("==", "gold")),
            ("!=5", ParsedCondition("!=", "5")),
            ("<= 1.5", ParsedCondition("<=", "1.5")),
            ("= 3", ParsedCondition("=", "3")),
            ("=", ParsedCondition("=", "")),
            ("  < 0  ", ParsedCondition("<", "0")),
            ("in gold, silver", ParsedCondition("in", "gold, silver")),
            ("IN a,b", ParsedCondition("in", "a,b")),
            ("in", ParsedCondition("in", "")),
        ],
    )
    def test_operators(self, text, expected):
        """Test the longest leading operator is split from the value."""
        assert parse_condition_input(text) == expected

    @pytest.mark.parametrize("text", ["", None, "18", "gold", "income > 5", "inside"])
    def test_no_operator(self, text):
        """Test text without a leading operator returns None."""
        assert parse_condition_input(text) is None


class TestApplyConditionText:
    """Test apply_condition_text."""

    def test_bare_equals_is_provisional(self):
        """Test a lone = keeps the previous operator."""
        assert apply_condition_text("=", ">") == (">", "")

    def test_bare_equals_without_previous(self):
        """Test a lone = falls back to ==."""
        assert apply_condition_text("=", "") == ("==", "")

    def test_equals_with_value(self):
        """Test = followed by a value becomes ==."""
        assert apply_condition_text("= 5", ">") == ("==", "5")

    def test_greater_equal_while_typing(self):
        """Test typing > then >= then >= 18."""
        op, value = apply_condition_text(">", "==")
        assert (op, value) == (">", "")
        op, value = apply_condition_text(">=", op)
        assert (op, value) == (">=", "")
        assert apply_condition_text(">= 18", op) == (">=", "18")

    def test_plain_value(self):
        """Test text without an operator keeps the operator."""
        assert apply_condition_text("gold", "!=") == ("!=", "gold")


class TestDraftLifecycle:
    """Test draft state transitions."""

    def test_initial_state(self, workflow):
        """Test a new workflow is idle."""
        assert workflow.state == DraftState.IDLE
        assert workflow.draft is None
        assert workflow.conflicts == []

    def test_start_draft(self, workflow):
        """Test starting a draft selects the source and its variable."""
        draft = workflow.start_draft("adult")
        assert workflow.state == DraftState.SOURCE_SELECTED
        assert draft.source == "adult"
        assert draft.variable == "income"

    def test_start_draft_twice_raises(self, workflow):
        """Test only one draft can be open."""
        workflow.start_draft("age")
        with pytest.raises(DraftStateError):
            workflow.start_draft("adult")

    def test_start_draft_unknown_node(self, workflow):
        """Test starting from a missing node raises ValueError."""
        with pytest.raises(ValueError, match="not found"):
            workflow.start_draft("ghost")
        assert workflow.state == DraftState.IDLE

    def test_start_draft_from_leaf(self, workflow):
        """Test leaves cannot start a draft."""
        with pytest.raises(StructuralError) as exc_info:
            workflow.start_draft("deny")
        assert exc_info.value.reason == "leaf_source"

    def test_propose_without_draft(self, workflow):
        """Test proposing with no open draft raises."""
        with pytest.raises(DraftStateError):
            workflow.propose_draft("review")

    def test_propose_unknown_target(self, workflow):
        """Test proposing a missing target raises ValueError."""
        workflow.start_draft("adult")
        with pytest.raises(ValueError, match="not found"):
            workflow.propose_draft("ghost")
        assert workflow.state == DraftState.SOURCE_SELECTED

    def test_propose_keeps_source_variable(self, workflow):
        """Test an empty condition variable falls back to the source label."""
        workflow.start_draft("adult")
        draft = workflow.propose_draft("deny", Condition(op="==", value="unknown"))
        assert workflow.state == DraftState.DRAFT_PROPOSED
        assert draft.condition == Condition(
            variable="income", op="==", value="unknown"
        )

    def test_type_condition_requires_proposal(self, workflow):
        """Test typing before proposing raises."""
        workflow.start_draft("adult")
        with pytest.raises(DraftStateError):
            workflow.type_condition(">= 1")

    def test_type_condition(self, workflow):
        """Test typed text updates operator and value."""
        workflow.start_draft("adult")
        workflow.propose_draft("deny")
        workflow.type_condition("<")
        draft = workflow.type_condition("< 0")
        assert (draft.op, draft.value) == ("<", "0")

    def test_commit_requires_proposal(self, workflow):
        """Test committing a draft with no target raises."""
        workflow.start_draft("adult")
        with pytest.raises(DraftStateError):
            workflow.commit_draft()

    def test_commit_existing_leaf(self, workflow, loan_graph):
        """Test committing to an existing leaf copies its label as output."""
        workflow.start_draft("adult")
        workflow.propose_draft("deny", Condition(op="==", value="unknown"))
        edge = workflow.commit_draft()

        assert edge.id == "e5"
        assert edge.source == "adult"
        assert edge.target == "deny"
        assert edge.label == "income == unknown"
        assert edge.output == "deny"
        assert loan_graph.get_edge("e5") == edge
        assert workflow.state == DraftState.IDLE
        assert workflow.draft is None

    def test_commit_non_leaf_target_has_no_output(self, chain_workflow):
        """Test edges into non-leaf nodes carry no output."""
        edge = chain_workflow.graph.edges[0]
        assert edge.output is None
        assert edge.label == "a > 0"

    def test_cancel(self, workflow, loan_graph):
        """Test cancelling returns the draft and leaves the graph untouched."""
        before = loan_graph.edges
        workflow.start_draft("adult")
        workflow.propose_draft("deny", Condition(op="==", value="unknown"))
        draft = workflow.cancel_draft()

        assert draft.state == DraftState.CANCELLED
        assert workflow.state == DraftState.IDLE
        assert loan_graph.edges == before

    def test_cancel_without_draft(self, workflow):
        """Test cancelling when idle returns None."""
        assert workflow.cancel_draft() is None

    def test_start_after_commit(self, workflow):
        """Test a new draft can start once the previous one committed."""
        workflow.start_draft("adult")
        workflow.propose_draft("deny", Condition(op="==", value="unknown"))
        workflow.commit_draft()
        assert workflow.start_draft("age").source == "age"


class TestNewLeafDrafts:
    """Test drafts that create a new leaf on commit."""

    def test_placeholder_not_in_graph(self, workflow, loan_graph):
        """Test the preview leaf belongs to the draft only."""
        workflow.start_draft("adult")
        draft = workflow.propose_draft(
            None,
            Condition(op="==", value="unknown"),
            output="reject",
            position=Position(x=3, y=4),
        )
        assert draft.new_leaf
        assert draft.placeholder.id == "leaf1"
        assert draft.target_id == "leaf1"
        assert draft.placeholder.position.x == 3
        assert not loan_graph.has_node("leaf1")

    def test_commit_creates_leaf(self, workflow, loan_graph):
        """Test committing adds the leaf labelled with the output."""
        workflow.start_draft("adult")
        workflow.propose_draft(
            None, Condition(op="==", value="unknown"), output="reject"
        )
        edge = workflow.commit_draft()

        leaf = loan_graph.get_node(edge.target)
        assert leaf.type == NodeType.LEAF
        assert leaf.label == "reject"
        assert edge.output == "reject"

    def test_default_leaf_label(self, loan_graph):
        """Test a leaf without output gets the configured label."""
        wf = EdgeDraftWorkflow(
            loan_graph, PolicyGraphSettings(default_leaf_label="outcome")
        )
        wf.start_draft("adult")
        wf.propose_draft(None, Condition(op="==", value="unknown"))
        edge = wf.commit_draft()

        assert loan_graph.get_node(edge.target).label == "outcome"
        assert edge.output is None

    def test_set_output(self, workflow, loan_graph):
        """Test output can be set after proposing."""
        workflow.start_draft("adult")
        workflow.propose_draft(None, Condition(op="==", value="unknown"))
        workflow.set_output("manual")
        edge = workflow.commit_draft()
        assert loan_graph.get_node(edge.target).label == "manual"

    def test_cancel_discards_placeholder(self, workflow, loan_graph):
        """Test cancelling leaves no trace of the placeholder."""
        workflow.start_draft("adult")
        workflow.propose_draft(None, Condition(op="==", value="unknown"))
        draft = workflow.cancel_draft()

        assert draft.placeholder is None
        assert len(loan_graph) == 5

    def test_retarget_drops_placeholder(self, workflow):
        """Test proposing an existing target replaces the new-leaf proposal."""
        workflow.start_draft("adult")
        workflow.propose_draft(None, Condition(op="==", value="unknown"))
        draft = workflow.propose_draft("deny", Condition(op="==", value="unknown"))
        assert not draft.new_leaf
        assert draft.placeholder is None
        assert draft.target_id == "deny"

    def test_placeholder_id_taken_before_commit(self, workflow, loan_graph):
        """Test the leaf gets a fresh ID if its preview ID was taken."""
        workflow.start_draft("adult")
        workflow.propose_draft(None, Condition(op="==", value="unknown"), output="x")
        loan_graph.add_node(Node(id="leaf1", type=NodeType.LEAF))

        edge = workflow.commit_draft()
        assert edge.target == "leaf2"
        assert loan_graph.get_node("leaf2").label == "x"

    def test_taken_placeholder_id_upstream_of_source(self, workflow, loan_graph):
        """Test a node that took the preview ID and feeds the source is not a cycle."""
        workflow.start_draft("adult")
        workflow.propose_draft(None, Condition(op="==", value="unknown"), output="x")
        loan_graph.add_node(Node(id="leaf1", type=NodeType.CONDITION))
        loan_graph.add_edge(Edge(id="up", source="leaf1", target="age"))

        edge = workflow.commit_draft()

        assert edge.target == "leaf2"
        assert loan_graph.get_node("leaf2").is_leaf
        assert loan_graph.get_node("leaf1").type == NodeType.CONDITION

    def test_taken_placeholder_id_on_replace(self, workflow, loan_graph):
        """Test replace also commits to a fresh leaf when the preview ID was taken."""
        workflow.start_draft("age")
        workflow.propose_draft(None, Condition(op=">", value="65"), output="senior")
        with pytest.raises(SemanticConflictError):
            workflow.commit_draft()
        loan_graph.add_node(Node(id="leaf1", type=NodeType.CONDITION))
        loan_graph.add_edge(Edge(id="up", source="leaf1", target="age"))

        edge = workflow.replace_conflicts_and_commit()

        assert edge.target == "leaf2"
        assert loan_graph.get_node("leaf2").label == "senior"


class TestConflicts:
    """Test conflict handling during commit."""

    def test_conflict_moves_to_pending(self, workflow, loan_graph):
        """Test an overlapping condition is reported and nothing changes."""
        workflow.start_draft("age")
        workflow.propose_draft(None, Condition(op=">", value="65"), output="senior")

        with pytest.raises(SemanticConflictError) as exc_info:
            workflow.commit_draft()

        assert [e.id for e in exc_info.value.conflicts] == ["e1"]
        assert workflow.state == DraftState.CONFLICT_PENDING
        assert [e.id for e in workflow.conflicts] == ["e1"]
        assert len(loan_graph) == 5
        assert len(loan_graph.edges) == 4

    def test_replace_conflicts(self, workflow, loan_graph):
        """Test replace removes the conflicting edges and commits."""
        workflow.start_draft("age")
        workflow.propose_draft(None, Condition(op=">", value="65"), output="senior")
        with pytest.raises(SemanticConflictError):
            workflow.commit_draft()

        edge = workflow.replace_conflicts_and_commit()

        assert all(e.label != "age >= 18" for e in loan_graph.edges)
        assert loan_graph.get_edge(edge.id) == edge
        assert edge.label == "age > 65"
        assert workflow.state == DraftState.IDLE

    def test_cancel_from_pending(self, workflow, loan_graph):
        """Test cancelling a conflicting draft leaves the graph as it was."""
        before_nodes, before_edges = loan_graph.nodes, loan_graph.edges
        workflow.start_draft("age")
        workflow.propose_draft(None, Condition(op=">", value="65"))
        with pytest.raises(SemanticConflictError):
            workflow.commit_draft()

        workflow.cancel_draft()
        assert loan_graph.nodes == before_nodes
        assert loan_graph.edges == before_edges

    def test_replace_requires_pending(self, workflow):
        """Test replace is only allowed after a conflict."""
        workflow.start_draft("adult")
        workflow.propose_draft("deny", Condition(op="==", value="unknown"))
        with pytest.raises(DraftStateError):
            workflow.replace_conflicts_and_commit()

    def test_retyping_clears_pending(self, workflow):
        """Test editing the condition returns to DraftProposed."""
        workflow.start_draft("age")
        workflow.propose_draft(None, Condition(op=">", value="65"))
        with pytest.raises(SemanticConflictError):
            workflow.commit_draft()

        workflow.type_condition("< 0")
        assert workflow.state == DraftState.DRAFT_PROPOSED
        assert workflow.conflicts == []

    def test_replace_rejected_by_structure_keeps_edges(self, loan_graph):
        """Test a duplicate pair aborts replace before anything is removed."""
        wf = EdgeDraftWorkflow(loan_graph)
        wf.start_draft("age")
        wf.propose_draft("deny", Condition(op=">", value="65"))
        with pytest.raises(SemanticConflictError):
            wf.commit_draft()

        with pytest.raises(StructuralError) as exc_info:
            wf.replace_conflicts_and_commit()
        assert exc_info.value.reason == "duplicate"
        assert loan_graph.has_edge("e1")
        assert wf.state == DraftState.CONFLICT_PENDING


class TestStructuralChecks:
    """Test duplicate and cycle checks during commit."""

    def test_duplicate_pair(self, workflow, loan_graph):
        """Test a second edge between the same pair is rejected."""
        workflow.start_draft("adult")
        workflow.propose_draft("approve", Condition(op="==", value="unknown"))

        with pytest.raises(StructuralError) as exc_info:
            workflow.commit_draft()
        assert exc_info.value.reason == "duplicate"
        assert workflow.state == DraftState.DRAFT_PROPOSED
        assert len(loan_graph.edges) == 4

    def test_cycle(self, chain_workflow):
        """Test C -> A is rejected over A -> B -> C."""
        chain_workflow.start_draft("C")
        chain_workflow.propose_draft("A", Condition(op="==", value="unknown"))

        with pytest.raises(StructuralError) as exc_info:
            chain_workflow.commit_draft()
        assert exc_info.value.reason == "cycle"
        assert len(chain_workflow.graph.edges) == 2

    def test_self_loop(self, chain_workflow):
        """Test an edge from a node to itself is rejected as a cycle."""
        chain_workflow.start_draft("B")
        chain_workflow.propose_draft("B", Condition(op="==", value="unknown"))
        with pytest.raises(StructuralError) as exc_info:
            chain_workflow.commit_draft()
        assert exc_info.value.reason == "cycle"

    def test_unconnected_target(self, chain_workflow):
        """Test A -> D is accepted."""
        chain_workflow.start_draft("A")
        chain_workflow.propose_draft("D", Condition(op="==", value="unknown"))
        edge = chain_workflow.commit_draft()
        assert (edge.source, edge.target) == ("A", "D")

    def test_target_removed_after_proposal(self, chain_workflow):
        """Test a target deleted while drafting is reported as missing."""
        chain_workflow.start_draft("A")
        chain_workflow.propose_draft("D", Condition(op="==", value="unknown"))
        chain_workflow.graph.remove_node("D")

        with pytest.raises(StructuralError) as exc_info:
            chain_workflow.commit_draft()
        assert exc_info.value.reason == "missing_node"
