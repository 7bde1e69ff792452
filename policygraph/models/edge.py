"""Edge and condition models for policy graph connections."""

from typing import Optional

from pydantic import BaseModel, Field

SUPPORTED_OPS = ("==", "!=", ">", ">=", "<", "<=", "in")


class Condition(BaseModel):
    """Routing condition on an edge, e.g. ``age >= 18``.

    ``value`` is a single literal, or a comma-separated list for ``in``.
    """

    variable: str = ""
    op: str = ""
    value: str = ""

    def display_label(self) -> str:
        """Join the non-empty parts with single spaces."""
        return " ".join(p for p in (self.variable, self.op, self.value) if p)


class Edge(BaseModel):
    """Directed connection between two nodes."""

    id: str = Field(..., description="Unique edge ID")
    source: str = Field(..., description="Source node ID")
    target: str = Field(..., description="Target node ID")

    label: Optional[str] = Field(
        None, description="Human-readable rendering of the condition"
    )
    condition: Optional[Condition] = None
    output: Optional[str] = Field(
        None, description="Outcome value. Only meaningful when target is a leaf."
    )
