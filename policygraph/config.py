"""Policy graph configuration."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PolicyGraphSettings(BaseSettings):
    """Configuration for the policy graph editor core.

    Resolution order: programmatic, environment vars, defaults.
    All settings can be overridden with the POLICYGRAPH_ prefix.
    """

    model_config = SettingsConfigDict(env_prefix="POLICYGRAPH_")

    # Serialization
    json_indent: int = Field(default=2, ge=0, description="JSON export indent")
    dot_graph_name: str = Field(
        default="policy", description="Graph name in the DOT header"
    )

    # Drafts
    default_leaf_label: str = Field(
        default="output", description="Label for new leaves without an output"
    )

    # ID allocation
    edge_id_prefix: str = "e"
    node_id_prefix: str = "n"
    leaf_id_prefix: str = "leaf"

    # Logging
    log_level: str = "INFO"
    log_format: str = "detailed"  # "simple" or "detailed"


# Global settings instance
_settings: Optional[PolicyGraphSettings] = None


def get_settings() -> PolicyGraphSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = PolicyGraphSettings()
    return _settings


def set_settings(settings: Optional[PolicyGraphSettings]) -> None:
    """Set (or reset with None) the global settings instance."""
    global _settings
    _settings = settings
