"""
Plan executor configuration management using Pydantic Settings.

This module provides centralized configuration for the plan executor:
- Node identifiers used by the outer workflow graph
- Repair attempt budget for re-planning
- Logging options

All configuration values can be overridden via environment variables.
The .env file is automatically loaded if present in the project root.
"""

from typing import Dict, Optional, Tuple

from langgraph.graph import END
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..schemas.state import NodeKind


class Settings(BaseSettings):
    """
    Plan executor settings with environment variable support.

    Node identifiers are the labels the outer graph registers its nodes
    under. The executor never hard-codes them: every routing decision is
    expressed as a ``NodeKind`` and resolved to a label through these settings.

    Attributes:
        sql_generate_node: Identifier of the SQL generation node
        python_generate_node: Identifier of the Python script generation node
        report_generator_node: Identifier of the report generation node
        human_feedback_node: Identifier of the human feedback node
        planner_node: Identifier of the upstream planning node
        plan_executor_node: Identifier of the plan executor node itself
        end_node: Terminal sentinel understood by the graph engine
        max_plan_repair_attempts: Re-planning budget before the run is abandoned
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "text" for human readable logs, "json" for structured logs

    Example:
        ```python
        from plan_executor.core.config import settings
        print(settings.sql_generate_node)
        ```
    """

    # Tool nodes
    sql_generate_node: str = Field(
        default="sql_generate",
        alias="SQL_GENERATE_NODE",
        description="Node that turns a step instruction into SQL"
    )

    python_generate_node: str = Field(
        default="python_generate",
        alias="PYTHON_GENERATE_NODE",
        description="Node that turns a step instruction into a Python script"
    )

    report_generator_node: str = Field(
        default="report_generator",
        alias="REPORT_GENERATOR_NODE",
        description="Node that summarizes step results into the final report"
    )

    # Control nodes
    human_feedback_node: str = Field(
        default="human_feedback",
        alias="HUMAN_FEEDBACK_NODE",
        description="Pause point where a human approves or edits the plan"
    )

    planner_node: str = Field(
        default="planner",
        alias="PLANNER_NODE",
        description="Upstream node that (re)generates the plan"
    )

    plan_executor_node: str = Field(
        default="plan_executor",
        alias="PLAN_EXECUTOR_NODE",
        description="Node this package registers in the workflow graph"
    )

    end_node: str = Field(
        default=END,
        alias="END_NODE",
        description="Terminal sentinel. Defaults to the LangGraph END marker."
    )

    # Repair loop
    max_plan_repair_attempts: int = Field(
        default=2,
        alias="MAX_PLAN_REPAIR_ATTEMPTS",
        ge=0,
        description="Number of re-planning attempts allowed after validation failures"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_format: str = Field(
        default="text",
        alias="LOG_FORMAT",
        description="Log output format: text or json"
    )

    # env_file: Loads .env file from project root if present
    # case_sensitive: Environment variable names are case-insensitive
    # populate_by_name: Allows Settings(sql_generate_node=...) in tests
    # extra: The .env file is shared with the CLI, so unknown keys are skipped
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    def node_names(self) -> Dict[NodeKind, str]:
        """Maps every routable node kind to its configured identifier."""
        return {
            NodeKind.SQL_GENERATE: self.sql_generate_node,
            NodeKind.PYTHON_GENERATE: self.python_generate_node,
            NodeKind.REPORT_GENERATOR: self.report_generator_node,
            NodeKind.HUMAN_FEEDBACK: self.human_feedback_node,
            NodeKind.END: self.end_node,
        }

    def node_name(self, kind: NodeKind) -> str:
        return self.node_names()[kind]

    def node_kind(self, identifier: Optional[str]) -> Optional[NodeKind]:
        """
        Reverse lookup of a node identifier.

        Returns:
            Optional[NodeKind]: The matching kind, or None if the identifier
            is not one of the configured node identifiers.
        """
        if identifier is None:
            return None
        for kind, name in self.node_names().items():
            if name == identifier:
                return kind
        return None

    def supported_tools(self) -> Tuple[str, ...]:
        """Identifiers a plan step may name in toolToUse."""
        return tuple(self.node_name(kind) for kind in NodeKind.tools())


# Global settings instance
# Import this in other modules: from .core.config import settings
settings = Settings()
