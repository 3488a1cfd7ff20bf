"""
Workflow state shared with the graph engine, and the typed views the
plan executor uses on top of it.

The graph engine owns ``PlanExecutionState``. The executor reads it through
``PlanExecutorContext`` and answers with a ``PlanExecutorResult``, which is
rendered back into a partial state update for the engine to merge.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Tuple, TypedDict

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from ..core.config import Settings


# --- STATE KEYS ---
PLANNER_NODE_OUTPUT = "planner_node_output"
HUMAN_REVIEW_ENABLED = "human_review_enabled"
IS_ONLY_NL2SQL = "is_only_nl2sql"
PLAN_CURRENT_STEP = "plan_current_step"
PLAN_REPAIR_COUNT = "plan_repair_count"
PLAN_VALIDATION_STATUS = "plan_validation_status"
PLAN_VALIDATION_ERROR = "plan_validation_error"
PLAN_NEXT_NODE = "plan_next_node"
PLAN_FAILURE_KIND = "plan_failure_kind"
HUMAN_FEEDBACK_APPROVED = "human_feedback_approved"
HUMAN_FEEDBACK_CONTENT = "human_feedback_content"
HUMAN_NEXT_NODE = "human_next_node"
STEP_RESULTS = "step_results"


class NodeKind(str, Enum):
    """Closed set of nodes the executor can route to."""
    SQL_GENERATE = "sql_generate"
    PYTHON_GENERATE = "python_generate"
    REPORT_GENERATOR = "report_generator"
    HUMAN_FEEDBACK = "human_feedback"
    END = "end"

    @classmethod
    def tools(cls) -> Tuple["NodeKind", ...]:
        """Kinds a plan step may name as its tool."""
        return (cls.SQL_GENERATE, cls.PYTHON_GENERATE, cls.REPORT_GENERATOR)


class FailureKind(str, Enum):
    """
    VALIDATION: the plan itself is defective; the planner may repair it.
    ROUTING_INCONSISTENCY: a validated plan could not be routed; re-planning
    will not help.
    """
    VALIDATION = "validation"
    ROUTING_INCONSISTENCY = "routing_inconsistency"


class PlanExecutionState(TypedDict, total=False):
    # --- INPUT (planner) ---
    planner_node_output: Any          # Plan, dict or JSON text; parsed on demand

    # --- FLAGS ---
    human_review_enabled: bool
    is_only_nl2sql: bool

    # --- STEP POINTER / REPAIR LOOP ---
    plan_current_step: int
    plan_repair_count: int

    # --- EXECUTOR OUTPUT ---
    plan_validation_status: bool
    plan_validation_error: Optional[str]
    plan_next_node: Optional[str]
    plan_failure_kind: Optional[str]

    # --- HUMAN FEEDBACK ---
    human_feedback_approved: Optional[bool]
    human_feedback_content: Optional[str]
    human_next_node: Optional[str]

    # --- TOOL OUTPUT ---
    step_results: Dict[str, Any]


def _value(state: Mapping[str, Any], key: str, default: Any) -> Any:
    value = state.get(key)
    return default if value is None else value


class PlanExecutorContext(BaseModel):
    """Read-only snapshot of the state keys the executor consumes."""
    model_config = ConfigDict(frozen=True)

    plan_data: Any = None
    human_review_enabled: bool = False
    is_only_nl2sql: bool = False
    current_step: int = 1
    repair_count: int = 0

    @classmethod
    def from_state(cls, state: Mapping[str, Any]) -> "PlanExecutorContext":
        return cls(
            plan_data=state.get(PLANNER_NODE_OUTPUT),
            human_review_enabled=_value(state, HUMAN_REVIEW_ENABLED, False),
            is_only_nl2sql=_value(state, IS_ONLY_NL2SQL, False),
            current_step=_value(state, PLAN_CURRENT_STEP, 1),
            repair_count=_value(state, PLAN_REPAIR_COUNT, 0),
        )


class PlanExecutorResult(BaseModel):
    """
    Partial state update produced by one executor invocation.

    Only fields that are set are written back: ``repair_count`` appears only
    on validation failures, ``current_step`` only when the plan completes.
    """
    model_config = ConfigDict(frozen=True)

    validation_status: bool
    validation_error: Optional[str] = None
    repair_count: Optional[int] = None
    current_step: Optional[int] = None
    next_node: Optional[NodeKind] = None
    failure: Optional[FailureKind] = None

    @classmethod
    def routed(cls, node: NodeKind, **kwargs) -> "PlanExecutorResult":
        return cls(validation_status=True, next_node=node, **kwargs)

    @classmethod
    def validation_failure(cls, error: str, previous_repair_count: int) -> "PlanExecutorResult":
        return cls(
            validation_status=False,
            validation_error=error,
            repair_count=previous_repair_count + 1,
            failure=FailureKind.VALIDATION,
        )

    @classmethod
    def routing_inconsistency(cls, error: str) -> "PlanExecutorResult":
        return cls(
            validation_status=False,
            validation_error=error,
            failure=FailureKind.ROUTING_INCONSISTENCY,
        )

    def to_update(self, settings: "Settings") -> Dict[str, Any]:
        """Render into state keys, resolving the next node to its configured identifier."""
        update: Dict[str, Any] = {PLAN_VALIDATION_STATUS: self.validation_status}
        if self.validation_error is not None:
            update[PLAN_VALIDATION_ERROR] = self.validation_error
        if self.repair_count is not None:
            update[PLAN_REPAIR_COUNT] = self.repair_count
        if self.current_step is not None:
            update[PLAN_CURRENT_STEP] = self.current_step
        if self.next_node is not None:
            update[PLAN_NEXT_NODE] = settings.node_name(self.next_node)
        # Always written so a stale failure kind never outlives the failure
        update[PLAN_FAILURE_KIND] = self.failure.value if self.failure is not None else None
        return update


class StepResultEntry(BaseModel):
    """Result recorded by a tool node for one plan step."""
    step: int
    tool: Optional[str] = None
    output: Any = None
