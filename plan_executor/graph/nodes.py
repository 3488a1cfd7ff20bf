"""
LangGraph adapters around the plan executor.

Nodes receive the shared state and return a partial update; routers read the
state after the update was merged and return the label of the next node.
Routers never mutate state.
"""

from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger, log_state_transition
from ..schemas.state import (
    HUMAN_FEEDBACK_APPROVED,
    HUMAN_FEEDBACK_CONTENT,
    HUMAN_NEXT_NODE,
    HUMAN_REVIEW_ENABLED,
    PLAN_CURRENT_STEP,
    PLAN_FAILURE_KIND,
    PLAN_NEXT_NODE,
    PLAN_REPAIR_COUNT,
    PLAN_VALIDATION_ERROR,
    PLAN_VALIDATION_STATUS,
    STEP_RESULTS,
    FailureKind,
    PlanExecutionState,
    PlanExecutorContext,
    PlanExecutorResult,
    StepResultEntry,
)
from ..services.plan_executor import PlanExecutor

logger = get_logger("graph.routers")


def plan_executor_node(state: PlanExecutionState, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Validates the plan and records the routing decision in the state."""
    settings = settings or default_settings
    adapter = get_logger("graph.nodes", node=settings.plan_executor_node)
    adapter.info("▶️ NODE START")

    try:
        context = PlanExecutorContext.from_state(state)
    except ValidationError as e:
        adapter.error(f"Workflow state has ill-typed executor keys: {e}")
        result = PlanExecutorResult.routing_inconsistency(f"Invalid workflow state: {e}")
    else:
        result = PlanExecutor(settings).execute(context)

    update = result.to_update(settings)
    log_state_transition(adapter, settings.plan_executor_node, update)
    return update


def route_after_plan_executor(state: PlanExecutionState, settings: Optional[Settings] = None) -> str:
    """
    Picks the node that follows the plan executor.

    - valid plan: the node the executor chose
    - routing inconsistency: END, re-planning cannot fix it
    - validation failure within the repair budget: back to the planner
    - repair budget exhausted: END
    """
    settings = settings or default_settings

    if state.get(PLAN_VALIDATION_STATUS, False):
        next_node = state.get(PLAN_NEXT_NODE) or settings.end_node
        logger.info(f"Plan executor routed to: {next_node}")
        return next_node

    if state.get(PLAN_FAILURE_KIND) == FailureKind.ROUTING_INCONSISTENCY.value:
        logger.error(f"Aborting: {state.get(PLAN_VALIDATION_ERROR)}")
        return settings.end_node

    repair_count = state.get(PLAN_REPAIR_COUNT) or 0
    if repair_count > settings.max_plan_repair_attempts:
        logger.error(
            f"Plan repair attempts exhausted ({repair_count} > {settings.max_plan_repair_attempts}); ending workflow."
        )
        return settings.end_node

    logger.warning(f"Plan invalid, returning to planner (attempt {repair_count}): {state.get(PLAN_VALIDATION_ERROR)}")
    return settings.planner_node


def human_feedback_node(state: PlanExecutionState, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Applies a human decision on the plan.

    No decision yet: the workflow stops at END so the engine can resume once
    feedback arrives. Approval before execution turns the review gate off so it
    fires once per plan; approval of a mid-plan review step advances the step
    pointer. Rejection sends the plan back to the planner with the feedback.
    """
    settings = settings or default_settings
    adapter = get_logger("graph.nodes", node=settings.human_feedback_node)
    adapter.info("▶️ NODE START")

    approved = state.get(HUMAN_FEEDBACK_APPROVED)
    if approved is None:
        adapter.info("Waiting for human feedback")
        update = {HUMAN_NEXT_NODE: settings.end_node}

    elif approved:
        update = {HUMAN_FEEDBACK_APPROVED: None, HUMAN_NEXT_NODE: settings.plan_executor_node}
        if state.get(HUMAN_REVIEW_ENABLED, False):
            update[HUMAN_REVIEW_ENABLED] = False
        else:
            update.update(advance_step(state, "approved", tool=settings.human_feedback_node))
        adapter.info("Plan approved by human reviewer")

    else:
        repair_count = (state.get(PLAN_REPAIR_COUNT) or 0) + 1
        content = state.get(HUMAN_FEEDBACK_CONTENT) or ""
        update = {
            HUMAN_FEEDBACK_APPROVED: None,
            PLAN_REPAIR_COUNT: repair_count,
            PLAN_CURRENT_STEP: 1,
            PLAN_VALIDATION_STATUS: False,
            PLAN_VALIDATION_ERROR: f"Plan rejected by user: {content}" if content else "Plan rejected by user",
            PLAN_FAILURE_KIND: FailureKind.VALIDATION.value,
        }
        if repair_count > settings.max_plan_repair_attempts:
            adapter.warning(f"Plan rejected and repair attempts exhausted ({repair_count})")
            update[HUMAN_NEXT_NODE] = settings.end_node
        else:
            adapter.info("Plan rejected by human reviewer, returning to planner")
            update[HUMAN_NEXT_NODE] = settings.planner_node

    log_state_transition(adapter, settings.human_feedback_node, update)
    return update


def route_after_human_feedback(state: PlanExecutionState, settings: Optional[Settings] = None) -> str:
    settings = settings or default_settings
    return state.get(HUMAN_NEXT_NODE) or settings.end_node


def advance_step(state: PlanExecutionState, result: Any, tool: Optional[str] = None) -> Dict[str, Any]:
    """
    Partial update a tool node returns once its step is done.

    Moves the step pointer forward and records ``result`` under ``step_<n>``
    in the step results, keeping the results of earlier steps.
    """
    current_step = state.get(PLAN_CURRENT_STEP) or 1
    results = dict(state.get(STEP_RESULTS) or {})
    results[f"step_{current_step}"] = StepResultEntry(step=current_step, tool=tool, output=result).model_dump()
    return {
        PLAN_CURRENT_STEP: current_step + 1,
        STEP_RESULTS: results,
    }

