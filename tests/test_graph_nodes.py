"""Tests for the LangGraph node and router adapters"""
import pytest
from langgraph.graph import END

from plan_executor.core.config import Settings
from plan_executor.graph.nodes import (
    advance_step,
    human_feedback_node,
    plan_executor_node,
    route_after_human_feedback,
    route_after_plan_executor,
)
from plan_executor.schemas.state import (
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
)


# =============================================================================
# PLAN EXECUTOR NODE
# =============================================================================

def test_plan_executor_node_returns_partial_update(test_settings, make_state, two_step_plan):
    state = make_state(plan=two_step_plan, step=2, as_json=True)
    update = plan_executor_node(state, settings=test_settings)

    assert update == {
        PLAN_VALIDATION_STATUS: True,
        PLAN_NEXT_NODE: "python_generate",
        PLAN_FAILURE_KIND: None,
    }
    # The input snapshot is not mutated
    assert PLAN_NEXT_NODE not in state


def test_plan_executor_node_ill_typed_state(test_settings, make_state, two_step_plan):
    """Test that a garbage step pointer is reported, not raised"""
    state = make_state(plan=two_step_plan, step="third")
    update = plan_executor_node(state, settings=test_settings)

    assert update[PLAN_VALIDATION_STATUS] is False
    assert update[PLAN_FAILURE_KIND] == "routing_inconsistency"
    assert PLAN_REPAIR_COUNT not in update


def test_plan_executor_node_empty_step_list(test_settings, make_state):
    update = plan_executor_node(make_state(plan=[]), settings=test_settings)

    assert update[PLAN_VALIDATION_STATUS] is False
    assert update[PLAN_REPAIR_COUNT] == 1
    assert "empty" in update[PLAN_VALIDATION_ERROR]


# =============================================================================
# ROUTER AFTER PLAN EXECUTOR
# =============================================================================

def test_route_valid_plan_to_next_node(test_settings):
    state = {PLAN_VALIDATION_STATUS: True, PLAN_NEXT_NODE: "sql_generate"}
    assert route_after_plan_executor(state, settings=test_settings) == "sql_generate"


def test_route_invalid_plan_back_to_planner(test_settings):
    state = {PLAN_VALIDATION_STATUS: False, PLAN_REPAIR_COUNT: 1, PLAN_FAILURE_KIND: "validation"}
    assert route_after_plan_executor(state, settings=test_settings) == "planner"


def test_route_invalid_plan_at_budget_still_replans(test_settings):
    state = {PLAN_VALIDATION_STATUS: False, PLAN_REPAIR_COUNT: test_settings.max_plan_repair_attempts}
    assert route_after_plan_executor(state, settings=test_settings) == "planner"


def test_route_ends_when_repairs_exhausted(test_settings):
    state = {PLAN_VALIDATION_STATUS: False, PLAN_REPAIR_COUNT: test_settings.max_plan_repair_attempts + 1}
    assert route_after_plan_executor(state, settings=test_settings) == END


def test_route_routing_inconsistency_ends(test_settings):
    state = {
        PLAN_VALIDATION_STATUS: False,
        PLAN_VALIDATION_ERROR: "Unsupported node type: shell",
        PLAN_FAILURE_KIND: "routing_inconsistency",
        PLAN_REPAIR_COUNT: 0,
    }
    assert route_after_plan_executor(state, settings=test_settings) == END


def test_route_uses_configured_budget():
    settings = Settings(_env_file=None, MAX_PLAN_REPAIR_ATTEMPTS=0)
    state = {PLAN_VALIDATION_STATUS: False, PLAN_REPAIR_COUNT: 1}
    assert route_after_plan_executor(state, settings=settings) == END


# =============================================================================
# HUMAN FEEDBACK
# =============================================================================

def test_human_feedback_waits_without_decision(test_settings):
    update = human_feedback_node({HUMAN_REVIEW_ENABLED: True}, settings=test_settings)
    assert update == {HUMAN_NEXT_NODE: END}
    assert route_after_human_feedback({**update}, settings=test_settings) == END


def test_human_feedback_approval_disables_gate(test_settings):
    state = {HUMAN_REVIEW_ENABLED: True, HUMAN_FEEDBACK_APPROVED: True, PLAN_CURRENT_STEP: 1}
    update = human_feedback_node(state, settings=test_settings)

    assert update[HUMAN_REVIEW_ENABLED] is False
    assert update[HUMAN_FEEDBACK_APPROVED] is None
    assert PLAN_CURRENT_STEP not in update
    assert route_after_human_feedback(update, settings=test_settings) == "plan_executor"


def test_human_feedback_approval_mid_plan_advances_step(test_settings):
    state = {HUMAN_REVIEW_ENABLED: False, HUMAN_FEEDBACK_APPROVED: True, PLAN_CURRENT_STEP: 2}
    update = human_feedback_node(state, settings=test_settings)

    assert update[PLAN_CURRENT_STEP] == 3
    assert update[STEP_RESULTS]["step_2"]["output"] == "approved"
    assert update[HUMAN_NEXT_NODE] == "plan_executor"


def test_human_feedback_rejection_returns_to_planner(test_settings):
    state = {
        HUMAN_REVIEW_ENABLED: True,
        HUMAN_FEEDBACK_APPROVED: False,
        HUMAN_FEEDBACK_CONTENT: "Use the invoices table",
        PLAN_CURRENT_STEP: 2,
        PLAN_REPAIR_COUNT: 0,
    }
    update = human_feedback_node(state, settings=test_settings)

    assert update[PLAN_REPAIR_COUNT] == 1
    assert update[PLAN_CURRENT_STEP] == 1
    assert update[PLAN_VALIDATION_STATUS] is False
    assert "Use the invoices table" in update[PLAN_VALIDATION_ERROR]
    assert route_after_human_feedback(update, settings=test_settings) == "planner"


def test_human_feedback_rejection_exhausts_budget(test_settings):
    state = {
        HUMAN_FEEDBACK_APPROVED: False,
        PLAN_REPAIR_COUNT: test_settings.max_plan_repair_attempts,
    }
    update = human_feedback_node(state, settings=test_settings)
    assert update[HUMAN_NEXT_NODE] == END


# =============================================================================
# STEP ADVANCE
# =============================================================================

def test_advance_step_records_results():
    state = {PLAN_CURRENT_STEP: 1}
    first = advance_step(state, "SELECT 1", tool="sql_generate")

    assert first[PLAN_CURRENT_STEP] == 2
    assert first[STEP_RESULTS] == {"step_1": {"step": 1, "tool": "sql_generate", "output": "SELECT 1"}}

    second = advance_step({**state, **first}, {"rows": 3})
    assert second[PLAN_CURRENT_STEP] == 3
    assert set(second[STEP_RESULTS]) == {"step_1", "step_2"}


@pytest.mark.parametrize("state", [{}, {PLAN_CURRENT_STEP: None}])
def test_advance_step_defaults_to_first_step(state):
    update = advance_step(state, "ok")
    assert update[PLAN_CURRENT_STEP] == 2
    assert "step_1" in update[STEP_RESULTS]
