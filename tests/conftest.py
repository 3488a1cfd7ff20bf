"""Pytest configuration and fixtures"""
import json
import logging
import pytest

from plan_executor.core.config import Settings
from plan_executor.schemas.state import (
    HUMAN_REVIEW_ENABLED,
    IS_ONLY_NL2SQL,
    PLAN_CURRENT_STEP,
    PLAN_REPAIR_COUNT,
    PLANNER_NODE_OUTPUT,
)


@pytest.fixture
def test_settings():
    """Default node identifiers, isolated from any local .env file"""
    return Settings(_env_file=None)


@pytest.fixture
def two_step_plan():
    """A valid plan: query the data, then analyse it with Python"""
    return {
        "thoughtProcess": "Fetch monthly revenue, then compute the growth rate.",
        "executionPlan": [
            {
                "step": 1,
                "toolToUse": "sql_generate",
                "toolParameters": {"instruction": "Monthly revenue for 2024"},
            },
            {
                "step": 2,
                "toolToUse": "python_generate",
                "toolParameters": {"instruction": "Month over month growth"},
            },
        ],
    }


@pytest.fixture
def make_state():
    """Build a workflow state dict; None values are left out"""
    def _make_state(plan=None, step=None, human_review=None, only_nl2sql=None, repair_count=None, as_json=False):
        state = {
            PLANNER_NODE_OUTPUT: json.dumps(plan) if as_json and plan is not None else plan,
            PLAN_CURRENT_STEP: step,
            HUMAN_REVIEW_ENABLED: human_review,
            IS_ONLY_NL2SQL: only_nl2sql,
            PLAN_REPAIR_COUNT: repair_count,
        }
        return {k: v for k, v in state.items() if v is not None}
    return _make_state


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers bound to captured streams once a test is done"""
    yield
    logger = logging.getLogger("plan_executor")
    logger.handlers.clear()
    logger.propagate = True
