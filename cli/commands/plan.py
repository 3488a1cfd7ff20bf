import argparse
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from cli.core.formatter import formatter
from plan_executor.core.config import settings as executor_settings
from plan_executor.graph.nodes import plan_executor_node
from plan_executor.services.plan_executor import PlanExecutor
from plan_executor.schemas.state import (
    HUMAN_REVIEW_ENABLED,
    IS_ONLY_NL2SQL,
    PLAN_CURRENT_STEP,
    PLAN_REPAIR_COUNT,
    PLAN_VALIDATION_STATUS,
    PLANNER_NODE_OUTPUT,
    PlanExecutorContext,
)

def add_plan_commands(subparsers):
    # Common arguments parser
    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument("plan_file", help="Path to the plan JSON (Markdown code fences allowed)")
    common_parser.add_argument("--repair-count", type=int, default=0, help="Current repair counter")

    validate_parser = subparsers.add_parser("validate", parents=[common_parser], help="Validate a plan")
    validate_parser.set_defaults(func=validate_plan)

    route_parser = subparsers.add_parser("route", parents=[common_parser], help="Decide the next node for a plan")
    route_parser.add_argument("--step", type=int, default=1, help="Current 1-based step number")
    route_parser.add_argument("--human-review", action="store_true", help="Enable the human review gate")
    route_parser.add_argument("--only-nl2sql", action="store_true", help="End without a report once the plan completes")
    route_parser.set_defaults(func=route_plan)


def _read_plan(args) -> Optional[str]:
    try:
        return Path(args.plan_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        print(f"❌ Cannot read plan file: {e}", file=sys.stderr)
        return None

def _report(update: Dict[str, Any], title: str) -> int:
    formatter.print(update, title)
    return 0 if update.get(PLAN_VALIDATION_STATUS) else 1

def validate_plan(args) -> int:
    plan_text = _read_plan(args)
    if plan_text is None:
        return 1
    state = {
        PLANNER_NODE_OUTPUT: plan_text,
        PLAN_REPAIR_COUNT: args.repair_count,
    }
    result = PlanExecutor().validate(PlanExecutorContext.from_state(state))
    return _report(result.to_update(executor_settings), "Plan Validation")

def route_plan(args) -> int:
    plan_text = _read_plan(args)
    if plan_text is None:
        return 1
    state = {
        PLANNER_NODE_OUTPUT: plan_text,
        PLAN_REPAIR_COUNT: args.repair_count,
        PLAN_CURRENT_STEP: args.step,
        HUMAN_REVIEW_ENABLED: args.human_review,
        IS_ONLY_NL2SQL: args.only_nl2sql,
    }
    return _report(plan_executor_node(state), "Routing Decision")
