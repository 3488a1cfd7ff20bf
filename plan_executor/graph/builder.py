from functools import partial
from typing import Any, Callable, Optional

from langgraph.graph import END, StateGraph

from ..core.config import Settings, settings as default_settings
from ..schemas.state import PlanExecutionState
from .nodes import (
    human_feedback_node,
    plan_executor_node,
    route_after_human_feedback,
    route_after_plan_executor,
)

NodeCallable = Callable[[PlanExecutionState], Any]


def build_plan_execution_graph(
    planner: NodeCallable,
    sql_generate: NodeCallable,
    python_generate: NodeCallable,
    report_generator: NodeCallable,
    settings: Optional[Settings] = None,
    checkpointer: Any = None,
):
    """
    Builds the plan execution graph around the plan executor.

    The planner and the tool nodes are external collaborators and are
    injected. Tool nodes must advance the step pointer when they finish
    (see ``advance_step``); the report generator is the last stop.
    """
    settings = settings or default_settings
    workflow = StateGraph(PlanExecutionState)

    # --- NODES ---
    workflow.add_node(settings.planner_node, planner)
    workflow.add_node(settings.plan_executor_node, partial(plan_executor_node, settings=settings))
    workflow.add_node(settings.sql_generate_node, sql_generate)
    workflow.add_node(settings.python_generate_node, python_generate)
    workflow.add_node(settings.report_generator_node, report_generator)
    workflow.add_node(settings.human_feedback_node, partial(human_feedback_node, settings=settings))

    # --- EDGES ---
    workflow.set_entry_point(settings.planner_node)
    workflow.add_edge(settings.planner_node, settings.plan_executor_node)

    workflow.add_conditional_edges(
        settings.plan_executor_node,
        partial(route_after_plan_executor, settings=settings),
        {
            settings.sql_generate_node: settings.sql_generate_node,
            settings.python_generate_node: settings.python_generate_node,
            settings.report_generator_node: settings.report_generator_node,
            settings.human_feedback_node: settings.human_feedback_node,
            settings.planner_node: settings.planner_node,
            settings.end_node: END,
        },
    )

    workflow.add_conditional_edges(
        settings.human_feedback_node,
        partial(route_after_human_feedback, settings=settings),
        {
            settings.plan_executor_node: settings.plan_executor_node,
            settings.planner_node: settings.planner_node,
            settings.end_node: END,
        },
    )

    # Tool nodes hand control back to the executor for the next step
    workflow.add_edge(settings.sql_generate_node, settings.plan_executor_node)
    workflow.add_edge(settings.python_generate_node, settings.plan_executor_node)

    # The report generator is the last stop
    workflow.add_edge(settings.report_generator_node, END)

    return workflow.compile(checkpointer=checkpointer)
