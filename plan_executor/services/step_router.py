"""
Review gate and step router.

Both run only after the plan passed validation. The review gate decides
whether execution pauses for a human before any step is dispatched; the step
router maps the current step pointer to the node that must handle it.
"""

from typing import Optional

from ..core.config import Settings, settings as default_settings
from ..core.logging import get_logger
from ..schemas.plan import Plan
from ..schemas.state import NodeKind, PlanExecutorContext, PlanExecutorResult

logger = get_logger("services.step_router")


class ReviewGate:
    """Pauses a validated plan for human review when the flag is set."""

    def check(self, context: PlanExecutorContext) -> Optional[PlanExecutorResult]:
        if context.human_review_enabled:
            logger.info("Human review enabled: routing to human feedback node")
            return PlanExecutorResult.routed(NodeKind.HUMAN_FEEDBACK)
        return None


class StepRouter:
    """
    Decides which node handles the current step, or whether the plan is done.

    The router never advances the step pointer. Tool nodes do that once their
    step is finished; the router only resets it to 1 when the plan completes.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def route(self, plan: Plan, context: PlanExecutorContext) -> PlanExecutorResult:
        steps = plan.steps
        current_step = context.current_step

        logger.info(
            f"currentStep={current_step}, isOnlyNl2Sql={context.is_only_nl2sql}, "
            f"executionPlanTools={plan.tools()}"
        )

        if current_step > len(steps):
            logger.info(f"Plan completed, current step: {current_step}, total steps: {len(steps)}")
            final_node = NodeKind.END if context.is_only_nl2sql else NodeKind.REPORT_GENERATOR
            return PlanExecutorResult.routed(final_node, current_step=1)

        if current_step < 1:
            logger.error(f"Invalid current step: {current_step}")
            return PlanExecutorResult.routing_inconsistency(f"Invalid current step: {current_step}")

        tool_to_use = plan.step_at(current_step).tool_to_use
        logger.info(f"Selecting tool '{tool_to_use}' for step {current_step}")
        return self.determine_next_node(tool_to_use)

    def determine_next_node(self, tool_to_use: Optional[str]) -> PlanExecutorResult:
        """Map a step's tool identifier to a routing decision."""
        kind = self.settings.node_kind(tool_to_use)

        if kind in NodeKind.tools() or kind is NodeKind.HUMAN_FEEDBACK:
            logger.info(f"Determined next execution node: {tool_to_use}")
            return PlanExecutorResult.routed(kind)

        # Validation rejects unknown tools, so reaching this means the plan
        # and the configured identifiers disagree.
        logger.error(f"Unsupported node type: {tool_to_use}")
        return PlanExecutorResult.routing_inconsistency(f"Unsupported node type: {tool_to_use}")
