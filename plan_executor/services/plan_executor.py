"""
Plan executor: the decision component invoked once per workflow turn.

Each call runs Validating -> {Failed, AwaitingHumanReview, Dispatching} and
Dispatching -> {StepDispatched, Completed, Failed}. Every outcome is returned
as a PlanExecutorResult; nothing is raised to the caller and nothing is kept
between calls.
"""

from typing import Optional, Tuple

from ..core.config import Settings, settings as default_settings
from ..core.exceptions import PlanParseError
from ..core.logging import get_logger
from ..schemas.plan import Plan, parse_plan
from ..schemas.state import PlanExecutorContext, PlanExecutorResult
from .plan_validator import PlanValidator
from .step_router import ReviewGate, StepRouter

logger = get_logger("services.plan_executor")


class PlanExecutor:
    """
    Validates the current plan and emits the next routing decision.

    Example:
        ```python
        executor = PlanExecutor()
        result = executor.execute(PlanExecutorContext.from_state(state))
        update = result.to_update(executor.settings)
        ```
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self.validator = PlanValidator(self.settings)
        self.review_gate = ReviewGate()
        self.router = StepRouter(self.settings)

    def execute(self, context: PlanExecutorContext) -> PlanExecutorResult:
        plan, error = self._load_and_validate(context)
        if error is not None:
            return PlanExecutorResult.validation_failure(error, context.repair_count)

        gated = self.review_gate.check(context)
        if gated is not None:
            return gated

        return self.router.route(plan, context)

    def validate(self, context: PlanExecutorContext) -> PlanExecutorResult:
        """Runs the validation stage only; no gating, no routing."""
        _, error = self._load_and_validate(context)
        if error is not None:
            return PlanExecutorResult.validation_failure(error, context.repair_count)
        return PlanExecutorResult(validation_status=True)

    def _load_and_validate(self, context: PlanExecutorContext) -> Tuple[Optional[Plan], Optional[str]]:
        try:
            plan = parse_plan(context.plan_data)
            is_valid, error = self.validator.validate(plan)
        except PlanParseError as e:
            logger.error("Plan validation failed due to a parsing error.", exc_info=True)
            return None, PlanValidator.parse_error(e.detail)
        except Exception as e:
            logger.error("Unexpected error while interpreting the plan.", exc_info=True)
            return None, PlanValidator.parse_error(str(e))

        if not is_valid:
            logger.warning(f"{error} (repair attempt {context.repair_count + 1})")
            return None, error

        logger.info("Plan validation successful.")
        return plan, None
