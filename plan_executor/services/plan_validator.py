"""
Plan Validation Service.

This service checks the structural well-formedness of an execution plan
before any of its steps is dispatched:
- the plan exists and has at least one step
- every step names a supported tool
- every step carries tool parameters (an empty mapping is fine)

It does not look inside the tool parameters; interpreting them is the job
of the tool nodes.
"""

from typing import Optional, Tuple

from ..core.config import Settings, settings as default_settings
from ..schemas.plan import Plan

EMPTY_PLAN_ERROR = "Validation failed: The generated plan is empty or has no execution steps."
INVALID_TOOL_ERROR = "Validation failed: Plan contains an invalid tool name: '{tool}' in step {step}"
MISSING_PARAMETERS_ERROR = "Validation failed: Tool parameters are missing for step {step}"
PARSE_ERROR = "Validation failed: The plan is not a valid JSON structure. Error: {detail}"


class PlanValidator:
    """
    Service for validating execution plans.

    The supported tool set is read from settings on every call, so node
    identifiers configured through the environment are honoured.

    Example:
        ```python
        is_valid, error = PlanValidator().validate(plan)
        if not is_valid:
            print(f"Plan Error: {error}")
        ```
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

    def validate(self, plan: Optional[Plan]) -> Tuple[bool, Optional[str]]:
        """
        Validate the structure of a plan.

        Steps are checked in order and the first defect wins.

        Args:
            plan: Parsed plan, or None when the planner produced nothing

        Returns:
            Tuple[bool, Optional[str]]:
                - (True, None) if the plan is valid
                - (False, error_message) if it is not

        Example:
            >>> PlanValidator().validate(Plan(executionPlan=[]))
            (False, 'Validation failed: The generated plan is empty or has no execution steps.')
        """
        if plan is None or not plan.steps:
            return False, EMPTY_PLAN_ERROR

        supported = self.settings.supported_tools()
        for step in plan.steps:
            if step.tool_to_use is None or step.tool_to_use not in supported:
                return False, INVALID_TOOL_ERROR.format(tool=step.tool_to_use, step=step.step)
            if step.tool_parameters is None:
                return False, MISSING_PARAMETERS_ERROR.format(step=step.step)

        return True, None

    @staticmethod
    def parse_error(detail: str) -> str:
        """Message for plan data that could not be interpreted at all."""
        return PARSE_ERROR.format(detail=detail)
