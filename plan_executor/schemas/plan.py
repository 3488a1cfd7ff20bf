"""
Plan DTOs produced by the upstream planner.

The planner is an LLM, so its output arrives as JSON text (often wrapped in a
Markdown code fence) and field presence is not guaranteed. Fields the
validator must report on (toolToUse, toolParameters) are therefore optional
here: the schema accepts their absence and the PlanValidator rejects it with
a precise message.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..core.exceptions import PlanParseError

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n(?P<body>.*?)\n?\s*```\s*$", re.DOTALL)


class ExecutionStep(BaseModel):
    """One unit of work in a plan."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    step: int = Field(..., description="1-based ordinal, matches the position in the plan")
    tool_to_use: Optional[str] = Field(
        default=None,
        alias="toolToUse",
        description="Identifier of the downstream node that handles this step"
    )
    tool_parameters: Optional[Dict[str, Any]] = Field(
        default=None,
        alias="toolParameters",
        description="Parameters for the tool. Opaque to the executor; may be empty but not absent."
    )


class Plan(BaseModel):
    """Ordered execution plan. Step order is execution order."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    thought_process: Optional[str] = Field(default=None, alias="thoughtProcess")
    execution_plan: Optional[List[ExecutionStep]] = Field(default=None, alias="executionPlan")

    @property
    def steps(self) -> List[ExecutionStep]:
        return list(self.execution_plan or [])

    def tools(self) -> List[Optional[str]]:
        return [step.tool_to_use for step in self.steps]

    def step_at(self, number: int) -> Optional[ExecutionStep]:
        """Returns the step with the given 1-based position, or None when out of range."""
        steps = self.steps
        if 1 <= number <= len(steps):
            return steps[number - 1]
        return None


_STEPS_ADAPTER = TypeAdapter(List[ExecutionStep])


def _strip_code_fence(text: str) -> str:
    match = _FENCE_RE.match(text)
    if match:
        return match.group("body")
    return text


def parse_plan(data: Any) -> Optional[Plan]:
    """
    Interpret raw plan data from the workflow state.

    Args:
        data: A Plan, a mapping, a JSON string, or a JSON string wrapped in
              a Markdown code fence. A bare list of steps (or a JSON array)
              is read as the plan's executionPlan. None means no plan was
              produced.

    Returns:
        Optional[Plan]: The parsed plan, or None if ``data`` is None.

    Raises:
        PlanParseError: If the data cannot be interpreted as a plan. The
        message carries the underlying error detail.
    """
    if data is None or isinstance(data, Plan):
        return data

    try:
        if isinstance(data, (str, bytes)):
            text = data.decode("utf-8") if isinstance(data, bytes) else data
            body = _strip_code_fence(text).strip()
            if body.startswith("["):
                return Plan(execution_plan=_STEPS_ADAPTER.validate_json(body))
            return Plan.model_validate_json(body)
        if isinstance(data, Mapping):
            return Plan.model_validate(dict(data))
        if isinstance(data, Sequence):
            return Plan(execution_plan=_STEPS_ADAPTER.validate_python(list(data)))
    except ValidationError as e:
        raise PlanParseError(str(e)) from e
    except UnicodeDecodeError as e:
        raise PlanParseError(str(e)) from e

    raise PlanParseError(f"Unsupported plan representation: {type(data).__name__}")
