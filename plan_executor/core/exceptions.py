"""Exceptions raised inside the plan executor package."""


class PlanParseError(ValueError):
    """
    Raised when plan data cannot be interpreted as a Plan.

    The executor catches it and reports a structural parse failure,
    so it never reaches the workflow engine.
    """

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail
