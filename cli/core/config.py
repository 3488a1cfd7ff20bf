import os

class Config:
    """
    Configuration manager for the plan executor CLI.
    Prioritizes:
    1. Environment variables (PLAN_EXECUTOR_CLI_*)
    2. Defaults
    """

    DEFAULT_OUTPUT_FORMAT = "json"  # json, table

    def __init__(self):
        self.load()

    def load(self):
        """(Re)reads the environment, e.g. after a .env file was loaded"""
        self.output_format = os.environ.get("PLAN_EXECUTOR_CLI_OUTPUT", self.DEFAULT_OUTPUT_FORMAT)
        self.debug = os.environ.get("PLAN_EXECUTOR_CLI_DEBUG", "false").lower() == "true"

settings = Config()
