import json
from typing import Any, Dict
from cli.core.config import settings

class Formatter:
    """
    Handles output formatting of executor state updates (JSON or Table).
    """

    @staticmethod
    def print(update: Dict[str, Any], title: str = "Plan Executor"):
        if settings.output_format == "json":
            print(json.dumps(update, indent=2, default=str))
        else:
            Formatter._print_table(update, title)

    @staticmethod
    def _print_table(update: Dict[str, Any], title: str):
        if not update:
            print("Empty update.")
            return

        rows = []
        for key, value in update.items():
            val = "" if value is None else str(value)
            # Truncate long values (e.g. parse errors) for table view
            if len(val) > 80:
                val = val[:77] + "..."
            rows.append((key, val))

        key_width = max(len("KEY"), *(len(k) for k, _ in rows))
        val_width = max(len("VALUE"), *(len(v) for _, v in rows))
        separator = f"+{'-' * (key_width + 2)}+{'-' * (val_width + 2)}+"

        status = "✅" if update.get("plan_validation_status") else "❌"
        print(f"\n{status} {title}")

        print(separator)
        print(f"| {'KEY'.ljust(key_width)} | {'VALUE'.ljust(val_width)} |")
        print(separator)
        for key, val in rows:
            print(f"| {key.ljust(key_width)} | {val.ljust(val_width)} |")
        print(separator + "\n")

formatter = Formatter()
