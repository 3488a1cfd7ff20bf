import sys
import argparse
from dotenv import find_dotenv, load_dotenv
from cli.core.config import settings
from cli.commands.plan import add_plan_commands
from plan_executor.core.config import settings as executor_settings
from plan_executor.core.logging import configure_logging

def main(argv=None) -> int:
    # .env from the working directory; variables already set win
    load_dotenv(find_dotenv(usecwd=True))
    settings.load()

    parser = argparse.ArgumentParser(
        description="NL2SQL Plan Executor CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  plan-executor validate plan.json
  plan-executor route plan.json --step 2 --only-nl2sql
  PLAN_EXECUTOR_CLI_OUTPUT=table plan-executor route plan.json --human-review
        """
    )

    # Global args
    parser.add_argument("--format", choices=["json", "table"], default=settings.output_format, help="Output format")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", title="Commands")

    # Register commands
    add_plan_commands(subparsers)

    # Parse
    args = parser.parse_args(argv)

    # Apply overrides
    if args.format:
        settings.output_format = args.format
    if args.debug:
        settings.debug = True

    # stdout carries the result, logs go to stderr
    configure_logging("DEBUG" if settings.debug else executor_settings.log_level, executor_settings.log_format, stream=sys.stderr)

    if not args.command:
        parser.print_help()
        return 1

    # Execute
    return args.func(args)

if __name__ == "__main__":
    sys.exit(main())
