"""
Command-line entry point.

    python -m webpilot "<goal>" [start_url]
    python -m webpilot --serve
"""

import argparse
import asyncio
import logging
import sys

from .core.config import settings
from .core.logging_setup import configure_logging
from .core.models import Goal, RunOutcome


logger = logging.getLogger("webpilot.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webpilot",
        description="Goal-driven browser agent",
        epilog=(
            "Examples:\n"
            '  python -m webpilot "Get weather for NYC" https://weather.com\n'
            '  python -m webpilot "Top 5 Hacker News stories" https://news.ycombinator.com'
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("goal", nargs="?", help="What the agent should accomplish")
    parser.add_argument("start_url", nargs="?", help="Page to open before the first step")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=settings.default_max_steps,
        help=f"Step budget (default: {settings.default_max_steps})",
    )
    parser.add_argument(
        "--allow",
        action="append",
        default=None,
        metavar="DOMAIN",
        help="Restrict navigation to this domain (repeatable)",
    )
    parser.add_argument("--serve", action="store_true", help="Start the HTTP API instead")
    parser.add_argument("--host", default=settings.api_host, help="API host")
    parser.add_argument("--port", type=int, default=settings.api_port, help="API port")
    return parser


async def run_goal(goal: Goal, start_url: str | None) -> RunOutcome:
    from .agents.orchestrator import BrowserAgent

    return await BrowserAgent().run(goal, start_url)


def serve(host: str, port: int) -> None:
    import uvicorn

    from .api.main import create_app

    uvicorn.run(create_app(), host=host, port=port, log_level=settings.log_level.lower())


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    if args.serve:
        serve(args.host, args.port)
        return 0

    if not args.goal:
        parser.print_help()
        return 1

    if args.max_steps < 1:
        parser.error("--max-steps must be at least 1")

    goal = Goal(
        user_prompt=args.goal,
        allowed_domains=args.allow,
        max_steps=args.max_steps,
    )

    logger.info("Goal: %s", goal.user_prompt)
    if args.start_url:
        logger.info("Start URL: %s", args.start_url)

    try:
        outcome = asyncio.run(run_goal(goal, args.start_url))
    except ValueError as e:
        # Missing API key or unknown provider
        print(f"\n❌ {e}")
        return 1

    if outcome.success:
        print(f"\n✅ Success ({outcome.steps} steps)")
        print(outcome.result or "")
        return 0

    print(f"\n❌ Failed ({outcome.steps} steps)")
    print(f"Error: {outcome.error or outcome.result}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
