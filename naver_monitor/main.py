"""
Main entry point for the Naver News Keyword Monitor.
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from .orchestrator import ApplicationOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="naver-monitor",
        description="Watch the Naver news listing for posts matching keyword conditions.",
    )
    parser.add_argument(
        "config",
        nargs="?",
        default=None,
        help="Path to a YAML or JSON configuration file",
    )
    parser.add_argument(
        "-c",
        "--conditions",
        default=None,
        help="Condition spreadsheet (.xlsx) with condition and tag columns",
    )
    return parser


async def async_main(config_path: Optional[str] = None, conditions_path: Optional[str] = None):
    """Async main application entry point."""
    orchestrator = ApplicationOrchestrator(config_path, conditions_path)
    await orchestrator.run()


def main(argv: Optional[List[str]] = None):
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    try:
        asyncio.run(async_main(args.config, args.conditions))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
