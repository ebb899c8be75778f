"""
Controller entry point.

Usage:
    python -m build_controller.worker [OPTIONS]

Options:
    --poll-interval N   Seconds between polls (default: from config)
"""
from __future__ import annotations

import argparse
import sys

from .loop import run_controller


def main() -> int:
    """Main entry point for the controller process."""
    parser = argparse.ArgumentParser(
        description="Component build controller - submits builds for drifted components",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with default settings
    python -m build_controller.worker

    # Run with custom poll interval
    python -m build_controller.worker --poll-interval 10
        """,
    )

    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between poll cycles (default: from config)",
    )

    args = parser.parse_args()

    try:
        run_controller(poll_interval=args.poll_interval)
        return 0
    except KeyboardInterrupt:
        print("\nController stopped by user")
        return 0
    except Exception as e:
        print(f"Controller error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
