"""Build data.json and metadata.json for the dashboard.

Runs every source adapter, normalizes and aggregates the sessions and
writes both files to the output directory (default: frontend/public).

Run with: python scripts/build_dataset.py
Refresh:  python scripts/build_dataset.py --refresh-optisport
Lanes:    python scripts/build_dataset.py --activity Banenzwemmen
Output:   python scripts/build_dataset.py --output-dir dist

The Optisport pools are read from data/optisport_data.json; pass
--refresh-optisport (or run scripts/fetch_optisport.py first) to update it.

Exit codes:
  0 = files written (possibly with some sources missing, see the log)
  1 = unexpected error
"""

import argparse
import asyncio
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.zwemsterdam.config import get_config  # noqa: E402
from src.zwemsterdam.logging import get_logger, setup_logging  # noqa: E402
from src.zwemsterdam.pipeline import run_pipeline  # noqa: E402

log = get_logger(__name__)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Collect swim schedules and write the dashboard dataset.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for data.json and metadata.json (default: OUTPUT_DIR or frontend/public).",
    )
    parser.add_argument(
        "--activity",
        action="append",
        default=None,
        help="Only keep sessions whose activity contains this label. Repeatable.",
    )
    parser.add_argument(
        "--refresh-optisport",
        action="store_true",
        help="Run the Optisport browser step before building.",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines.",
    )
    return parser.parse_args()


async def main(args: argparse.Namespace) -> None:
    config = get_config()
    result = await run_pipeline(
        config,
        activities=args.activity,
        refresh_optisport=args.refresh_optisport,
        output_dir=args.output_dir,
    )
    if result.failed_sources:
        log.warning("sources_missing", sources=result.failed_sources)
    print(
        f"{len(result.sessions)} sessions from {len(result.metadata.pools)} pools",
        file=sys.stderr,
    )


if __name__ == "__main__":
    args = _parse_args()
    config = get_config()
    setup_logging(json_output=args.json_logs or config.log_json, log_level=config.log_level)
    try:
        asyncio.run(main(args))
    except Exception as e:
        log.error("build_failed", error=str(e), type=type(e).__name__)
        sys.exit(1)
