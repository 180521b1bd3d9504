"""Fetch the Optisport schedules through a headless browser and cache them.

Optisport sits behind a Cloudflare challenge, so a real Chromium session has
to pass it before the schedule API answers. All pools are fetched from that
one session and written to data/optisport_data.json, which
scripts/build_dataset.py reads.

Run with: python scripts/fetch_optisport.py
Debug:    python scripts/fetch_optisport.py --headed
Output:   python scripts/fetch_optisport.py --output /tmp/optisport.json

Exit codes:
  0 = cache written
  1 = challenge did not clear, nothing fetched, or unexpected error
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
from src.zwemsterdam.errors import ChallengeTimeout  # noqa: E402
from src.zwemsterdam.logging import get_logger, setup_logging  # noqa: E402
from src.zwemsterdam.sources.optisport import collect_optisport, write_cache  # noqa: E402

log = get_logger(__name__)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Fetch Optisport schedules via a browser session.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window).",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Cache file path (default: OPTISPORT_CACHE_FILE or data/optisport_data.json).",
    )
    return parser.parse_args()


async def main(args: argparse.Namespace) -> int:
    config = get_config()
    output = args.output or config.optisport_cache_file

    try:
        cache = await collect_optisport(config, headless=False if args.headed else None)
    except ChallengeTimeout as e:
        log.error("optisport_challenge_timeout", error=str(e))
        return 1

    if write_cache(cache, output) is None:
        return 1
    for pool, entry in cache.items():
        print(f"{pool}: {len(entry['events'])} events", file=sys.stderr)
    return 0


if __name__ == "__main__":
    args = _parse_args()
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    try:
        sys.exit(asyncio.run(main(args)))
    except Exception as e:
        log.error("optisport_fetch_failed", error=str(e), type=type(e).__name__)
        sys.exit(1)
