from __future__ import annotations

import argparse
import sys

from dotenv import load_dotenv

from .config import load_config
from .errors import ConfigError, ExtractionError
from .monitor import run_monitor


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="wishlist-price-watch")
    parser.add_argument("--url", default=None, help="Wishlist URL. Defaults to $WISHLIST_URL.")
    parser.add_argument("--snapshot", default=None, help="Snapshot CSV path. Defaults to prices.csv.")
    parser.add_argument(
        "--session",
        default=None,
        help="Saved browser session (storage-state JSON). Defaults to session.json.",
    )
    parser.add_argument(
        "--threshold",
        default=None,
        help="Minimum absolute price change to report. Defaults to $DELTA_THRESHOLD or 10.",
    )
    parser.add_argument("--timeout-seconds", default=None)
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not send email notifications.",
    )
    parser.add_argument("--env-file", default=".env")
    args = parser.parse_args(argv)

    load_dotenv(dotenv_path=args.env_file, override=False)

    try:
        cfg = load_config(
            url=args.url,
            delta_threshold=args.threshold,
            snapshot_path=args.snapshot,
            session_path=args.session,
            timeout_seconds=args.timeout_seconds,
            dry_run=args.dry_run,
        )
    except ConfigError as e:
        print(f"[config] {e}", file=sys.stderr, flush=True)
        return 2

    try:
        run_monitor(cfg)
    except ExtractionError as e:
        print(f"[monitor] run aborted, snapshot unchanged: {e}", file=sys.stderr, flush=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
