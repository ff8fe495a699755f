"""CLI entrypoint for the form autofiller."""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from form_autofill.config import DEFAULT_BROWSER, LOG_DIR, LOG_FORMAT, PRESETS_PATH, QUIET_LOGGERS
from form_autofill.runner import run_autofill


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fill a web form from saved label/value presets.")
    parser.add_argument("--url", required=True, help="Form URL to open and fill.")
    parser.add_argument("--presets", default=str(PRESETS_PATH), help="Preset store JSON file.")
    parser.add_argument("--headless", action="store_true", help="Run the browser in headless mode.")
    parser.add_argument(
        "--browser",
        default=DEFAULT_BROWSER,
        help="Browser engine to use (chrome, chromium, firefox, or webkit).",
    )
    parser.add_argument("--profile-dir", help="Optional browser user data directory to reuse between runs.")
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep the page open, refill when the presets file changes or on Ctrl+Shift+F.",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    log_file = _configure_logging(args.log_level)
    logging.info("Log file: %s", log_file)
    _validate_args(args)

    if args.watch and args.headless:
        logging.warning("--watch with --headless only reacts to preset file changes.")

    result = asyncio.run(
        run_autofill(
            url=args.url,
            presets_path=Path(args.presets).expanduser(),
            headless=args.headless,
            browser=args.browser,
            profile_dir=args.profile_dir,
            watch=args.watch,
        )
    )
    if result.status == "error":
        raise SystemExit(f"Fill failed: {result.message}")


def _validate_args(args: argparse.Namespace) -> None:
    presets_path = Path(args.presets).expanduser()
    if not presets_path.exists():
        raise SystemExit(f"Presets file not found: {presets_path}")
    if not presets_path.is_file():
        raise SystemExit(f"Presets path must be a file: {presets_path}")
    if args.profile_dir:
        profile_path = Path(args.profile_dir).expanduser()
        if profile_path.exists() and not profile_path.is_dir():
            raise SystemExit(f"Profile directory must be a directory path: {profile_path}")


def _configure_logging(log_level: str, log_dir: Path = LOG_DIR) -> Path:
    """Send records to stderr and to a per-run file under ``log_dir``."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    log_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_file = log_dir / f"form-autofill-{stamp}.log"

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in (logging.StreamHandler(), logging.FileHandler(log_file, encoding="utf-8")):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    # Request-level chatter from the AI client only at DEBUG.
    if root.level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
    return log_file


if __name__ == "__main__":
    main()
