"""
Catalog feed sync - command line entry point.

Commands:
    generate  Run a feed generation to completion in this process
    serve     Start the API server (feed download + scheduler)
    status    Print the live feed file and scheduler run state

Settings come from the environment, loaded from .env first
(see feedsync/infra/data_paths.py).
"""

import argparse
import json
import logging
import os
import signal
import sys
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

from feedsync.bootstrap import FeedApp, create_feed_app
from feedsync.infra.data_paths import ensure_data_directories, get_data_root, get_logs_dir
from feedsync.infra.logging_config import setup_logging
from feedsync.scheduler.entities import ChainRunStatus
from feedsync.scheduler.errors import DuplicateRunError


# Graceful shutdown support
shutdown_requested = False

load_dotenv()

logger = logging.getLogger("feedsync.main")


def signal_handler(signum, frame):
    """
    SIGINT / SIGTERM handler - stop after the batch in flight.

    The run stays active and restarts from start() on the next generate.
    """
    global shutdown_requested
    signal_name = "SIGINT" if signum == signal.SIGINT else "SIGTERM"
    logger.info(f"{signal_name} received - stopping after the current batch")
    shutdown_requested = True


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Batch export of the product catalog into a CSV feed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py generate
  python main.py generate --batch-size 50
  python main.py serve --port 8000
  python main.py status
        """,
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (default: LOG_LEVEL or INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate the feed now")
    generate.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Products per batch (default: FEED_BATCH_SIZE or 15)",
    )

    serve = subparsers.add_parser("serve", help="Start the API server")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=8000, help="Bind port")

    subparsers.add_parser("status", help="Show feed and run status")

    return parser.parse_args(argv)


def run_generate(feed_app: FeedApp) -> int:
    """
    Enqueue a feed run (or restart the active one) and drive it to the end.

    An active run left by an earlier process restarts from start(), since
    the temporary file may already hold some of its batches.

    Returns:
        Process exit code: 0 on COMPLETED, 1 otherwise
    """
    scheduler = feed_app.scheduler
    scheduler.recover()

    try:
        run = feed_app.enqueue_feed_run()
        logger.info(f"Feed run {run.run_id} enqueued")
    except DuplicateRunError as e:
        run = scheduler.get_run(e.existing_run_id)
        logger.info(f"Continuing active feed run {e.existing_run_id} at batch {run.batch_number}")

    steps = 0
    while not shutdown_requested:
        if scheduler.run_until_idle(max_steps=1) == 0:
            break
        steps += 1

    run = scheduler.get_run(run.run_id)
    logger.info(
        f"Feed run {run.run_id}: {run.status.value} after {steps} steps, "
        f"{run.items_exported} exported, {run.items_failed} failed"
    )

    if run.status == ChainRunStatus.COMPLETED:
        logger.info(f"Feed file: {feed_app.feed_file_handler.file_path}")
        return 0

    if run.status == ChainRunStatus.FAILED:
        logger.error(f"Feed run failed: {run.error}")
    return 1


def run_status(feed_app: FeedApp) -> int:
    handler = feed_app.feed_file_handler
    stats = handler.get_feed_stats()
    latest = feed_app.get_latest_feed_run()

    status = {
        "feed_file": str(handler.file_path),
        "feed_exists": stats is not None,
        "size_bytes": stats.st_size if stats else None,
        "modified_at": datetime.fromtimestamp(stats.st_mtime).isoformat() if stats else None,
        "last_run": {
            "run_id": latest.run_id,
            "status": latest.status.value,
            "batch_number": latest.batch_number,
            "items_exported": latest.items_exported,
            "items_failed": latest.items_failed,
            "error": latest.error,
            "finished_at": latest.finished_at,
        } if latest else None,
        "run_counts": feed_app.scheduler.get_scheduler_status()["run_counts"],
    }
    print(json.dumps(status, indent=2))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)

    setup_logging(
        args.log_level,
        log_dir=get_logs_dir(),
        prefix=f"feedsync_{args.command}",
        context={"command": args.command, "data_dir": get_data_root()},
    )

    if args.command == "serve":
        import uvicorn
        uvicorn.run("feedsync.api.main:app", host=args.host, port=args.port)
        return 0

    ensure_data_directories()

    if args.command == "generate":
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)
        feed_app = create_feed_app(batch_size=args.batch_size)
        return run_generate(feed_app)

    return run_status(create_feed_app())


if __name__ == "__main__":
    sys.exit(main())
