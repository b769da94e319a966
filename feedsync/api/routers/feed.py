"""
Feed router for serving and regenerating the product feed.

The live file is opened before the response starts, so a run promoting
a new feed mid-download cannot change what this client receives: the
open handle keeps pointing at the file it was opened on.
"""

import logging
import os
from datetime import datetime
from typing import BinaryIO, Iterator

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse

from feedsync.infra.data_paths import is_feed_autoregenerate_enabled
from feedsync.scheduler.errors import DuplicateRunError

from ..schemas.feed import (
    FeedStatusResponse,
    FeedRegenerateRequest,
    FeedRegenerateResponse,
)
from .._app_state import get_feed_app
from .scheduler import run_to_response


logger = logging.getLogger(__name__)

router = APIRouter()

CHUNK_SIZE = 64 * 1024


def _iter_file(handle: BinaryIO) -> Iterator[bytes]:
    try:
        while True:
            chunk = handle.read(CHUNK_SIZE)
            if not chunk:
                break
            yield chunk
    finally:
        handle.close()


def _request_regeneration() -> None:
    """Enqueue a feed run for a missing live file, unless one is active."""
    if not is_feed_autoregenerate_enabled():
        return

    try:
        run = get_feed_app().enqueue_feed_run()
        logger.info(f"[Feed] Live feed missing, enqueued run {run.run_id}")
    except DuplicateRunError:
        logger.debug("[Feed] Regeneration already enqueued")


@router.get("/file")
async def get_feed_file():
    """
    Download the live feed file.

    404 when the file does not exist yet (a generation run is requested)
    or cannot be read; 500 when it cannot be opened.
    """
    handler = get_feed_app().feed_file_handler
    path = handler.file_path

    if not path.is_file():
        logger.warning(f"[Feed] Feed file not found: {path}")
        _request_regeneration()
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feed file not found. Generation has been requested.",
        )

    if not os.access(path, os.R_OK):
        logger.error(f"[Feed] Feed file is not readable: {path}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feed file not readable.",
        )

    try:
        handle = open(path, "rb")
    except FileNotFoundError:
        # Replaced or removed between the check and the open
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Feed file not found.",
        )
    except OSError as e:
        logger.error(f"[Feed] Could not open feed file {path}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not open feed file.",
        )

    size = os.fstat(handle.fileno()).st_size

    return StreamingResponse(
        _iter_file(handle),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{handler.file_name}"',
            "Content-Length": str(size),
            "Cache-Control": "must-revalidate",
        },
    )


@router.post(
    "/regenerate",
    response_model=FeedRegenerateResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
async def regenerate_feed(request: FeedRegenerateRequest = FeedRegenerateRequest()):
    """
    Enqueue a new feed generation run.

    The run is executed by the scheduler dispatch loop; 409 if a run
    for the feed job is already active.
    """
    feed_app = get_feed_app()

    try:
        run = feed_app.enqueue_feed_run(args=request.args)
    except DuplicateRunError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    message = "Feed generation enqueued"
    if not feed_app.scheduler.is_running:
        message += " (scheduler is stopped; POST /scheduler/start to run it)"

    return FeedRegenerateResponse(run=run_to_response(run), message=message)


@router.get("/status", response_model=FeedStatusResponse)
async def get_feed_status():
    """Live feed file info with the active and most recent runs."""
    feed_app = get_feed_app()
    handler = feed_app.feed_file_handler
    stats = handler.get_feed_stats()

    active = feed_app.get_active_feed_run()
    latest = feed_app.get_latest_feed_run()

    return FeedStatusResponse(
        feed_exists=stats is not None,
        file_name=handler.file_name,
        size_bytes=stats.st_size if stats else None,
        modified_at=(
            datetime.fromtimestamp(stats.st_mtime).isoformat() if stats else None
        ),
        active_run=run_to_response(active) if active else None,
        last_run=run_to_response(latest) if latest else None,
    )
