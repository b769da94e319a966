"""
Webhook notification service for chain run completion.

Sends an HTTP POST when a run reaches COMPLETED or FAILED, so the
external catalog can fetch the new feed. Delivery is fire-and-forget:
errors are logged and never affect the run.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from ..scheduler.entities import ChainRun, ChainRunStatus

logger = logging.getLogger(__name__)

# Webhook configuration
WEBHOOK_TIMEOUT_SECONDS = 30
WEBHOOK_MAX_RETRIES = 3
WEBHOOK_RETRY_BASE_DELAY = 1.0  # seconds
WEBHOOK_RETRY_MAX_DELAY = 10.0  # seconds

NOTIFIED_STATUSES = (ChainRunStatus.COMPLETED, ChainRunStatus.FAILED)


def build_run_payload(run: ChainRun, feed_path: Optional[str] = None) -> dict:
    """
    Build webhook payload from run data.

    Args:
        run: Terminal ChainRun
        feed_path: Live feed path, included for completed runs

    Returns:
        Dictionary payload for webhook POST
    """
    return {
        "event": run.status.value.lower(),
        "run_id": run.run_id,
        "job": run.job_key,
        "status": run.status.value,
        "batches": run.batch_number,
        "items_exported": run.items_exported,
        "items_failed": run.items_failed,
        "error": run.error,
        "feed_path": feed_path if run.status == ChainRunStatus.COMPLETED else None,
        "started_at": run.started_at,
        "finished_at": run.finished_at,
        "timestamp": datetime.now().isoformat(),
    }


def should_send_webhook(run: ChainRun, url: Optional[str]) -> bool:
    """True if a URL is configured and the run ended COMPLETED or FAILED."""
    if not url:
        return False
    return run.status in NOTIFIED_STATUSES


def send_webhook_sync(
    url: str,
    payload: Dict[str, Any],
    timeout: float = WEBHOOK_TIMEOUT_SECONDS,
    max_retries: int = WEBHOOK_MAX_RETRIES,
) -> tuple[bool, Optional[str]]:
    """
    Send webhook notification synchronously with retry logic.

    Args:
        url: Webhook URL to POST to
        payload: JSON body
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts

    Returns:
        Tuple of (success: bool, error_message: Optional[str])
    """
    last_error: Optional[str] = None
    run_id = payload.get("run_id", "unknown")

    for attempt in range(max_retries):
        try:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(
                    url,
                    json=payload,
                    headers={
                        "Content-Type": "application/json",
                        "User-Agent": "CatalogFeedSync/1.0",
                        "X-Run-ID": run_id,
                        "X-Run-Event": payload.get("event", "completed"),
                    },
                )

                if 200 <= response.status_code < 300:
                    logger.info(
                        f"Webhook sent successfully for run {run_id} "
                        f"(attempt {attempt + 1}/{max_retries}, status={response.status_code})"
                    )
                    return True, None

                last_error = f"HTTP {response.status_code}: {response.text[:200]}"
                logger.warning(
                    f"Webhook failed for run {run_id} "
                    f"(attempt {attempt + 1}/{max_retries}): {last_error}"
                )

        except httpx.TimeoutException:
            last_error = f"Timeout after {timeout}s"
            logger.warning(
                f"Webhook timeout for run {run_id} "
                f"(attempt {attempt + 1}/{max_retries})"
            )

        except httpx.RequestError as e:
            last_error = f"Request error: {str(e)}"
            logger.warning(
                f"Webhook request error for run {run_id} "
                f"(attempt {attempt + 1}/{max_retries}): {e}"
            )

        # Exponential backoff before retry
        if attempt < max_retries - 1:
            delay = min(
                WEBHOOK_RETRY_BASE_DELAY * (2 ** attempt),
                WEBHOOK_RETRY_MAX_DELAY
            )
            logger.debug(f"Retrying webhook in {delay}s...")
            time.sleep(delay)

    logger.error(
        f"Webhook failed after {max_retries} attempts for run {run_id}: {last_error}"
    )
    return False, last_error


def fire_and_forget_webhook(
    url: Optional[str],
    run: ChainRun,
    feed_path: Optional[str] = None,
) -> bool:
    """
    Notify the webhook URL about a finished run in a background thread.

    Returns:
        True if the webhook thread was started
    """
    if not should_send_webhook(run, url):
        return False

    payload = build_run_payload(run, feed_path)
    logger.info(f"Triggering webhook to {url} for run {run.run_id} ({run.status.value})")

    thread = threading.Thread(
        target=send_webhook_sync,
        args=(url, payload),
        daemon=True,  # Daemon thread won't prevent process exit
    )
    thread.start()

    return True
