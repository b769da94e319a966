"""
Component wiring.

Builds the feed job and the scheduler from environment settings
(see infra/data_paths.py). Used by the CLI and the API lifespan.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .catalog.repository import CatalogRepository
from .feed.exporter import FeedDataExporter
from .feed.file_handler import FeedFileHandler
from .feed.job import GenerateProductFeed
from .infra import data_paths
from .infra.webhook import fire_and_forget_webhook
from .scheduler.entities import ChainRun
from .scheduler.registry import JobRegistry
from .scheduler.service import SchedulerService


logger = logging.getLogger(__name__)


@dataclass
class FeedApp:
    """Everything a process needs to generate and serve the feed."""

    catalog: CatalogRepository
    feed_file_handler: FeedFileHandler
    feed_job: GenerateProductFeed
    scheduler: SchedulerService

    def enqueue_feed_run(self, args: Optional[dict] = None) -> ChainRun:
        """
        Raises:
            DuplicateRunError: If a feed run is already active
        """
        return self.scheduler.enqueue_run(
            job_name=self.feed_job.get_name(),
            owner=self.feed_job.get_plugin_name(),
            args=args,
        )

    def get_active_feed_run(self) -> Optional[ChainRun]:
        return self.scheduler.get_active_run(
            self.feed_job.get_name(), self.feed_job.get_plugin_name()
        )

    def get_latest_feed_run(self) -> Optional[ChainRun]:
        return self.scheduler.get_latest_run(
            self.feed_job.get_name(), self.feed_job.get_plugin_name()
        )


def create_feed_job(
    catalog: CatalogRepository,
    feed_dir: Optional[str | Path] = None,
    secret: Optional[str] = None,
    batch_size: Optional[int] = None,
) -> GenerateProductFeed:
    """Build the feed job; unset arguments come from the environment."""
    handler = FeedFileHandler(
        feed_dir=feed_dir or data_paths.get_feed_dir(),
        secret=secret or data_paths.get_feed_file_secret(),
    )
    return GenerateProductFeed(
        item_source=catalog,
        feed_file_handler=handler,
        feed_data_exporter=FeedDataExporter(),
        batch_size=batch_size or data_paths.get_feed_batch_size(),
    )


def create_feed_app(
    catalog_db_path: Optional[str | Path] = None,
    scheduler_db_path: Optional[str | Path] = None,
    feed_dir: Optional[str | Path] = None,
    secret: Optional[str] = None,
    batch_size: Optional[int] = None,
    poll_interval: Optional[float] = None,
    webhook_url: Optional[str] = None,
) -> FeedApp:
    """
    Wire catalog, feed job and scheduler together.

    Unset arguments are read from the environment.
    """
    catalog = CatalogRepository(catalog_db_path or data_paths.get_catalog_db_path())
    feed_job = create_feed_job(
        catalog,
        feed_dir=feed_dir,
        secret=secret,
        batch_size=batch_size,
    )

    registry = JobRegistry()
    registry.register(feed_job)

    webhook_url = webhook_url or data_paths.get_feed_webhook_url()
    feed_path = str(feed_job.feed_file_handler.file_path)

    def notify(run: ChainRun) -> None:
        fire_and_forget_webhook(webhook_url, run, feed_path=feed_path)

    scheduler = SchedulerService.create(
        db_path=scheduler_db_path or data_paths.get_scheduler_db_path(),
        registry=registry,
        poll_interval=(
            poll_interval if poll_interval is not None
            else data_paths.get_scheduler_poll_interval()
        ),
        on_run_finished=notify,
    )

    logger.info(
        f"Feed app ready: feed={feed_path}, batch_size={feed_job.get_batch_size()}"
    )

    return FeedApp(
        catalog=catalog,
        feed_file_handler=feed_job.feed_file_handler,
        feed_job=feed_job,
        scheduler=scheduler,
    )
