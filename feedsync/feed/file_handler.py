"""
Feed File Handler.

Owns the two feed files of one job:
- live file: stable public path, always absent or a finished feed
- temporary file: write target while a run is in progress

Only this class touches those paths. A run truncates the temporary file
at start, appends each batch, and promotes it with os.replace() at the
end. os.replace() is atomic on the same filesystem, so a reader of the
live path sees either the previous feed or the new one, never a mix.
Both files therefore live in the same directory.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..jobs.errors import FeedStorageError


logger = logging.getLogger(__name__)


FEED_FILE_PREFIX = "product_catalog"
TEMP_FILE_PREFIX = "temp_product_catalog"


class FeedFileHandler:
    """Creates, appends to and promotes the feed files."""

    def __init__(self, feed_dir: str | Path, secret: str = "default"):
        """
        Args:
            feed_dir: Directory holding the live and temporary files
            secret: File name suffix; keeps the public file name unguessable
        """
        self.feed_dir = Path(feed_dir)
        self.secret = secret

    @property
    def file_name(self) -> str:
        return f"{FEED_FILE_PREFIX}_{self.secret}.csv"

    @property
    def file_path(self) -> Path:
        """Live feed path."""
        return self.feed_dir / self.file_name

    @property
    def temp_file_path(self) -> Path:
        return self.feed_dir / f"{TEMP_FILE_PREFIX}_{self.secret}.csv"

    def prepare_feed_folder(self) -> Path:
        """
        Create the feed directory if it doesn't exist.

        Raises:
            FeedStorageError: If the directory cannot be created
        """
        try:
            self.feed_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FeedStorageError(
                f"Could not create feed directory {self.feed_dir}: {e}"
            ) from e

        if not os.access(self.feed_dir, os.W_OK):
            raise FeedStorageError(f"Feed directory is not writable: {self.feed_dir}")

        return self.feed_dir

    def create_fresh_feed_temporary_file(self) -> Path:
        """
        Create or truncate the temporary file. The live file is untouched.

        Raises:
            FeedStorageError: If the file cannot be created
        """
        try:
            with open(self.temp_file_path, "w", encoding="utf-8", newline=""):
                pass
        except OSError as e:
            raise FeedStorageError(
                f"Could not create temporary feed file {self.temp_file_path}: {e}"
            ) from e

        logger.debug(f"[FeedFile] Fresh temporary file: {self.temp_file_path}")
        return self.temp_file_path

    def write_to_feed_temporary_file(self, text: str) -> None:
        """
        Append pre-formatted text to the temporary file.

        Raises:
            FeedStorageError: If the temporary file is missing or not writable
        """
        if not self.temp_file_path.exists():
            raise FeedStorageError(
                f"Temporary feed file does not exist: {self.temp_file_path}"
            )

        try:
            with open(self.temp_file_path, "a", encoding="utf-8", newline="") as f:
                f.write(text)
        except OSError as e:
            raise FeedStorageError(
                f"Could not write to temporary feed file {self.temp_file_path}: {e}"
            ) from e

    def replace_feed_file_with_temp_file(self) -> Path:
        """
        Atomically promote the temporary file to the live path.

        Raises:
            FeedStorageError: If the temporary file is missing or the
                rename fails
        """
        if not self.temp_file_path.exists():
            raise FeedStorageError(
                f"Temporary feed file does not exist: {self.temp_file_path}"
            )

        try:
            os.replace(self.temp_file_path, self.file_path)
        except OSError as e:
            raise FeedStorageError(
                f"Could not replace feed file {self.file_path}: {e}"
            ) from e

        logger.info(f"[FeedFile] Feed file updated: {self.file_path}")
        return self.file_path

    # =========================================================================
    # Live File Info
    # =========================================================================

    def feed_exists(self) -> bool:
        return self.file_path.is_file()

    def get_feed_stats(self) -> Optional[os.stat_result]:
        """stat() of the live file, None if it does not exist."""
        try:
            return self.file_path.stat()
        except FileNotFoundError:
            return None
