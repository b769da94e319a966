"""
Product feed generation.

GenerateProductFeed is a chained job that exports the catalog into a CSV
feed file, one batch per scheduler invocation.
"""

from .exporter import FeedDataExporter, FeedDataError, FEED_COLUMNS
from .file_handler import FeedFileHandler
from .job import GenerateProductFeed

__all__ = [
    "FeedDataExporter",
    "FeedDataError",
    "FEED_COLUMNS",
    "FeedFileHandler",
    "GenerateProductFeed",
]
