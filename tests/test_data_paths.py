"""
Tests for data_paths module.

Path defaults and environment overrides.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from feedsync.infra import data_paths


class TestGetProjectRoot:
    """Tests for get_project_root function."""

    def test_returns_path_object(self):
        assert isinstance(data_paths.get_project_root(), Path)

    def test_contains_main_py(self):
        """Should be the project root containing main.py."""
        assert (data_paths.get_project_root() / "main.py").exists()


class TestDefaults:
    """Default locations under the data root."""

    def test_data_root_default(self):
        with patch.dict("os.environ", {}, clear=True):
            assert data_paths.get_data_root() == data_paths.get_project_root() / "data"

    def test_feed_and_db_under_data_root(self, tmp_path):
        with patch.dict("os.environ", {"FEEDSYNC_DATA_DIR": str(tmp_path)}, clear=True):
            assert data_paths.get_feed_dir() == tmp_path / "feed"
            assert data_paths.get_catalog_db_path() == tmp_path / "catalog.sqlite"
            assert data_paths.get_scheduler_db_path() == tmp_path / "scheduler.sqlite"

    def test_feed_settings_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            assert data_paths.get_feed_file_secret() == "default"
            assert data_paths.get_feed_batch_size() == 15
            assert data_paths.get_scheduler_poll_interval() == 1.0
            assert data_paths.get_feed_webhook_url() is None
            assert data_paths.is_feed_autoregenerate_enabled() is True
            assert data_paths.is_scheduler_autostart_enabled() is True


class TestOverrides:
    """Environment overrides."""

    def test_explicit_paths(self, tmp_path):
        env = {
            "FEED_DIR": str(tmp_path / "public"),
            "CATALOG_DB_PATH": str(tmp_path / "shop.db"),
            "SCHEDULER_DB_PATH": str(tmp_path / "runs.db"),
        }
        with patch.dict("os.environ", env, clear=True):
            assert data_paths.get_feed_dir() == tmp_path / "public"
            assert data_paths.get_catalog_db_path() == tmp_path / "shop.db"
            assert data_paths.get_scheduler_db_path() == tmp_path / "runs.db"

    def test_batch_size(self):
        with patch.dict("os.environ", {"FEED_BATCH_SIZE": "50"}, clear=True):
            assert data_paths.get_feed_batch_size() == 50

    @pytest.mark.parametrize("value", ["0", "-5", "many"])
    def test_invalid_batch_size_falls_back(self, value):
        with patch.dict("os.environ", {"FEED_BATCH_SIZE": value}, clear=True):
            assert data_paths.get_feed_batch_size() == 15

    def test_invalid_poll_interval_falls_back(self):
        with patch.dict("os.environ", {"SCHEDULER_POLL_INTERVAL": "soon"}, clear=True):
            assert data_paths.get_scheduler_poll_interval() == 1.0

    @pytest.mark.parametrize(
        "value,expected",
        [("false", False), ("0", False), ("off", False), ("yes", True), ("junk", True)],
    )
    def test_autoregenerate_flag(self, value, expected):
        with patch.dict("os.environ", {"FEED_AUTOREGENERATE": value}, clear=True):
            assert data_paths.is_feed_autoregenerate_enabled() is expected

    def test_empty_secret_uses_default(self):
        with patch.dict("os.environ", {"FEED_FILE_SECRET": ""}, clear=True):
            assert data_paths.get_feed_file_secret() == "default"


class TestEnsureDataDirectories:
    """Tests for ensure_data_directories function."""

    def test_creates_directories(self, tmp_path):
        with patch.dict("os.environ", {"FEEDSYNC_DATA_DIR": str(tmp_path / "data")}, clear=True):
            data_paths.ensure_data_directories()

        assert (tmp_path / "data").is_dir()
        assert (tmp_path / "data" / "feed").is_dir()
