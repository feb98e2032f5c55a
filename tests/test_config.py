"""Settings validation and logging setup."""

import json
import logging

import pytest
from pydantic import ValidationError

from foldertree.core.config import Settings
from foldertree.core.logging_config import _JsonFormatter


class TestSettings:

    def test_log_level_normalized(self):
        assert Settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="chatty")

    def test_invalid_log_format(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_limits_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(tag_tree_max_depth=0)

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("POPULAR_TAGS_LIMIT", "3")
        assert Settings().popular_tags_limit == 3


class TestJsonFormatter:

    def test_extra_fields_are_merged(self):
        record = logging.LogRecord("foldertree.test", logging.INFO, __file__, 1, "Created folder", (), None)
        record.folder_id = "folder-1"
        payload = json.loads(_JsonFormatter().format(record))
        assert payload["message"] == "Created folder"
        assert payload["folder_id"] == "folder-1"
        assert payload["level"] == "INFO"
        assert "args" not in payload
