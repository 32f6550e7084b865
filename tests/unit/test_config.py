"""
Unit tests for configuration loading.
"""

import io
import logging

import pytest

from config import Settings, load_config, get_default_config_path
from docquery.core.exceptions import QueryCancelledError, ValidationError
from docquery.query.filters import Query


class TestSettings:
    """Test settings containers."""

    def test_defaults(self):
        settings = Settings()
        assert settings.planner.revision_field == "DocstoreRevision"
        assert settings.store.page_size == 100
        assert settings.stream.key_field == "name"

    def test_from_dict(self):
        settings = Settings.from_dict({
            "planner": {"include_revision_field": False},
            "store": {"page_size": 10},
            "log_level": "DEBUG",
        })
        assert not settings.planner.include_revision_field
        assert settings.store.page_size == 10
        assert settings.stream.batch_size == 50
        assert settings.log_level == "DEBUG"
        assert Settings.from_dict(settings.to_dict()) == settings

    def test_builders(self):
        settings = Settings.from_dict({"planner": {"revision_field": "rev"}, "stream": {"batch_size": 7}})
        assert settings.planner_config().revision_field == "rev"
        assert settings.planner_config(single_inequality_field=True).single_inequality_field
        assert settings.memory_store_config().page_size == 100
        assert settings.stream_config().batch_size == 7

    def test_builders_validate(self):
        settings = Settings.from_dict({"store": {"page_size": 0}})
        with pytest.raises(ValidationError):
            settings.memory_store_config()

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")
        with pytest.raises(ValidationError):
            Settings.from_dict({"log_level": "verbose"})

    def test_cancellation_token(self):
        assert Settings().cancellation_token().timeout_seconds is None
        token = Settings(query_timeout_seconds=2.5).cancellation_token()
        assert token.timeout_seconds == 2.5
        assert not token.cancelled
        assert Settings().cancellation_token() is not Settings().cancellation_token()

    def test_query_executor(self, memory_store):
        # A negative deadline has passed before the first page
        executor = Settings(query_timeout_seconds=-1).query_executor(memory_store)
        assert executor.timeout_seconds == -1
        with pytest.raises(QueryCancelledError, match="timeout"):
            executor.get_all(Query())

        executor = Settings().query_executor(memory_store)
        assert executor.timeout_seconds is None
        assert len(executor.get_all(Query())) == 5

    def test_configure_logging(self, package_logger):
        stream = io.StringIO()
        Settings(log_level="debug").configure_logging(stream=stream)
        assert package_logger.level == logging.DEBUG

        logging.getLogger("docquery.query.planner").debug("planned Scan")
        assert "planned Scan" in stream.getvalue()


class TestLoadConfig:
    """Test YAML loading."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "docquery.yaml"
        path.write_text("store:\n  page_size: 25\nquery_timeout_seconds: 1.5\n")
        settings = load_config(str(path))
        assert settings.store.page_size == 25
        assert settings.query_timeout_seconds == 1.5

    def test_missing_file(self, tmp_path):
        assert load_config(str(tmp_path / "nope.yaml")) == Settings()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(str(path)) == Settings()

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("stream:\n  key_field: id\n")
        monkeypatch.setenv("DOCQUERY_CONFIG", str(path))
        assert get_default_config_path() == path
        assert load_config().stream.key_field == "id"

    def test_bundled_defaults(self, monkeypatch):
        monkeypatch.delenv("DOCQUERY_CONFIG", raising=False)
        assert load_config() == Settings()

    def test_log_level_from_file(self, tmp_path, package_logger):
        path = tmp_path / "quiet.yaml"
        path.write_text("log_level: ERROR\n")
        load_config(str(path)).configure_logging(stream=io.StringIO())
        assert package_logger.level == logging.ERROR
