"""
Tests for log wiring
"""
import logging
from types import SimpleNamespace

from storefront.logging_setup import LOG_FILE_NAME, setup_logging


def _settings(tmp_path, **overrides):
    values = {"STOREFRONT_DATA_ROOT": tmp_path, "LOG_LEVEL": "INFO", "LOG_TO_CONSOLE": False, "DB_ECHO": False}
    values.update(overrides)
    return SimpleNamespace(**values)


def _ours(logger, path):
    return [h for h in logger.handlers if getattr(h, "baseFilename", None) == str(path)]


class TestSetupLogging:

    def teardown_method(self):
        root = logging.getLogger()
        for h in list(root.handlers):
            if getattr(h, "baseFilename", "").endswith(LOG_FILE_NAME):
                root.removeHandler(h)
                h.close()

    def test_writes_under_data_root(self, tmp_path):
        path = setup_logging(_settings(tmp_path))
        assert path == tmp_path / "logs" / LOG_FILE_NAME

        logging.getLogger("storefront.test").info("hello import")
        for h in _ours(logging.getLogger(), path):
            h.flush()
        assert "hello import" in path.read_text(encoding="utf-8")

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path):
        settings = _settings(tmp_path)
        path = setup_logging(settings)
        setup_logging(settings)
        assert len(_ours(logging.getLogger(), path)) == 1

    def test_level_from_settings(self, tmp_path):
        setup_logging(_settings(tmp_path, LOG_LEVEL="warning"))
        assert logging.getLogger().level == logging.WARNING
        setup_logging(_settings(tmp_path, LOG_LEVEL="nonsense"))
        assert logging.getLogger().level == logging.INFO
