"""
Test: logging setup.
"""
import logging

import pytest

from rubric_assessor.utils.logging import resolve_level, setup_logging


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLogging:
    @pytest.mark.parametrize("value, expected", [("debug", logging.DEBUG), (" Warning ", logging.WARNING), (5, 5)])
    def test_resolve_level(self, value, expected):
        assert resolve_level(value) == expected

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            resolve_level("chatty")

    def test_file_handler_and_quiet_http_loggers(self, tmp_path, restore_root):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging("DEBUG", log_file=log_file)

        logging.getLogger("rubric_assessor.test").debug("hello")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello" in log_file.read_text(encoding="utf-8")
        assert logging.getLogger("httpx").level == logging.WARNING
