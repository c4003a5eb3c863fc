import json
import logging
from logging.handlers import RotatingFileHandler

from app.core.logger import JsonFormatter, mask_secrets, set_correlation_id, setup_logger


def _file_handler(logger: logging.Logger) -> RotatingFileHandler:
    return next(handler for handler in logger.handlers if isinstance(handler, RotatingFileHandler))


def _release(logger: logging.Logger):
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_json_file_log_lines():
    logger = setup_logger(name="mock_interview.json_log", use_json=True)
    try:
        handler = _file_handler(logger)
        assert isinstance(handler.formatter, JsonFormatter)

        set_correlation_id("call-42")
        record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "Interview saved (id=%s)", ("abc",), None)
        for log_filter in handler.filters:
            log_filter.filter(record)
        line = json.loads(handler.format(record))
    finally:
        _release(logger)

    assert line["message"] == "Interview saved (id=abc)"
    assert line["level"] == "INFO"
    assert line["correlation_id"] == "call-42"


def test_plain_file_log_lines_by_default():
    logger = setup_logger(name="mock_interview.plain_log")
    try:
        assert not isinstance(_file_handler(logger).formatter, JsonFormatter)
    finally:
        _release(logger)


def test_api_keys_are_masked():
    masked = mask_secrets("calling gemini with api_key=AIzaSyA1234567890abcdefghij")
    assert "AIzaSy" not in masked
    assert "***MASKED***" in masked
