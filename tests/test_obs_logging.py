"""Tests for dg_common.observability.logging."""

import io
import json
import logging
import unittest
from unittest.mock import patch

import dg_common.observability.logging as log_mod
from dg_common.observability.logging import JsonTraceFormatter, get_logger, setup_logging

_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


def _record(msg="hello world", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="test-logger",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonTraceFormatter(unittest.TestCase):
    def test_format_contains_required_fields(self):
        data = json.loads(JsonTraceFormatter(_FORMAT).format(_record()))

        self.assertEqual(data["level"], "INFO")
        self.assertEqual(data["logger"], "test-logger")
        self.assertEqual(data["message"], "hello world")
        self.assertIsInstance(data["timestamp"], float)
        self.assertNotIn("widget_id", data)

    def test_widget_id_from_extra(self):
        data = json.loads(
            JsonTraceFormatter(_FORMAT).format(_record("fetch failed", logging.WARNING, widget_id="w-1"))
        )
        self.assertEqual(data["level"], "WARNING")
        self.assertEqual(data["widget_id"], "w-1")


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        # Reset the idempotency guard so each test can call setup_logging
        self._original = log_mod._setup_done
        log_mod._setup_done = False

        self._root = logging.getLogger()
        self._original_handlers = self._root.handlers[:]
        self._original_level = self._root.level

    def tearDown(self):
        log_mod._setup_done = self._original
        self._root.handlers = self._original_handlers
        self._root.setLevel(self._original_level)

    def test_adds_json_handler_to_root(self):
        setup_logging()
        json_handlers = [
            h for h in self._root.handlers
            if isinstance(h, logging.StreamHandler) and isinstance(h.formatter, JsonTraceFormatter)
        ]
        self.assertGreaterEqual(len(json_handlers), 1)

    def test_sets_log_level(self):
        with patch.dict("os.environ", {}, clear=False) as env:
            env.pop("LOG_LEVEL", None)
            setup_logging(level=logging.DEBUG)
        self.assertEqual(self._root.level, logging.DEBUG)

    def test_env_overrides_level(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "warning"}):
            setup_logging(level=logging.DEBUG)
        self.assertEqual(self._root.level, logging.WARNING)

    def test_unknown_env_level_ignored(self):
        with patch.dict("os.environ", {"LOG_LEVEL": "chatty"}):
            setup_logging(level=logging.ERROR)
        self.assertEqual(self._root.level, logging.ERROR)

    def test_idempotent(self):
        setup_logging()
        count_before = len(self._root.handlers)
        setup_logging()
        self.assertEqual(len(self._root.handlers), count_before)

    def test_json_output_is_parseable(self):
        buf = io.StringIO()
        handler = logging.StreamHandler(buf)
        handler.setFormatter(JsonTraceFormatter(_FORMAT))
        test_logger = logging.getLogger("json-output-test")
        test_logger.addHandler(handler)
        test_logger.setLevel(logging.INFO)

        test_logger.info("refreshed %s", "BTC", extra={"widget_id": "abc"})
        handler.flush()

        data = json.loads(buf.getvalue().strip())
        self.assertEqual(data["message"], "refreshed BTC")
        self.assertEqual(data["logger"], "json-output-test")
        self.assertEqual(data["widget_id"], "abc")

        test_logger.removeHandler(handler)


class TestGetLogger(unittest.TestCase):
    def test_returns_named_logger(self):
        logger = get_logger("fetcher")
        self.assertEqual(logger.name, "fetcher")
        self.assertIsInstance(logger, logging.Logger)


if __name__ == "__main__":
    unittest.main()
