"""Tests for init_observability and the tracing helpers."""

import logging
import os
import unittest
from unittest.mock import patch

import dg_common.observability.logging as log_mod
from dg_common.observability import init_observability
from dg_common.observability.logging import JsonTraceFormatter
from dg_common.observability.testing import sample_value
from dg_common.observability.tracing import _traces_endpoint


class TestInitObservability(unittest.TestCase):
    def setUp(self):
        self._orig_setup_done = log_mod._setup_done
        log_mod._setup_done = False
        self._root = logging.getLogger()
        self._original_handlers = self._root.handlers[:]
        self._original_level = self._root.level

    def tearDown(self):
        log_mod._setup_done = self._orig_setup_done
        self._root.handlers = self._original_handlers
        self._root.setLevel(self._original_level)

    def test_sets_up_logging(self):
        init_observability("test-svc", "1.0.0")
        json_handlers = [h for h in self._root.handlers if isinstance(h.formatter, JsonTraceFormatter)]
        self.assertGreaterEqual(len(json_handlers), 1)

    def test_creates_service_info_metric(self):
        init_observability("test-init-svc", "2.0.0", environment="ci")
        value = sample_value("test_init_svc_info", {"version": "2.0.0", "environment": "ci"})
        self.assertEqual(value, 1.0)

    def test_tracing_skipped_without_env(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("OTEL_EXPORTER_OTLP_ENDPOINT", None)
            with patch("dg_common.observability.init_tracing") as mock_init:
                init_observability("test-no-trace", "0.1.0")
        mock_init.assert_not_called()

    @patch("dg_common.observability.init_tracing", side_effect=RuntimeError("boom"))
    def test_tracing_failure_is_non_fatal(self, mock_init):
        with patch.dict(os.environ, {"OTEL_EXPORTER_OTLP_ENDPOINT": "http://localhost:4318"}):
            init_observability("test-trace-fail", "0.1.0")
        mock_init.assert_called_once_with("test-trace-fail")


class TestTracesEndpoint(unittest.TestCase):
    def test_appends_traces_path(self):
        self.assertEqual(_traces_endpoint("http://collector:4318"), "http://collector:4318/v1/traces")

    def test_trailing_slash(self):
        self.assertEqual(_traces_endpoint("http://collector:4318/"), "http://collector:4318/v1/traces")

    def test_already_complete(self):
        self.assertEqual(
            _traces_endpoint("http://collector:4318/v1/traces"), "http://collector:4318/v1/traces"
        )


if __name__ == "__main__":
    unittest.main()
