"""Tests for dg_common.observability.metrics and the request middleware."""

import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from dg_common.observability.metrics import (
    create_counter,
    create_gauge,
    create_histogram,
    create_info,
    create_service_info,
    metrics_response,
)
from dg_common.observability.middleware import MetricsMiddleware


class TestMetricFactories(unittest.TestCase):
    def test_create_counter_basic(self):
        c = create_counter("test_dg_counter_basic", "A test counter")
        before = c._value.get()
        c.inc()
        self.assertEqual(c._value.get() - before, 1.0)

    def test_create_counter_idempotent(self):
        c1 = create_counter("test_dg_counter_idem", "counter")
        c2 = create_counter("test_dg_counter_idem", "counter")
        self.assertIs(c1, c2)

    def test_create_counter_idempotent_with_total_suffix(self):
        c1 = create_counter("test_dg_suffixed_total", "counter")
        c2 = create_counter("test_dg_suffixed_total", "counter")
        self.assertIs(c1, c2)

    def test_create_histogram_with_buckets(self):
        h = create_histogram("test_dg_hist_buckets", "A test histogram", buckets=[0.1, 0.5, 1.0])
        h.observe(0.3)
        self.assertGreater(h._sum.get(), 0)

    def test_create_histogram_idempotent(self):
        h1 = create_histogram("test_dg_hist_idem", "hist")
        h2 = create_histogram("test_dg_hist_idem", "hist")
        self.assertIs(h1, h2)

    def test_create_gauge(self):
        g = create_gauge("test_dg_gauge_basic", "A test gauge")
        g.set(42)
        self.assertEqual(g._value.get(), 42.0)

    def test_create_info_idempotent(self):
        self.assertIs(create_info("test_dg_info", "info"), create_info("test_dg_info", "info"))

    def test_create_histogram_default_buckets(self):
        h = create_histogram("test_dg_hist_default", "hist", labelnames=["outcome"])
        h.labels(outcome="ok").observe(2.0)
        buckets = {s.labels["le"] for s in h.collect()[0].samples if s.name.endswith("_bucket")}
        self.assertIn("+Inf", buckets)
        self.assertGreater(len(buckets), 2)

    def test_name_taken_by_other_type_raises(self):
        create_counter("test_dg_type_clash", "counter")
        with self.assertRaises(ValueError):
            create_gauge("test_dg_type_clash", "gauge")

    def test_labelnames_kept_on_reuse(self):
        c1 = create_counter("test_dg_labelled_total", "counter", ["route"])
        c2 = create_counter("test_dg_labelled_total", "counter", ["route"])
        self.assertIs(c1, c2)
        c2.labels(route="/x").inc()
        self.assertEqual(c1.labels(route="/x")._value.get(), 1.0)


class TestCreateServiceInfo(unittest.TestCase):
    def test_creates_and_populates(self):
        info = create_service_info("test_dg_svc", "1.2.3", "staging")
        labels = [s.labels for s in info.collect()[0].samples]
        self.assertIn({"version": "1.2.3", "environment": "staging"}, labels)

    def test_defaults_environment(self):
        info = create_service_info("test_dg_svc_default", "0.0.1")
        env_values = [s.labels.get("environment") for s in info.collect()[0].samples]
        self.assertTrue(env_values[0])


class TestMetricsResponse(unittest.TestCase):
    def test_returns_bytes_and_content_type(self):
        body, content_type = metrics_response()
        self.assertIsInstance(body, bytes)
        self.assertIn("text/plain", content_type)
        self.assertGreater(len(body), 0)


class TestMetricsMiddleware(unittest.TestCase):
    def setUp(self):
        self.counter = create_counter(
            "test_dg_http_mw_total",
            "test counter",
            ["method", "path", "status"],
        )
        self.app = FastAPI()
        self.app.add_middleware(MetricsMiddleware, counter=self.counter, ignored_paths={"/metrics"})

        @self.app.get("/items/{item_id}")
        def item(item_id: str):
            return {"id": item_id}

        @self.app.get("/metrics")
        def metrics():
            return "ok"

        self.client = TestClient(self.app)

    def _count(self, path, status=200):
        return self.counter.labels(method="GET", path=path, status=status)._value.get()

    def test_labels_by_route_template(self):
        before = self._count("/items/{item_id}")
        self.client.get("/items/1")
        self.client.get("/items/2")
        self.assertEqual(self._count("/items/{item_id}") - before, 2.0)
        self.assertEqual(self._count("/items/1"), 0.0)

    def test_unmatched_path_uses_raw_path(self):
        before = self._count("/nonexistent", 404)
        self.client.get("/nonexistent")
        self.assertEqual(self._count("/nonexistent", 404) - before, 1.0)

    def test_ignored_path_not_counted(self):
        self.client.get("/metrics")
        self.assertEqual(self._count("/metrics"), 0.0)


if __name__ == "__main__":
    unittest.main()
