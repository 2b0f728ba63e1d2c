"""REST API tests for the revalidation endpoints."""

from __future__ import annotations

import os
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.urls import reverse
from rest_framework.test import APITestCase

from revalidation import crypto
from revalidation.config import EndpointConfig, load_endpoint_config, save_endpoint_config
from revalidation.engine import set_engine
from revalidation.tests.fakes import InMemoryContentIndex, make_engine, make_response
from revalidation.types import EntityKind


class RevalidationApiTestCase(APITestCase):
    """Base class that installs an engine over an in-memory index."""

    @classmethod
    def setUpTestData(cls):
        User = get_user_model()
        cls.admin_user = User.objects.create_user(username="admin", password="pass", is_staff=True)
        cls.regular_user = User.objects.create_user(username="editor", password="pass", is_staff=False)

    def setUp(self):
        cache.clear()
        self.index = InMemoryContentIndex()
        self.news = self.index.add_term(EntityKind.CATEGORY, 10, "news")
        self.index.add_content(1, "hello", terms=[self.news])
        self.engine = make_engine(self.index)
        set_engine(self.engine)
        self.addCleanup(set_engine, None)

        patcher = patch("httpx.Client.get", return_value=make_response(200))
        self.mock_get = patcher.start()
        self.addCleanup(patcher.stop)


class LogsApiTests(RevalidationApiTestCase):
    def _url(self):
        return reverse("revalidation:logs")

    def test_requires_admin(self):
        self.client.force_authenticate(self.regular_user)
        response = self.client.get(self._url())
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["error"]["status"], "forbidden")

    def test_requires_authentication(self):
        response = self.client.get(self._url())
        self.assertIn(response.status_code, (401, 403))

    def test_lists_newest_first(self):
        self.engine.revalidate_paths(["/first/"])
        self.engine.revalidate_paths(["/second/"])
        self.client.force_authenticate(self.admin_user)

        response = self.client.get(self._url())

        self.assertEqual(response.status_code, 200)
        self.assertEqual([e["path"] for e in response.data], ["/second/", "/first/"])

    def test_limit_and_status_filters(self):
        self.engine.revalidate_paths(["/ok/"])
        self.mock_get.return_value = make_response(500, text="boom")
        self.engine.revalidate_paths(["/bad-1/", "/bad-2/"])
        self.client.force_authenticate(self.admin_user)

        response = self.client.get(self._url(), {"status": "error"})
        self.assertEqual([e["path"] for e in response.data], ["/bad-2/", "/bad-1/"])

        response = self.client.get(self._url(), {"limit": "1"})
        self.assertEqual(len(response.data), 1)

        response = self.client.get(self._url(), {"limit": "nope"})
        self.assertEqual(len(response.data), 3)

    def test_delete_clears(self):
        self.engine.revalidate_paths(["/a/"])
        self.client.force_authenticate(self.admin_user)

        response = self.client.delete(self._url())

        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.engine.audit_log.list(), [])

    def test_delete_failure_maps_to_503(self):
        self.client.force_authenticate(self.admin_user)

        with patch.object(self.engine.audit_log, "clear", return_value=False):
            response = self.client.delete(self._url())

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data["error"]["status"], "service_unavailable")


class SettingsApiTests(RevalidationApiTestCase):
    def setUp(self):
        super().setUp()
        env = patch.dict(os.environ, {crypto.SETTINGS_ENCRYPTION_KEY_ENV: ""})
        env.start()
        self.addCleanup(env.stop)
        crypto._get_fernet.cache_clear()
        self.addCleanup(crypto._get_fernet.cache_clear)
        self.client.force_authenticate(self.admin_user)

    def _url(self):
        return reverse("revalidation:settings")

    def test_get_never_returns_token(self):
        save_endpoint_config(endpoint_url="https://front.example.com/api/revalidate", auth_token="secret")

        response = self.client.get(self._url())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["endpoint_url"], "https://front.example.com/api/revalidate")
        self.assertTrue(response.data["has_token"])
        self.assertTrue(response.data["configured"])
        self.assertNotIn("auth_token", response.data)

    def test_put_updates(self):
        response = self.client.put(
            self._url(),
            {"endpoint_url": "https://front.example.com/api/revalidate", "auth_token": "secret"},
            format="json",
        )

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["configured"])
        self.assertEqual(load_endpoint_config().auth_token, "secret")

    def test_masked_token_does_not_overwrite(self):
        save_endpoint_config(endpoint_url="https://a.test/", auth_token="secret")

        self.client.patch(self._url(), {"auth_token": "••••••••"}, format="json")

        self.assertEqual(load_endpoint_config().auth_token, "secret")

    def test_rejects_non_http_endpoint(self):
        response = self.client.put(self._url(), {"endpoint_url": "ftp://a.test/"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["error"]["status"], "validation_error")
        self.assertIn("endpoint_url", response.data["error"]["details"])

    def test_rejects_malformed_endpoint(self):
        response = self.client.put(self._url(), {"endpoint_url": "http://[::1/api/revalidate"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertIn("endpoint_url", response.data["error"]["details"])
        self.assertEqual(load_endpoint_config().endpoint_url, "")

    def test_requires_admin(self):
        self.client.force_authenticate(self.regular_user)
        self.assertEqual(self.client.get(self._url()).status_code, 403)


class ManualRevalidationApiTests(RevalidationApiTestCase):
    def _url(self):
        return reverse("revalidation:revalidate")

    def test_revalidates_content(self):
        self.client.force_authenticate(self.regular_user)

        response = self.client.post(self._url(), {"entity_id": 1}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["paths"], ["/hello/", "/category/news/"])
        self.assertEqual(len(response.data["attempts"]), 2)
        self.assertEqual(response.data["attempts"][0]["trigger"], "manual")

    def test_ignores_cooldown(self):
        self.client.force_authenticate(self.regular_user)

        self.client.post(self._url(), {"entity_id": 1}, format="json")
        self.client.post(self._url(), {"entity_id": 1}, format="json")

        self.assertEqual(self.mock_get.call_count, 4)

    def test_revalidates_term(self):
        self.client.force_authenticate(self.regular_user)

        response = self.client.post(self._url(), {"entity_kind": "category", "entity_id": 10}, format="json")

        self.assertTrue(response.data["success"])
        self.assertEqual(response.data["paths"], ["/category/news/", "/hello/"])

    def test_unknown_content(self):
        self.client.force_authenticate(self.regular_user)

        response = self.client.post(self._url(), {"entity_id": 99}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["success"])
        self.mock_get.assert_not_called()

    def test_partial_failure_reported(self):
        self.mock_get.return_value = make_response(500, text="boom")
        self.client.force_authenticate(self.regular_user)

        response = self.client.post(self._url(), {"entity_id": 1}, format="json")

        self.assertFalse(response.data["success"])
        self.assertIn("2 of 2", response.data["message"])

    def test_malformed_endpoint_reports_failure(self):
        set_engine(make_engine(self.index, config=EndpointConfig("http://[::1/api/revalidate", "secret")))
        self.client.force_authenticate(self.regular_user)

        with self.assertLogs("revalidation.dispatcher", level="ERROR"):
            response = self.client.post(self._url(), {"entity_id": 1}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["success"])
        self.assertEqual(len(response.data["attempts"]), 2)
        self.assertEqual(response.data["attempts"][0]["response"]["code"], "REQUEST_ERROR")

    def test_invalid_body(self):
        self.client.force_authenticate(self.regular_user)

        response = self.client.post(self._url(), {"entity_kind": "user", "entity_id": 0}, format="json")

        self.assertEqual(response.status_code, 400)

    def test_requires_authentication(self):
        response = self.client.post(self._url(), {"entity_id": 1}, format="json")
        self.assertIn(response.status_code, (401, 403))


class StatusApiTests(RevalidationApiTestCase):
    def test_reports_counters(self):
        self.engine.revalidate_paths(["/a/"])
        self.client.force_authenticate(self.admin_user)

        response = self.client.get(reverse("revalidation:status"))

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["configured"])
        self.assertEqual(response.data["log_entries"], 1)
        self.assertEqual(response.data["log_capacity"], 100)
        self.assertEqual(response.data["stats"]["dispatched"], 1)
        self.assertEqual(response.data["content_kinds"], ["post"])
