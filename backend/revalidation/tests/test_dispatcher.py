"""
Tests for the outbound revalidation request.
"""

from unittest.mock import patch

import httpx
from django.test import SimpleTestCase

from revalidation.config import EndpointConfig
from revalidation.dispatcher import BODY_PREVIEW_CHARS, RevalidationDispatcher, user_agent
from revalidation.tests.fakes import ENDPOINT, make_response
from revalidation.types import AttemptStatus


class TestRevalidationDispatcher(SimpleTestCase):
    """Tests for RevalidationDispatcher."""

    def setUp(self):
        self.dispatcher = RevalidationDispatcher(timeout=30.0)

    @patch("httpx.Client.get")
    def test_success(self, mock_get):
        """2xx response is recorded as success."""
        mock_get.return_value = make_response(200)

        attempt = self.dispatcher.dispatch("/blog/post/", ENDPOINT)

        self.assertTrue(attempt.success)
        self.assertEqual(attempt.status, AttemptStatus.SUCCESS)
        self.assertEqual(attempt.status_code, 200)
        self.assertEqual(attempt.path, "/blog/post/")
        self.assertEqual(attempt.response["code"], 200)
        self.assertEqual(attempt.response["message"], "OK")
        self.assertEqual(attempt.response["body"], '{"revalidated": true}')
        self.assertEqual(attempt.trigger, "auto")

    @patch("httpx.Client.get")
    def test_sends_token_and_path_as_query_params(self, mock_get):
        mock_get.return_value = make_response(200)

        self.dispatcher.dispatch("/blog/post/", ENDPOINT)

        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], ENDPOINT.endpoint_url)
        self.assertEqual(kwargs["params"], {"token": "test-token", "path": "/blog/post/"})
        self.assertEqual(kwargs["headers"]["User-Agent"], user_agent())

    @patch("httpx.Client.get")
    def test_any_2xx_is_success(self, mock_get):
        mock_get.return_value = make_response(204, text="")

        attempt = self.dispatcher.dispatch("/a/", ENDPOINT)

        self.assertTrue(attempt.success)

    @patch("httpx.Client.get")
    def test_http_error_status(self, mock_get):
        """Non-2xx response is an error with the code recorded."""
        mock_get.return_value = make_response(401, text='{"message": "Invalid token"}')

        attempt = self.dispatcher.dispatch("/a/", ENDPOINT)

        self.assertFalse(attempt.success)
        self.assertEqual(attempt.status, AttemptStatus.ERROR)
        self.assertEqual(attempt.status_code, 401)
        self.assertFalse(attempt.is_transport_error)
        self.assertIn("Invalid token", attempt.response["body"])

    @patch("httpx.Client.get")
    def test_body_is_truncated(self, mock_get):
        mock_get.return_value = make_response(500, text="x" * 2000)

        attempt = self.dispatcher.dispatch("/a/", ENDPOINT)

        self.assertEqual(len(attempt.response["body"]), BODY_PREVIEW_CHARS)

    @patch("httpx.Client.get")
    def test_timeout(self, mock_get):
        """Timeouts are recorded as transport errors."""
        mock_get.side_effect = httpx.ConnectTimeout("timed out")

        attempt = self.dispatcher.dispatch("/a/", ENDPOINT)

        self.assertFalse(attempt.success)
        self.assertIsNone(attempt.status_code)
        self.assertTrue(attempt.is_transport_error)
        self.assertEqual(attempt.response["code"], "TIMEOUT")
        self.assertEqual(attempt.response["message"], "timed out")

    @patch("httpx.Client.get")
    def test_network_error(self, mock_get):
        mock_get.side_effect = httpx.ConnectError("Connection refused")

        attempt = self.dispatcher.dispatch("/a/", ENDPOINT)

        self.assertTrue(attempt.is_transport_error)
        self.assertEqual(attempt.response["code"], "NETWORK_ERROR")
        self.assertIn("Connection refused", attempt.response["message"])

    @patch("httpx.Client.get")
    def test_stored_request_url_hides_token(self, mock_get):
        mock_get.return_value = make_response(200)
        config = EndpointConfig(endpoint_url="https://front.example.com/api/revalidate", auth_token="s3cr3t")

        attempt = self.dispatcher.dispatch("/a/", config)

        self.assertNotIn("s3cr3t", attempt.request["url"])
        self.assertIn("path=/a/", attempt.request["url"])
        self.assertEqual(attempt.request["method"], "GET")
        self.assertEqual(attempt.request["timeout"], 30.0)

    def test_build_url_adds_query_params(self):
        url = httpx.URL(self.dispatcher.build_url("/a/", ENDPOINT))

        self.assertEqual(url.host, "front.example.com")
        self.assertEqual(url.params["token"], "test-token")
        self.assertEqual(url.params["path"], "/a/")

    @patch("httpx.Client.get")
    def test_manual_trigger_recorded(self, mock_get):
        mock_get.return_value = make_response(200)

        attempt = self.dispatcher.dispatch("/a/", ENDPOINT, trigger="manual")

        self.assertEqual(attempt.as_dict()["trigger"], "manual")

    def test_invalid_endpoint_url_returns_error_attempt(self):
        config = EndpointConfig(endpoint_url="http://[::1/api/revalidate", auth_token="secret")

        with self.assertLogs("revalidation.dispatcher", level="ERROR"):
            attempt = self.dispatcher.dispatch("/a/", config)

        self.assertFalse(attempt.success)
        self.assertTrue(attempt.is_transport_error)
        self.assertEqual(attempt.response["code"], "REQUEST_ERROR")
        self.assertNotIn("secret", attempt.request["url"])

    @patch("httpx.Client.get")
    def test_unexpected_error_returns_error_attempt(self, mock_get):
        mock_get.side_effect = RuntimeError("boom")

        with self.assertLogs("revalidation.dispatcher", level="ERROR"):
            attempt = self.dispatcher.dispatch("/a/", ENDPOINT)

        self.assertEqual(attempt.status, AttemptStatus.ERROR)
        self.assertEqual(attempt.response["code"], "REQUEST_ERROR")
        self.assertIn("boom", attempt.response["message"])
