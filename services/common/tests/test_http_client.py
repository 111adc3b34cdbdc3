from unittest.mock import patch

import httpx

from services.common.core.config import BaseAppConfig
from services.common.core.http_client import HttpClientFactory


class TestHttpClientFactory:
    @patch("httpx.AsyncClient")
    def test_create_async_client_verify_false(self, mock_client):
        """VERIFY_SSL=False should produce client with verify=False"""
        config = BaseAppConfig(VERIFY_SSL=False)
        factory = HttpClientFactory(config)
        factory.create_async_client()

        mock_client.assert_called_once()
        _, kwargs = mock_client.call_args
        assert kwargs["verify"] is False
        assert kwargs["trust_env"] is False

    @patch("httpx.AsyncClient")
    def test_create_async_client_defaults_to_verified_tls(self, mock_client):
        factory = HttpClientFactory(BaseAppConfig())
        factory.create_async_client()

        _, kwargs = mock_client.call_args
        assert kwargs["verify"] is True
        assert kwargs["follow_redirects"] is True

    @patch("httpx.AsyncClient")
    def test_explicit_verify_wins_over_config(self, mock_client):
        factory = HttpClientFactory(BaseAppConfig(VERIFY_SSL=True))
        factory.create_async_client(verify=False)

        _, kwargs = mock_client.call_args
        assert kwargs["verify"] is False

    @patch("httpx.AsyncClient")
    def test_pool_limits_come_from_config(self, mock_client):
        config = BaseAppConfig(HTTP_MAX_CONNECTIONS=7, HTTP_MAX_KEEPALIVE=3)
        HttpClientFactory(config).create_async_client()

        _, kwargs = mock_client.call_args
        limits = kwargs["limits"]
        assert isinstance(limits, httpx.Limits)
        assert limits.max_connections == 7
        assert limits.max_keepalive_connections == 3

    @patch("httpx.AsyncClient")
    def test_timeout_is_passed_through(self, mock_client):
        timeout = httpx.Timeout(10, connect=10)
        HttpClientFactory(BaseAppConfig()).create_async_client(timeout=timeout)

        _, kwargs = mock_client.call_args
        assert kwargs["timeout"] is timeout

    @patch("urllib3.disable_warnings")
    def test_configure_global_settings_disable_warnings(self, mock_disable):
        """VERIFY_SSL=False should trigger disable_warnings"""
        factory = HttpClientFactory(BaseAppConfig(VERIFY_SSL=False))
        factory.configure_global_settings()

        mock_disable.assert_called_once()

    @patch("urllib3.disable_warnings")
    def test_configure_global_settings_no_disable_warnings(self, mock_disable):
        """VERIFY_SSL=True should NOT trigger disable_warnings"""
        factory = HttpClientFactory(BaseAppConfig(VERIFY_SSL=True))
        factory.configure_global_settings()

        mock_disable.assert_not_called()
