"""Unit tests for the device bridge API client."""

import tempfile
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest

from treemirror.api import DeviceClient
from treemirror.exceptions import (
    MirrorAPIError,
    MirrorAuthenticationError,
    MirrorConfigError,
    MirrorDownloadError,
    MirrorInvalidResponseError,
    MirrorNetworkError,
    MirrorNotFoundError,
    MirrorPermissionError,
    MirrorRateLimitError,
)

API_URL = "http://bridge.test/api/v1"


def make_client(handler, api_key="test_key", **kwargs) -> DeviceClient:
    """Create a DeviceClient whose requests go to ``handler``."""
    client = DeviceClient(api_url=API_URL, api_key=api_key, retry_delay=0, **kwargs)
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
    client._client = httpx.Client(
        transport=httpx.MockTransport(handler), headers=headers
    )
    return client


class TestDeviceClient:
    """Tests for DeviceClient initialization and basic functionality."""

    def test_init_with_url_and_key(self):
        """Explicit settings are used."""
        client = DeviceClient(api_url="http://host/api/", api_key="k")
        assert client.api_url == "http://host/api"
        assert client.api_key == "k"

    def test_init_without_url_raises_error(self):
        """An empty API URL is a configuration error."""
        with patch("treemirror.api.config") as mock_config:
            mock_config.api_url = ""
            mock_config.api_key = None
            with pytest.raises(MirrorConfigError, match="API URL not configured"):
                DeviceClient()

    def test_auth_header_only_with_key(self):
        """The bearer header is sent only when a key is configured."""
        with_key = DeviceClient(api_url=API_URL, api_key="secret")._get_client()
        assert with_key.headers["Authorization"] == "Bearer secret"

        with patch("treemirror.api.config") as mock_config:
            mock_config.api_key = None
            without_key = DeviceClient(api_url=API_URL)._get_client()
        assert "Authorization" not in without_key.headers

    def test_close(self):
        """close() releases the httpx client."""
        client = DeviceClient(api_url=API_URL, api_key="k")
        client._get_client()
        client.close()
        assert client._client is None

    def test_context_manager_closes(self):
        """The client can be used as a context manager."""
        with DeviceClient(api_url=API_URL, api_key="k") as client:
            client._get_client()
        assert client._client is None


class TestAPIRequest:
    """Tests for the _request method."""

    def test_successful_json_response(self):
        """JSON bodies are decoded."""
        client = make_client(lambda request: httpx.Response(200, json={"data": "ok"}))
        assert client._request("GET", "/test") == {"data": "ok"}

    def test_empty_response(self):
        """An empty body gives an empty dict."""
        client = make_client(lambda request: httpx.Response(204))
        assert client._request("GET", "/test") == {}

    def test_non_json_response_raises(self):
        """HTML or other content types are rejected."""
        client = make_client(
            lambda request: httpx.Response(
                200, content=b"<html></html>", headers={"Content-Type": "text/html"}
            )
        )
        with pytest.raises(MirrorInvalidResponseError, match="Unexpected response"):
            client._request("GET", "/test")

    @pytest.mark.parametrize(
        "status,error",
        [
            (401, MirrorAuthenticationError),
            (403, MirrorPermissionError),
            (404, MirrorNotFoundError),
        ],
    )
    def test_client_errors_map_to_exceptions(self, status, error):
        """Status codes map onto the exception hierarchy without retrying."""
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(status)

        client = make_client(handler)
        with pytest.raises(error):
            client._request("GET", "/test")
        assert len(calls) == 1

    @patch("treemirror.api.time.sleep")
    def test_server_error_retried(self, mock_sleep):
        """5xx responses are retried and can succeed."""
        responses = [httpx.Response(503), httpx.Response(200, json={"ok": True})]
        client = make_client(lambda request: responses.pop(0))

        assert client._request("GET", "/test") == {"ok": True}
        mock_sleep.assert_called_once()

    @patch("treemirror.api.time.sleep")
    def test_server_error_message_after_retries(self, mock_sleep):
        """The bridge's error message is included once retries run out."""
        client = make_client(
            lambda request: httpx.Response(500, json={"message": "device busy"}),
            max_retries=2,
        )
        with pytest.raises(MirrorAPIError, match="device busy"):
            client._request("GET", "/test")
        assert mock_sleep.call_count == 2

    @patch("treemirror.api.time.sleep")
    def test_rate_limit_honours_retry_after(self, mock_sleep):
        """429 waits for Retry-After before retrying."""
        responses = [
            httpx.Response(429, headers={"Retry-After": "7"}),
            httpx.Response(200, json={}),
        ]
        client = make_client(lambda request: responses.pop(0))

        client._request("GET", "/test")
        mock_sleep.assert_called_once_with(7.0)

    @patch("treemirror.api.time.sleep")
    def test_rate_limit_exhausted(self, mock_sleep):
        """Persistent rate limiting ends in MirrorRateLimitError."""
        client = make_client(lambda request: httpx.Response(429), max_retries=1)
        with pytest.raises(MirrorRateLimitError):
            client._request("GET", "/test")

    @patch("treemirror.api.time.sleep")
    def test_network_error_retried_then_raised(self, mock_sleep):
        """Transport errors are retried and then raised as MirrorNetworkError."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler, max_retries=2)
        with pytest.raises(MirrorNetworkError, match="refused"):
            client._request("GET", "/test")
        assert mock_sleep.call_count == 2

    def test_should_retry_only_transient_errors(self):
        """Network and rate limit errors are retried until attempts run out."""
        client = DeviceClient(api_url=API_URL, api_key="k", max_retries=2)
        assert client._should_retry(MirrorNetworkError("down"), 0) is True
        assert client._should_retry(MirrorRateLimitError("slow"), 1) is True
        assert client._should_retry(MirrorNetworkError("down"), 2) is False
        assert client._should_retry(MirrorAPIError("status 500"), 0) is False
        assert client._should_retry(MirrorNotFoundError("gone"), 0) is False

    def test_retry_delay_grows(self):
        """Backoff doubles per attempt within the jitter range."""
        client = DeviceClient(api_url=API_URL, api_key="k", retry_delay=1.0)
        assert 0.75 <= client._calculate_retry_delay(0) <= 1.25
        assert 3.0 <= client._calculate_retry_delay(2) <= 5.0


class TestEndpoints:
    """Tests for the device, storage and file entry endpoints."""

    def test_get_device_info(self):
        """GET /device."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"device": {"friendly_name": "Phone"}})

        result = make_client(handler).get_device_info()

        assert result["device"]["friendly_name"] == "Phone"
        assert seen[0].url.path == "/api/v1/device"
        assert seen[0].headers["Authorization"] == "Bearer test_key"

    def test_get_storages(self):
        """GET /storages."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"storages": []})

        assert make_client(handler).get_storages() == {"storages": []}
        assert seen[0].url.path == "/api/v1/storages"

    def test_get_file_entries_root(self):
        """The root listing omits parentId."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"data": []})

        make_client(handler).get_file_entries(storage_id=65537, page=1)

        params = seen[0].url.params
        assert params["storageId"] == "65537"
        assert params["perPage"] == "100"
        assert params["page"] == "1"
        assert "parentId" not in params

    def test_get_file_entries_container(self):
        """A container listing passes parentId."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"data": []})

        make_client(handler).get_file_entries(storage_id=1, parent_id=33, per_page=5)

        params = seen[0].url.params
        assert params["parentId"] == "33"
        assert params["perPage"] == "5"


class TestDownloadFile:
    """Tests for download_file."""

    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory for testing."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def test_writes_content(self, temp_dir):
        """The streamed body is written to the output path."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"hello world")

        target = temp_dir / "a.txt"
        progress = []
        result = make_client(handler).download_file(
            42, target, progress_callback=lambda done, total: progress.append(done)
        )

        assert result == target
        assert target.read_bytes() == b"hello world"
        assert seen[0].url.path == "/api/v1/file-entries/download/42"
        assert progress[-1] == 11

    def test_http_error(self, temp_dir):
        """A refused download raises MirrorDownloadError."""
        client = make_client(lambda request: httpx.Response(500))
        with pytest.raises(MirrorDownloadError, match="Download failed"):
            client.download_file(1, temp_dir / "a.txt")

    def test_network_error(self, temp_dir):
        """Transport errors raise MirrorNetworkError."""

        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(MirrorNetworkError):
            make_client(handler).download_file(1, temp_dir / "a.txt")

    def test_write_error(self, temp_dir):
        """Unwritable destinations raise MirrorDownloadError."""
        client = make_client(lambda request: httpx.Response(200, content=b"x"))
        with pytest.raises(MirrorDownloadError, match="Failed to write"):
            client.download_file(1, temp_dir / "missing" / "a.txt")
