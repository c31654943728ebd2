"""API client for the device bridge."""

from __future__ import annotations

import random
import time
from pathlib import Path
from typing import Any, Callable

import httpx

from .config import config
from .exceptions import (
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
from .utils import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_PER_PAGE,
    DEFAULT_RETRY_DELAY,
    DOWNLOAD_CHUNK_SIZE,
)


class DeviceClient:
    """Client for the HTTP bridge exposing a device's storages and files."""

    def __init__(
        self,
        api_url: str | None = None,
        api_key: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
    ):
        """Initialize the device bridge client.

        Args:
            api_url: Optional API URL (uses config if not provided)
            api_key: Optional API key (uses config if not provided)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.api_url = (api_url or config.api_url or "").rstrip("/")
        self.api_key = api_key or config.api_key
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.api_url:
            raise MirrorConfigError(
                "API URL not configured. Please set TREEMIRROR_API_URL "
                "environment variable."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            headers = {}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.Client(
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> DeviceClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        # Transient failures
        if isinstance(exception, (MirrorNetworkError, MirrorRateLimitError)):
            return True

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _handle_http_error(
        self, e: httpx.HTTPStatusError, attempt: int
    ) -> tuple[Exception, bool]:
        """Handle HTTP errors and determine if retry should occur.

        Args:
            e: The HTTP error exception
            attempt: Current attempt number

        Returns:
            Tuple of (exception to raise, should_retry)
        """
        status_code = e.response.status_code

        if status_code == 401:
            raise MirrorAuthenticationError(
                "Invalid API key or unauthorized access"
            ) from e
        elif status_code == 403:
            raise MirrorPermissionError(
                "Access forbidden - check the bridge permissions"
            ) from e
        elif status_code == 404:
            raise MirrorNotFoundError("Resource not found") from e
        elif status_code == 429:
            error = MirrorRateLimitError("Rate limit exceeded - please try again later")
            return (error, attempt < self.max_retries)

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = error_data.get("message") or error_data.get("error")
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            pass

        error = MirrorAPIError(error_msg)
        should_retry = 500 <= status_code < 600 and attempt < self.max_retries
        return (error, should_retry)

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            MirrorAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                content_type = response.headers.get("Content-Type", "")
                if response.content and "application/json" not in content_type:
                    raise MirrorInvalidResponseError(
                        f"Unexpected response type: {content_type}"
                    )

                if response.content:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise MirrorInvalidResponseError(
                            "Invalid JSON response from the device bridge"
                        ) from e
                return {}

            except httpx.HTTPStatusError as e:
                error, should_retry = self._handle_http_error(e, attempt)
                last_exception = error

                if should_retry:
                    delay = self._calculate_retry_delay(attempt)
                    if isinstance(error, MirrorRateLimitError):
                        retry_after = e.response.headers.get("Retry-After")
                        if retry_after and retry_after.isdigit():
                            delay = float(retry_after)
                    time.sleep(delay)
                    continue
                raise error from e
            except MirrorAPIError:
                raise
            except httpx.RequestError as e:
                error = MirrorNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise MirrorAPIError("Request failed after all retry attempts")

    # =========================
    # Device Operations
    # =========================

    def get_device_info(self) -> Any:
        """Get identification of the connected device.

        Returns:
            Device information (``{"device": {...}}``)
        """
        return self._request("GET", "/device")

    def get_storages(self) -> Any:
        """Get the storage partitions of the device.

        Returns:
            Storage list (``{"storages": [...]}``)
        """
        return self._request("GET", "/storages")

    # =========================
    # File Entry Operations
    # =========================

    def get_file_entries(
        self,
        storage_id: int,
        parent_id: int | None = None,
        per_page: int = DEFAULT_PER_PAGE,
        page: int | None = None,
    ) -> Any:
        """List the children of a container.

        Args:
            storage_id: Storage partition to list
            parent_id: Container id, None for the storage root
            per_page: How many entries to return per page
            page: Page number to retrieve (1-based, default: None for page 1)

        Returns:
            Paginated entry list (``{"data": [...], "current_page": ..}``)
        """
        params: dict[str, Any] = {"storageId": storage_id, "perPage": per_page}
        if parent_id is not None:
            params["parentId"] = parent_id
        if page is not None:
            params["page"] = page
        return self._request("GET", "/file-entries", params=params)

    def download_file(
        self,
        node_id: int,
        output_path: Path,
        progress_callback: Callable[[int, int], None] | None = None,
        timeout: int = 60,
    ) -> Path:
        """Download a file's content to a local path.

        Args:
            node_id: Id of the file node
            output_path: Path where to save the file
            progress_callback: Optional callback function(bytes_downloaded, total_bytes)
            timeout: Request timeout in seconds (default: 60)

        Returns:
            Path where the file was saved

        Raises:
            MirrorDownloadError: If the bridge refuses or the file can't be written
            MirrorNetworkError: On transport failures
        """
        url = f"{self.api_url}/file-entries/download/{node_id}"
        client = self._get_client()

        try:
            with client.stream("GET", url, timeout=timeout) as response:
                response.raise_for_status()

                total_size = int(response.headers.get("Content-Length", 0))
                bytes_downloaded = 0

                with open(output_path, "wb") as f:
                    for chunk in response.iter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
                            bytes_downloaded += len(chunk)
                            if progress_callback:
                                progress_callback(bytes_downloaded, total_size)

                return output_path

        except httpx.HTTPStatusError as e:
            raise MirrorDownloadError(f"Download failed: {e}") from e
        except httpx.RequestError as e:
            raise MirrorNetworkError(f"Network error during download: {e}") from e
        except OSError as e:
            raise MirrorDownloadError(f"Failed to write file: {e}") from e
