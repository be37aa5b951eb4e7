"""
Store Connection Manager with retry logic for the dashboard's HTTP API.
"""
import logging
import time
from typing import Optional, Dict, Any
import requests

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a store request fails or returns an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StoreConnectionManager:
    """Manages HTTP access to the contract and price curve stores."""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 retry_attempts: int = 3, retry_delay: float = 0.5,
                 session: Optional[requests.Session] = None):
        """
        Initialize store connection manager.

        Args:
            base_url: Base URL of the API (e.g. http://localhost:3000)
            timeout: Request timeout in seconds
            retry_attempts: Maximum attempts per request
            retry_delay: Base delay for exponential backoff (seconds)
            session: Optional pre-configured requests session
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.session = session or requests.Session()
        self.session.headers.setdefault('Content-Type', 'application/json')

    def url(self, path: str) -> str:
        """Build an absolute URL for an API path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                json: Any = None) -> Any:
        """
        Perform a request with exponential backoff on transient failures.

        Connection errors, timeouts and 5xx responses are retried; 4xx
        responses fail immediately.

        Args:
            method: HTTP method
            path: API path
            params: Query parameters
            json: JSON body

        Returns:
            Decoded JSON body, or None for an empty response

        Raises:
            StoreError: If the request ultimately fails
        """
        url = self.url(path)
        last_error: Optional[StoreError] = None

        for attempt in range(self.retry_attempts):
            try:
                response = self.session.request(
                    method, url, params=params, json=json, timeout=self.timeout
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                last_error = StoreError(f"{method} {url} failed: {e}")
                logger.error(f"Request attempt {attempt + 1}/{self.retry_attempts} failed: {e}")
            else:
                if response.status_code >= 500:
                    last_error = StoreError(
                        f"{method} {url} returned {response.status_code}",
                        status_code=response.status_code
                    )
                    logger.error(f"Request attempt {attempt + 1}/{self.retry_attempts} "
                                 f"returned {response.status_code}")
                elif response.status_code >= 400:
                    raise StoreError(
                        f"{method} {url} returned {response.status_code}: {self._error_detail(response)}",
                        status_code=response.status_code
                    )
                else:
                    return self._decode(response)

            if attempt < self.retry_attempts - 1:
                delay = self.retry_delay * (2 ** attempt)
                logger.info(f"Retrying in {delay} seconds...")
                time.sleep(delay)

        logger.error("Max retry attempts reached")
        raise last_error

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a GET request."""
        return self.request('GET', path, params=params)

    def post(self, path: str, json: Any) -> Any:
        """Perform a POST request."""
        return self.request('POST', path, json=json)

    def put(self, path: str, json: Any) -> Any:
        """Perform a PUT request."""
        return self.request('PUT', path, json=json)

    def delete(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Perform a DELETE request."""
        return self.request('DELETE', path, params=params)

    @staticmethod
    def _decode(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise StoreError(f"Malformed response from {response.url}: {e}",
                             status_code=response.status_code)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict):
            return body.get('error', 'Unknown error')
        return str(body)

    def close(self):
        """Close the underlying session."""
        self.session.close()
        logger.info("Closed store connection")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
