"""
Fetching of remote HTML documents for analysis.
"""
import logging
from typing import Optional
from urllib.parse import urlparse

import requests

from formprobe.config import Config

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "Invalid URL provided."


class FetchError(Exception):
    """Raised when a remote document cannot be retrieved."""


class HtmlFetcher:
    """Downloads a page and returns its markup as text."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds (from Config if not provided)
        """
        self.timeout = timeout or Config.FETCH_TIMEOUT_SECONDS

    @staticmethod
    def is_valid_url(url: str) -> bool:
        """Only absolute http(s) URLs with a host are accepted."""
        try:
            parsed = urlparse(url or '')
        except ValueError:
            return False
        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)

    def fetch(self, url: str) -> str:
        """
        Download the document at ``url``.

        Args:
            url: Absolute http(s) URL

        Returns:
            The response body as text

        Raises:
            FetchError: on an invalid URL, a transport error or a
                non-success status
        """
        if not self.is_valid_url(url):
            raise FetchError(INVALID_URL_MESSAGE)

        try:
            logger.info(f"Fetching HTML from {url}")
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Error fetching {url}: {e}")
            raise FetchError(f"Failed to fetch URL: {e}") from e

        if not response.ok:
            reason = response.reason or f"HTTP {response.status_code}"
            logger.warning(f"Fetching {url} returned {response.status_code} {reason}")
            raise FetchError(f"Failed to fetch URL: {reason}")

        html = response.text
        logger.info(f"Fetched {len(html)} characters from {url}")
        return html
