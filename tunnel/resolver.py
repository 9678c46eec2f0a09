"""
Public tunnel URL discovery.

Each resolver is polled once per tick by the provider loop and returns the
public URL once it is known, None until then.
"""

import logging
import re
import time
from typing import Optional

import requests

import config

log = logging.getLogger(__name__)


class TunnelURLResolver:
    """Base class for public URL discovery strategies."""

    def resolve(self) -> Optional[str]:
        raise NotImplementedError


class OutputScrapeResolver(TunnelURLResolver):
    """
    Scrapes the public URL from the tunnel's own output.

    Best effort: the provider's output format is not a contract. The first
    match is final for the run; later output is ignored.
    """

    PATTERN = re.compile(r'Public HTTPS:\s+(https?://[^\s]+)')

    def __init__(self, process, pattern=None):
        """
        Args:
            process: TunnelProcess whose output is scanned
            pattern: Optional compiled regex with the URL as group 1
        """
        self.process = process
        self.pattern = pattern or self.PATTERN
        self.url = None

    def resolve(self) -> Optional[str]:
        if self.url:
            return self.url

        match = self.pattern.search(self.process.latest_output())
        if match:
            self.url = match.group(1)
        return self.url


class LocalApiResolver(TunnelURLResolver):
    """Reads the public URL from the provider's local inspection API."""

    # provider startup lag: 5 attempts, 1s apart
    MAX_ATTEMPTS = 5
    RETRY_DELAY = 1

    def __init__(self, api_url: str = config.NGROK_API_URL, session: Optional[requests.Session] = None,
                 timeout: int = config.REQUEST_TIMEOUT):
        self.api_url = api_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _fetch_tunnels(self) -> Optional[dict]:
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                response = self.session.get(f"{self.api_url}/tunnels", timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except (requests.exceptions.RequestException, ValueError) as e:
                log.debug(f"Tunnel API not ready ({type(e).__name__}), attempt {attempt}/{self.MAX_ATTEMPTS}")

            if attempt < self.MAX_ATTEMPTS:
                time.sleep(self.RETRY_DELAY)

        log.warning(f"Tunnel API at {self.api_url} did not answer after {self.MAX_ATTEMPTS} attempts")
        return None

    def resolve(self) -> Optional[str]:
        result = self._fetch_tunnels()
        if not result:
            return None

        tunnels = result.get('tunnels') or []
        public_url = tunnels[0].get('public_url') if tunnels else None

        if public_url and public_url.startswith(('https://', 'http://')):
            return public_url
        return None
