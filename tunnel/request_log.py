"""
Live log of requests forwarded through the tunnel.
"""

import logging
from typing import Callable, List, Optional, Set

import requests

import config
from .config import RequestLogEntry

log = logging.getLogger(__name__)


class RequestLogTail:
    """Polls the provider's inspection API and emits one line per new request."""

    LIMIT = 50

    def __init__(self, emit: Callable[[str], None], seen_ids: Optional[Set[str]] = None,
                 api_url: str = config.NGROK_API_URL, session: Optional[requests.Session] = None,
                 timeout: int = config.REQUEST_TIMEOUT):
        """
        Args:
            emit: Called with each formatted request line
            seen_ids: Ids already printed; shared with the run context
            api_url: Base URL of the inspection API
            session: Optional requests session to reuse
            timeout: Per-request timeout in seconds
        """
        self.emit = emit
        self.seen_ids = seen_ids if seen_ids is not None else set()
        self.api_url = api_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def poll(self) -> List[RequestLogEntry]:
        """
        Fetch recent requests and emit the ones not seen before, in API order.

        Returns:
            The newly emitted entries
        """
        try:
            response = self.session.get(
                f"{self.api_url}/requests/http",
                params={'limit': self.LIMIT},
                timeout=self.timeout,
            )
            response.raise_for_status()
            requests_data = response.json().get('requests') or []
        except (requests.exceptions.RequestException, ValueError) as e:
            log.debug(f"Request log poll failed ({type(e).__name__})")
            return []

        new_entries = []
        for item in requests_data:
            entry = RequestLogEntry.from_dict(item)
            if entry.id in self.seen_ids:
                continue

            self.seen_ids.add(entry.id)
            new_entries.append(entry)
            self.emit(entry.format_line())

        return new_entries
