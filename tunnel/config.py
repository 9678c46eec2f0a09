"""
Listener data structures: webhooks, listing pages, request log entries and
the per-invocation run context.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Dict, Optional, Set, Tuple

if TYPE_CHECKING:
    from .process import TunnelProcess


WEBHOOK_EVENTS = (
    'order_created',
    'order_refunded',
    'subscription_created',
    'subscription_updated',
    'subscription_cancelled',
    'subscription_resumed',
    'subscription_expired',
    'subscription_paused',
    'subscription_unpaused',
    'subscription_payment_success',
    'subscription_payment_failed',
    'subscription_payment_recovered',
    'subscription_payment_refunded',
    'subscription_plan_changed',
    'license_key_created',
    'license_key_updated',
)

# column width for the request URI in request log lines
URI_COLUMN_WIDTH = 48


def build_callback_url(tunnel_url: str, path: str) -> str:
    """Append the local webhook route to a public tunnel URL."""
    return f"{tunnel_url.rstrip('/')}/{path.strip('/')}/webhook"


@dataclass
class Webhook:
    """A webhook registered (or about to be registered) on Lemon Squeezy."""

    url: str
    secret: str
    store_id: str
    events: Tuple[str, ...] = WEBHOOK_EVENTS
    id: Optional[str] = None

    def to_payload(self) -> dict:
        """Serialize to the JSON:API document expected by POST /webhooks."""
        return {
            'data': {
                'type': 'webhooks',
                'attributes': {
                    'url': self.url,
                    'events': list(self.events),
                    'secret': self.secret,
                },
                'relationships': {
                    'store': {
                        'data': {
                            'type': 'stores',
                            'id': str(self.store_id),
                        },
                    },
                },
            },
        }


@dataclass
class WebhookPage:
    """One page of the remote webhook listing."""

    webhooks: Dict[str, str]
    current_page: int
    last_page: int

    @property
    def is_last(self) -> bool:
        return self.current_page >= self.last_page

    @classmethod
    def from_dict(cls, data: dict) -> 'WebhookPage':
        """Deserialize from a GET /webhooks response body."""
        page = data.get('meta', {}).get('page', {})
        webhooks = {
            str(item['id']): item.get('attributes', {}).get('url', '')
            for item in data.get('data', [])
        }
        current_page = int(page.get('currentPage', 1))
        return cls(
            webhooks=webhooks,
            current_page=current_page,
            last_page=int(page.get('lastPage', current_page)),
        )


@dataclass
class RequestLogEntry:
    """A single HTTP request forwarded by the tunnel."""

    id: str
    status_code: int
    method: str
    uri: str
    timestamp: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'RequestLogEntry':
        """Deserialize from one item of the ngrok /requests/http listing."""
        request = data.get('request') or {}
        response = data.get('response') or {}
        date_header = (response.get('headers') or {}).get('Date') or []
        if isinstance(date_header, str):
            date_header = [date_header]

        timestamp = None
        if date_header:
            try:
                timestamp = parsedate_to_datetime(date_header[0])
            except (TypeError, ValueError):
                timestamp = None

        return cls(
            id=str(data['id']),
            status_code=response.get('status_code', 0),
            method=request.get('method', ''),
            uri=request.get('uri', ''),
            timestamp=timestamp,
        )

    def format_line(self) -> str:
        uri = self.uri[:URI_COLUMN_WIDTH].ljust(URI_COLUMN_WIDTH, '.')
        time_str = self.timestamp.strftime('%H:%M:%S') if self.timestamp else '--:--:--'
        return f"{self.status_code} {self.method} {uri} {time_str}"


@dataclass
class RunContext:
    """
    State owned by a single listen invocation.

    Created by the controller, handed to every component, and discarded when
    the command returns.
    """

    service: str
    verbose: bool = False
    custom_url: Optional[str] = None
    process: Optional['TunnelProcess'] = None
    tunnel_url: Optional[str] = None
    webhook_id: Optional[str] = None
    orphaned_webhook_id: Optional[str] = None
    teardown_done: bool = False
    seen_request_ids: Set[str] = field(default_factory=set)
    stop_event: threading.Event = field(default_factory=threading.Event)

    @property
    def running(self) -> bool:
        return not self.stop_event.is_set()

    def stop(self):
        """Ask the run loop to finish; safe to call from a signal handler."""
        self.stop_event.set()

    def wait(self, seconds: float) -> bool:
        """
        Sleep for one tick.

        Returns:
            True if the run was stopped during (or before) the wait
        """
        return self.stop_event.wait(seconds)
