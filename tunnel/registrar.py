"""
Webhook registration with the Lemon Squeezy API.
"""

import logging
import secrets
import string
import time
from typing import Dict, Optional

import requests

import config
from .config import Webhook, WebhookPage, build_callback_url
from .exceptions import (
    TransientNetworkError,
    TunnelError,
    WebhookDeletionError,
    WebhookRegistrationError,
)

log = logging.getLogger(__name__)

SECRET_LENGTH = 32
_SECRET_ALPHABET = string.ascii_letters + string.digits


def generate_secret(length: int = SECRET_LENGTH) -> str:
    """Random alphanumeric signing secret."""
    return ''.join(secrets.choice(_SECRET_ALPHABET) for _ in range(length))


class WebhookRegistry:
    """Creates, lists and deletes webhooks for one Lemon Squeezy store."""

    # request-level retry policy: 3 attempts, 250ms apart
    MAX_ATTEMPTS = 3
    RETRY_DELAY = 0.25

    def __init__(self, api_key: str, store_id: str, webhook_path: str,
                 signing_secret: Optional[str] = None, api_url: str = config.API_URL,
                 session: Optional[requests.Session] = None, timeout: int = config.REQUEST_TIMEOUT):
        """
        Initialize registry.

        Args:
            api_key: Lemon Squeezy API key (sent as bearer token)
            store_id: Store the webhooks belong to
            webhook_path: Path segment of the local webhook route
            signing_secret: Optional fixed signing secret; generated per webhook when empty
            api_url: Base URL of the Lemon Squeezy API
            session: Optional requests session to reuse
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key
        self.store_id = store_id
        self.webhook_path = webhook_path
        self.signing_secret = signing_secret
        self.api_url = api_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_app(cls, app, session: Optional[requests.Session] = None) -> 'WebhookRegistry':
        """Build a registry from a Flask app's configuration."""
        return cls(
            api_key=app.config['LEMON_SQUEEZY_API_KEY'],
            store_id=app.config['LEMON_SQUEEZY_STORE'],
            webhook_path=app.config['LEMON_SQUEEZY_PATH'],
            signing_secret=app.config.get('LEMON_SQUEEZY_SIGNING_SECRET'),
            api_url=app.config['LEMON_SQUEEZY_API_URL'],
            session=session,
            timeout=app.config.get('REQUEST_TIMEOUT', config.REQUEST_TIMEOUT),
        )

    def _headers(self) -> dict:
        return {
            'Accept': 'application/vnd.api+json',
            'Content-Type': 'application/vnd.api+json',
            'Authorization': f'Bearer {self.api_key}',
        }

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Send a request with the registry retry policy.

        Connection errors, timeouts and 5xx responses are retried. The last
        response is returned once attempts run out so callers can report its
        status.

        Raises:
            TransientNetworkError: If every attempt failed without a response
        """
        url = f"{self.api_url}{path}"
        last_error = None

        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                response = self.session.request(
                    method, url, headers=self._headers(), timeout=self.timeout, **kwargs
                )
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                last_error = e
                log.warning(f"{method} {path} failed ({type(e).__name__}), attempt {attempt}/{self.MAX_ATTEMPTS}")
            else:
                if response.status_code < 500 or attempt == self.MAX_ATTEMPTS:
                    return response
                log.warning(f"{method} {path} returned {response.status_code}, attempt {attempt}/{self.MAX_ATTEMPTS}")

            if attempt < self.MAX_ATTEMPTS:
                time.sleep(self.RETRY_DELAY)

        raise TransientNetworkError(
            f"{method} {path} failed after {self.MAX_ATTEMPTS} attempts"
        ) from last_error

    def create(self, tunnel_url: str) -> Webhook:
        """
        Register a webhook pointing at the tunnel.

        Args:
            tunnel_url: Public base URL of the tunnel

        Returns:
            The created webhook, with its remote id

        Raises:
            WebhookRegistrationError: If Lemon Squeezy does not answer 201
            TransientNetworkError: If the API could not be reached
        """
        webhook = Webhook(
            url=build_callback_url(tunnel_url, self.webhook_path),
            secret=self.signing_secret or generate_secret(),
            store_id=self.store_id,
        )

        response = self._request('POST', '/webhooks', json=webhook.to_payload())

        if response.status_code != 201:
            raise WebhookRegistrationError(
                f"Webhook registration failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            webhook.id = str(response.json()['data']['id'])
        except (KeyError, TypeError, ValueError) as e:
            raise WebhookRegistrationError(
                f"Webhook registration returned an unreadable body: {e!r}",
                status_code=response.status_code,
            )

        log.info(f"Registered webhook {webhook.id} for {webhook.url}")
        return webhook

    def fetch_page(self, page_number: int, store_id: Optional[str] = None) -> WebhookPage:
        """Fetch one page of the webhook listing."""
        response = self._request('GET', '/webhooks', params={
            'filter[store_id]': store_id or self.store_id,
            'page[number]': page_number,
        })

        if response.status_code != 200:
            raise TunnelError(f"Listing webhooks failed with status {response.status_code}")

        try:
            return WebhookPage.from_dict(response.json())
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TunnelError(f"Webhook listing returned an unreadable body: {e!r}")

    def list(self, store_id: Optional[str] = None) -> Dict[str, str]:
        """
        List every webhook of the store.

        Returns:
            Mapping of webhook id to callback URL across all pages
        """
        webhooks = {}
        page_number = 1

        while True:
            page = self.fetch_page(page_number, store_id)
            webhooks.update(page.webhooks)

            if page.is_last:
                break

            # never go backwards, even if the API echoes a stale page number
            page_number = max(page.current_page, page_number) + 1

        return webhooks

    def delete(self, webhook_id) -> None:
        """
        Delete a webhook.

        Raises:
            WebhookDeletionError: If Lemon Squeezy does not answer 204
            TransientNetworkError: If the API could not be reached
        """
        response = self._request('DELETE', f'/webhooks/{webhook_id}')

        if response.status_code != 204:
            raise WebhookDeletionError(
                f"Webhook {webhook_id} deletion failed with status {response.status_code}",
                webhook_id=webhook_id,
                status_code=response.status_code,
            )

        log.info(f"Deleted webhook {webhook_id}")
