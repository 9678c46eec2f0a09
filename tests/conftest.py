"""Shared fixtures for the listener tests."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from app import create_app
from tunnel.registrar import WebhookRegistry
from tunnel.resolver import LocalApiResolver

TEST_CONFIG = {
    'TESTING': True,
    'LEMON_SQUEEZY_API_KEY': 'test-api-key',
    'LEMON_SQUEEZY_STORE': '4242',
    'LEMON_SQUEEZY_SIGNING_SECRET': None,
    'LEMON_SQUEEZY_PATH': 'lemon-squeezy',
    'LEMON_SQUEEZY_API_URL': 'https://api.lemonsqueezy.test/v1',
    'LEMON_SQUEEZY_LOCAL_URL': 'http://127.0.0.1:5000',
    'NGROK_API_URL': 'http://localhost:4040/api',
    'TUNNEL_START_TIMEOUT': 5,
    'APP_ENV': 'local',
}


def make_response(status_code, data=None):
    """Build a fake requests.Response."""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.json.return_value = data if data is not None else {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} error")
    return response


def webhook_listing(items, current_page=1, last_page=1):
    """Build a GET /webhooks response body from (id, url) pairs."""
    return {
        'meta': {'page': {'currentPage': current_page, 'lastPage': last_page}},
        'data': [
            {'type': 'webhooks', 'id': str(webhook_id), 'attributes': {'url': url}}
            for webhook_id, url in items
        ],
    }


@pytest.fixture
def app():
    return create_app(dict(TEST_CONFIG))


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def registry(session):
    return WebhookRegistry(
        api_key='test-api-key',
        store_id='4242',
        webhook_path='lemon-squeezy',
        api_url='https://api.lemonsqueezy.test/v1',
        session=session,
    )


@pytest.fixture(autouse=True)
def no_retry_delay():
    """Retry delays are real sleeps; skip them in tests."""
    with patch.object(WebhookRegistry, 'RETRY_DELAY', 0), \
            patch.object(LocalApiResolver, 'RETRY_DELAY', 0):
        yield
