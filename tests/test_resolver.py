"""Tests for public tunnel URL discovery."""

from unittest.mock import MagicMock

import requests

from conftest import make_response
from tunnel.resolver import LocalApiResolver, OutputScrapeResolver


class FakeOutputProcess:
    """Stands in for TunnelProcess: hands out queued output chunks."""

    def __init__(self, chunks):
        self.chunks = list(chunks)

    def latest_output(self):
        return self.chunks.pop(0) if self.chunks else ''


class TestOutputScrapeResolver:
    """Tests for scraping the expose share output."""

    def test_no_url_yet(self):
        resolver = OutputScrapeResolver(FakeOutputProcess(['Starting tunnel...\n']))
        assert resolver.resolve() is None

    def test_finds_public_https(self):
        process = FakeOutputProcess([
            'Local-URL:     http://127.0.0.1:5000\n'
            'Public HTTP:   http://abc.sharedwithexpose.com\n'
            'Public HTTPS:  https://abc.sharedwithexpose.com\n'
        ])
        resolver = OutputScrapeResolver(process)

        assert resolver.resolve() == 'https://abc.sharedwithexpose.com'

    def test_first_match_wins(self):
        process = FakeOutputProcess([
            'Public HTTPS: https://first.sharedwithexpose.com\n',
            'Public HTTPS: https://second.sharedwithexpose.com\n',
        ])
        resolver = OutputScrapeResolver(process)

        assert resolver.resolve() == 'https://first.sharedwithexpose.com'
        assert resolver.resolve() == 'https://first.sharedwithexpose.com'
        # later output is never read once a URL is known
        assert process.chunks == ['Public HTTPS: https://second.sharedwithexpose.com\n']

    def test_ignores_unlabeled_urls(self):
        process = FakeOutputProcess(['Dashboard: https://expose.dev/dashboard\n'])
        assert OutputScrapeResolver(process).resolve() is None

    def test_url_found_on_later_tick(self):
        process = FakeOutputProcess(['Connecting...\n', 'Public HTTPS: http://x.sharedwithexpose.com\n'])
        resolver = OutputScrapeResolver(process)

        assert resolver.resolve() is None
        assert resolver.resolve() == 'http://x.sharedwithexpose.com'


class TestLocalApiResolver:
    """Tests for the ngrok inspection API strategy."""

    def test_returns_first_tunnel_url(self):
        session = MagicMock(spec=requests.Session)
        session.get.return_value = make_response(200, {'tunnels': [
            {'public_url': 'https://abc.ngrok-free.app'},
            {'public_url': 'https://other.ngrok-free.app'},
        ]})

        resolver = LocalApiResolver('http://localhost:4040/api', session=session)

        assert resolver.resolve() == 'https://abc.ngrok-free.app'
        assert session.get.call_args.args[0] == 'http://localhost:4040/api/tunnels'

    def test_no_tunnels_yet(self):
        session = MagicMock(spec=requests.Session)
        session.get.return_value = make_response(200, {'tunnels': []})

        assert LocalApiResolver(session=session).resolve() is None

    def test_rejects_non_http_url(self):
        session = MagicMock(spec=requests.Session)
        session.get.return_value = make_response(200, {'tunnels': [{'public_url': 'tcp://0.tcp.ngrok.io:1234'}]})

        assert LocalApiResolver(session=session).resolve() is None

    def test_retries_during_startup(self):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = [
            requests.exceptions.ConnectionError('refused'),
            requests.exceptions.ConnectionError('refused'),
            make_response(200, {'tunnels': [{'public_url': 'https://abc.ngrok-free.app'}]}),
        ]

        assert LocalApiResolver(session=session).resolve() == 'https://abc.ngrok-free.app'
        assert session.get.call_count == 3

    def test_gives_up_after_five_attempts(self):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = requests.exceptions.ConnectionError('refused')

        assert LocalApiResolver(session=session).resolve() is None
        assert session.get.call_count == LocalApiResolver.MAX_ATTEMPTS == 5
