"""Tests for the ngrok request log tail."""

from unittest.mock import MagicMock

import requests

from conftest import make_response
from tunnel.config import RequestLogEntry
from tunnel.request_log import RequestLogTail


def ngrok_request(request_id, uri='/lemon-squeezy/webhook', status=200, method='POST',
                  date='Fri, 16 Oct 2026 14:03:27 GMT'):
    return {
        'id': request_id,
        'request': {'method': method, 'uri': uri},
        'response': {'status_code': status, 'headers': {'Date': [date]}},
    }


class TestRequestLogEntry:
    """Tests for request log line formatting."""

    def test_format_line(self):
        entry = RequestLogEntry.from_dict(ngrok_request('req_1'))

        line = entry.format_line()

        assert line.startswith('200 POST /lemon-squeezy/webhook')
        assert line.endswith(' 14:03:27')
        uri_column = line.split(' ')[2]
        assert len(uri_column) == 48
        assert uri_column.endswith('.')

    def test_long_uri_truncated(self):
        entry = RequestLogEntry.from_dict(ngrok_request('req_2', uri='/' + 'x' * 100))

        assert entry.format_line().split(' ')[2] == '/' + 'x' * 47

    def test_missing_date(self):
        item = ngrok_request('req_3')
        item['response']['headers'] = {}

        entry = RequestLogEntry.from_dict(item)

        assert entry.timestamp is None
        assert entry.format_line().endswith('--:--:--')


class TestRequestLogTail:
    """Tests for polling and de-duplication."""

    def _tail(self, responses):
        session = MagicMock(spec=requests.Session)
        session.get.side_effect = responses
        emitted = []
        tail = RequestLogTail(emitted.append, api_url='http://localhost:4040/api', session=session)
        return tail, session, emitted

    def test_emits_new_requests_in_api_order(self):
        tail, session, emitted = self._tail([
            make_response(200, {'requests': [ngrok_request('b', uri='/second'), ngrok_request('a', uri='/first')]}),
        ])

        entries = tail.poll()

        assert [e.id for e in entries] == ['b', 'a']
        assert len(emitted) == 2
        assert '/second' in emitted[0]
        assert session.get.call_args.args[0] == 'http://localhost:4040/api/requests/http'
        assert session.get.call_args.kwargs['params'] == {'limit': 50}

    def test_skips_seen_requests(self):
        tail, _, emitted = self._tail([
            make_response(200, {'requests': [ngrok_request('a')]}),
            make_response(200, {'requests': [ngrok_request('b'), ngrok_request('a')]}),
        ])

        tail.poll()
        tail.poll()

        assert len(emitted) == 2
        assert tail.seen_ids == {'a', 'b'}

    def test_shares_seen_set(self):
        seen = {'a'}
        session = MagicMock(spec=requests.Session)
        session.get.return_value = make_response(200, {'requests': [ngrok_request('a'), ngrok_request('c')]})
        emitted = []

        RequestLogTail(emitted.append, seen_ids=seen, session=session).poll()

        assert len(emitted) == 1
        assert seen == {'a', 'c'}

    def test_poll_failure_is_skipped(self):
        tail, _, emitted = self._tail([requests.exceptions.ConnectionError('refused')])

        assert tail.poll() == []
        assert emitted == []
