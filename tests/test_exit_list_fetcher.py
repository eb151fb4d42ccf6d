import unittest

import requests
from mock import MagicMock, patch

from exitrelay.exit_list_fetcher import ExitListFetcher, is_valid_ipv4, parse_exit_list
from exitrelay.main import get_logger

logger = get_logger('Exit list fetcher test')


def make_response(text, status_code=200):
    response = MagicMock()
    response.text = text
    response.status_code = status_code
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f'{status_code} Error')
    return response


class TestValidation(unittest.TestCase):

    def test_ipv4(self):
        self.assertTrue(is_valid_ipv4('1.2.3.4'))
        self.assertTrue(is_valid_ipv4('0.0.0.0'))
        self.assertTrue(is_valid_ipv4('255.255.255.255'))
        self.assertFalse(is_valid_ipv4('999.1.1.1'))
        self.assertFalse(is_valid_ipv4('1.2.3'))
        self.assertFalse(is_valid_ipv4('1.2.3.4.5'))
        self.assertFalse(is_valid_ipv4('1.2.3.-4'))
        self.assertFalse(is_valid_ipv4('a.b.c.d'))
        self.assertFalse(is_valid_ipv4('1..3.4'))
        self.assertFalse(is_valid_ipv4('<html>'))

    def test_ipv4_trailing_whitespace(self):
        self.assertFalse(is_valid_ipv4('1.2.3.4\n'))
        self.assertFalse(is_valid_ipv4('1.2.3.4 '))
        self.assertFalse(is_valid_ipv4('1.2.3\n.4'))

    def test_parse_skips_invalid_lines(self):
        addresses, rejected = parse_exit_list('1.2.3.4\n999.1.1.1\n\n  5.6.7.8  \n1.2.3\n1.2.3.4\n')
        self.assertEqual(addresses, {'1.2.3.4', '5.6.7.8'})
        self.assertEqual(rejected, 2)

    def test_parse_exit_addresses_document(self):
        text = '\n'.join([
            'ExitNode 0011BD2485AD45D984EC4159C88FC066E5E3300E',
            'Published 2024-05-01 10:00:00',
            'LastStatus 2024-05-01 11:00:00',
            'ExitAddress 162.247.74.201 2024-05-01 11:02:47',
            '# comment',
        ])
        addresses, rejected = parse_exit_list(text)
        self.assertEqual(addresses, {'162.247.74.201'})
        self.assertEqual(rejected, 0)


class TestExitListFetcher(unittest.TestCase):

    @patch('exitrelay.exit_list_fetcher.requests.get')
    def test_fetch(self, get):
        get.return_value = make_response('1.1.1.1\n2.2.2.2\nnot an ip\n')
        fetcher = ExitListFetcher(logger=logger)

        self.assertEqual(fetcher.fetch_latest(), {'1.1.1.1', '2.2.2.2'})
        get.assert_called_once_with('https://check.torproject.org/torbulkexitlist', timeout=10)

    @patch('exitrelay.exit_list_fetcher.requests.get')
    def test_timeout(self, get):
        get.side_effect = requests.exceptions.Timeout()
        self.assertEqual(ExitListFetcher(logger=logger).fetch_latest(), set())

    @patch('exitrelay.exit_list_fetcher.requests.get')
    def test_connection_error(self, get):
        get.side_effect = requests.exceptions.ConnectionError('refused')
        self.assertEqual(ExitListFetcher(logger=logger).fetch_latest(), set())

    @patch('exitrelay.exit_list_fetcher.requests.get')
    def test_http_error(self, get):
        get.return_value = make_response('1.1.1.1', status_code=503)
        self.assertEqual(ExitListFetcher(logger=logger).fetch_latest(), set())

    @patch('exitrelay.exit_list_fetcher.requests.get')
    def test_nothing_valid(self, get):
        get.return_value = make_response('<html>maintenance</html>\n')
        self.assertEqual(ExitListFetcher(logger=logger).fetch_latest(), set())

    def test_session(self):
        session = MagicMock()
        session.get.return_value = make_response('3.3.3.3')
        fetcher = ExitListFetcher(url='http://localhost/list', timeout_in_seconds=2, session=session)

        self.assertEqual(fetcher.fetch_latest(), {'3.3.3.3'})
        session.get.assert_called_once_with('http://localhost/list', timeout=2)
