"""
Unit tests for the store connection manager.
"""
import unittest
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, str(Path(__file__).parent.parent))

from energy_mtm.data_collection.store_connection import StoreConnectionManager, StoreError


def response(status_code=200, body=None, content=b'{}'):
    resp = MagicMock()
    resp.status_code = status_code
    resp.content = content
    resp.json.return_value = body
    return resp


@patch('energy_mtm.data_collection.store_connection.time.sleep')
class TestStoreConnectionManager(unittest.TestCase):
    """Test request retry and error handling."""

    def setUp(self):
        """Set up a connection with a mocked session."""
        self.session = MagicMock()
        self.connection = StoreConnectionManager('http://api.test/', retry_attempts=3,
                                                 retry_delay=0.5, session=self.session)

    def test_get_returns_json(self, sleep):
        """Test a successful request returns the decoded body."""
        self.session.request.return_value = response(body=[{'name': 'A'}])

        self.assertEqual(self.connection.get('/api/contracts'), [{'name': 'A'}])
        args, kwargs = self.session.request.call_args
        self.assertEqual(args, ('GET', 'http://api.test/api/contracts'))
        sleep.assert_not_called()

    def test_server_error_is_retried(self, sleep):
        """Test 5xx responses are retried with backoff."""
        self.session.request.side_effect = [response(503), response(body={'ok': True})]

        self.assertEqual(self.connection.get('api/contracts'), {'ok': True})
        self.assertEqual(self.session.request.call_count, 2)
        sleep.assert_called_once_with(0.5)

    def test_connection_errors_exhaust_retries(self, sleep):
        """Test repeated connection errors raise after the last attempt."""
        self.session.request.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(StoreError) as ctx:
            self.connection.get('api/contracts')

        self.assertIsNone(ctx.exception.status_code)
        self.assertEqual(self.session.request.call_count, 3)
        self.assertEqual([c.args[0] for c in sleep.call_args_list], [0.5, 1.0])

    def test_client_error_not_retried(self, sleep):
        """Test 4xx responses fail immediately with the store's message."""
        self.session.request.return_value = response(404, body={'error': 'Contract not found'})

        with self.assertRaises(StoreError) as ctx:
            self.connection.delete('api/contracts', params={'id': 'x'})

        self.assertEqual(ctx.exception.status_code, 404)
        self.assertIn('Contract not found', str(ctx.exception))
        self.assertEqual(self.session.request.call_count, 1)

    def test_empty_response(self, sleep):
        """Test an empty body decodes to None."""
        self.session.request.return_value = response(content=b'')

        self.assertIsNone(self.connection.delete('api/contracts', params={'id': 'x'}))

    def test_malformed_response(self, sleep):
        """Test a non-JSON body raises StoreError."""
        resp = response(content=b'<html>')
        resp.json.side_effect = ValueError('no json')
        self.session.request.return_value = resp

        with self.assertRaises(StoreError):
            self.connection.get('api/contracts')

    def test_context_manager_closes_session(self, sleep):
        """Test leaving the context closes the session."""
        with self.connection as conn:
            self.assertIs(conn, self.connection)

        self.session.close.assert_called_once()


if __name__ == '__main__':
    unittest.main()
