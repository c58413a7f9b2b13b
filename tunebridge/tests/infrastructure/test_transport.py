import pytest
from unittest.mock import Mock

import requests

from tunebridge.domain.entities import Provider
from tunebridge.domain.errors import TransportFault
from tunebridge.infrastructure.transport import HttpTransport


def _response(status=200, json_data=None, text='', json_error=False):
    response = Mock()
    response.status_code = status
    response.text = text
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_data
    return response


class TestHttpTransport:
    """Tests for the shared HTTP transport."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session = Mock()
        self.session.headers = {}
        self.transport = HttpTransport(timeout=3.0, session=self.session)

    def test_sets_default_headers(self):
        assert self.session.headers['Accept'] == 'application/json'
        assert self.session.headers['User-Agent'].startswith('tunebridge/')

    def test_get_json_success(self):
        self.session.get.return_value = _response(json_data={'code': 200, 'data': []})

        payload = self.transport.get_json('https://gw.example/wydg/', Provider.SBY, {'msg': 'x'})

        assert payload == {'code': 200, 'data': []}
        self.session.get.assert_called_once_with('https://gw.example/wydg/', params={'msg': 'x'}, timeout=3.0)

    def test_timeout_becomes_transport_fault(self):
        self.session.get.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TransportFault) as exc_info:
            self.transport.get_json('https://gw.example/', Provider.XF)

        assert exc_info.value.code == 504
        assert exc_info.value.provider == 'xf'

    def test_connection_error_becomes_transport_fault(self):
        self.session.get.side_effect = requests.ConnectionError("refused")

        with pytest.raises(TransportFault) as exc_info:
            self.transport.get_json('https://gw.example/', Provider.LZ)

        assert exc_info.value.code == 503
        assert exc_info.value.provider == 'lz'

    def test_other_request_errors_become_transport_fault(self):
        self.session.get.side_effect = requests.TooManyRedirects("loop")

        with pytest.raises(TransportFault) as exc_info:
            self.transport.get_json('https://gw.example/', Provider.CGG)

        assert exc_info.value.code == 500

    def test_non_success_status_uses_body_message(self):
        self.session.get.return_value = _response(status=429, json_data={'msg': 'slow down'})

        with pytest.raises(TransportFault) as exc_info:
            self.transport.get_json('https://gw.example/', Provider.XZG)

        assert exc_info.value.code == 429
        assert exc_info.value.message == 'slow down'

    def test_non_success_status_without_body(self):
        self.session.get.return_value = _response(status=500, json_error=True)

        with pytest.raises(TransportFault) as exc_info:
            self.transport.get_json('https://gw.example/', Provider.XZG)

        assert exc_info.value.code == 500
        assert exc_info.value.message == 'HTTP 500'

    def test_body_with_bom_is_decoded(self):
        self.session.get.return_value = _response(json_error=True, text='\ufeff {"code": 0, "data": []}')

        assert self.transport.get_json('https://gw.example/', Provider.LZ) == {'code': 0, 'data': []}

    def test_malformed_body(self):
        self.session.get.return_value = _response(json_error=True, text='<html>busy</html>')

        with pytest.raises(TransportFault) as exc_info:
            self.transport.get_json('https://gw.example/', Provider.SBY)

        assert exc_info.value.code == 502

    def test_context_manager_closes_session(self):
        with self.transport as transport:
            assert transport is self.transport
        self.session.close.assert_called_once()
