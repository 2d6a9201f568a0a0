"""
Unit tests for the CCIP-Read gateway client in resolver.utils.gateway
"""
import io
import urllib.error
from unittest.mock import patch

import pytest
from eth_abi import encode

from resolver.errors import GatewayRequestError, MalformedResponseError
from resolver.utils.ens_codec import encode_gateway_response
from resolver.utils.gateway import build_request_url, fetch_json, parse_gateway_response

SENDER = '0x1111111111111111111111111111111111111111'


class TestBuildRequestUrl:
  """Test suite for build_request_url."""

  def test_substitutes_sender_and_data(self):
    url = build_request_url('https://gw.example/{sender}/{data}.json', SENDER, b'\x90\x61\xb9\x23')
    assert url == f'https://gw.example/{SENDER}/0x9061b923.json'

  def test_template_without_placeholders(self):
    assert build_request_url('https://gw.example/', SENDER, b'\x01') == 'https://gw.example/'


class TestFetchJson:
  """Test suite for fetch_json with urlopen mocked."""

  @patch('resolver.utils.gateway.urllib.request.urlopen')
  def test_returns_parsed_json(self, mock_urlopen):
    mock_urlopen.return_value.__enter__.return_value.read.return_value = b'{"data": "0x"}'

    assert fetch_json('https://gw.example/x', timeout=5) == {'data': '0x'}
    request = mock_urlopen.call_args[0][0]
    assert request.full_url == 'https://gw.example/x'
    assert request.get_method() == 'GET'
    assert mock_urlopen.call_args[1]['timeout'] == 5

  @patch('resolver.utils.gateway.urllib.request.urlopen')
  def test_non_json_body(self, mock_urlopen):
    mock_urlopen.return_value.__enter__.return_value.read.return_value = b'<html>oops</html>'

    with pytest.raises(GatewayRequestError):
      fetch_json('https://gw.example/x')

  @patch('resolver.utils.gateway.urllib.request.urlopen')
  def test_http_error(self, mock_urlopen):
    mock_urlopen.side_effect = urllib.error.HTTPError(
      'https://gw.example/x', 404, 'Not Found', None, io.BytesIO(b'{"message": "unknown name"}')
    )

    with pytest.raises(GatewayRequestError, match='404'):
      fetch_json('https://gw.example/x')

  @patch('resolver.utils.gateway.urllib.request.urlopen')
  def test_connection_error(self, mock_urlopen):
    mock_urlopen.side_effect = urllib.error.URLError('connection refused')

    with pytest.raises(GatewayRequestError, match='connection refused'):
      fetch_json('https://gw.example/x')


class TestParseGatewayResponse:
  """Test suite for parse_gateway_response."""

  def test_valid_response(self):
    raw = encode_gateway_response(b'\x01' * 32, 1700000000, b'\x02' * 65)

    response = parse_gateway_response({'data': '0x' + raw.hex()})

    assert response.data == raw
    assert response.result == b'\x01' * 32
    assert response.expires == 1700000000
    assert response.sig == b'\x02' * 65

  @pytest.mark.parametrize('body', [
    {},
    {'data': None},
    {'data': 1234},
    {'data': 'not hex'},
    {'data': '0xzz'},
    {'data': '0x123'},
    ['0x00'],
  ])
  def test_data_must_be_hex(self, body):
    with pytest.raises(MalformedResponseError) as exc_info:
      parse_gateway_response(body)
    assert exc_info.value.field == 'data'

  def test_data_not_a_response_tuple(self):
    with pytest.raises(MalformedResponseError):
      parse_gateway_response({'data': '0x1234'})

  @pytest.mark.parametrize('suffix', ['\n', ' ', '\t'])
  def test_trailing_whitespace_is_not_hex(self, suffix):
    raw = encode_gateway_response(b'\x01' * 32, 1700000000, b'\x02' * 65)

    with pytest.raises(MalformedResponseError) as exc_info:
      parse_gateway_response({'data': '0x' + raw.hex() + suffix})
    assert exc_info.value.field == 'data'

  def test_expires_out_of_range_names_the_field(self):
    raw = encode(['bytes', 'uint256', 'bytes'], [b'\x01', 2 ** 64, b'\x02'])

    with pytest.raises(MalformedResponseError) as exc_info:
      parse_gateway_response({'data': '0x' + raw.hex()})
    assert exc_info.value.field == 'expires'
