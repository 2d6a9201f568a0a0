"""
CCIP-Read gateway client.

Builds the EIP-3668 request URL, fetches it, and validates the
{"data": "0x..."} response.
"""
import json
import logging
import re
import urllib.error
import urllib.request
from dataclasses import dataclass

from web3 import Web3

from resolver.errors import GatewayRequestError, MalformedResponseError
from resolver.utils.ens_codec import decode_gateway_response

logger = logging.getLogger('resolver')

_HEX_BYTES = re.compile(r'0x(?:[0-9a-fA-F]{2})*')


@dataclass(frozen=True)
class GatewayResponse:
  """A gateway answer, decoded but not yet verified."""
  data: bytes
  result: bytes
  expires: int
  sig: bytes


def build_request_url(template: str, sender: str, call_data: bytes) -> str:
  """
  Fill in a gateway URL template.

  Example:
    'https://gw.example/{sender}/{data}.json'
      → 'https://gw.example/0xAbC.../0x9061b923....json'
  """
  return (
    template
    .replace('{sender}', sender, 1)
    .replace('{data}', Web3.to_hex(call_data), 1)
  )


def fetch_json(url: str, timeout: float | None = None) -> dict | list:
  """
  GET a URL and parse the body as JSON.

  Args:
    url: Fully substituted request URL
    timeout: Socket timeout in seconds (None waits indefinitely)

  Returns:
    Parsed JSON response
  """
  req = urllib.request.Request(url, headers={'Accept': 'application/json'}, method='GET')

  try:
    with urllib.request.urlopen(req, timeout=timeout) as resp:
      body = resp.read().decode('utf-8')
  except urllib.error.HTTPError as e:
    error_body = e.read().decode('utf-8', errors='replace')
    logger.error(f'Gateway error: {e.code} {error_body}')
    raise GatewayRequestError(f'Gateway returned {e.code}: {error_body}') from e
  except urllib.error.URLError as e:
    logger.error(f'Gateway connection error: {e.reason}')
    raise GatewayRequestError(f'Gateway connection failed: {e.reason}') from e
  except (OSError, UnicodeDecodeError) as e:
    raise GatewayRequestError(f'Gateway request failed: {e}') from e

  try:
    return json.loads(body)
  except json.JSONDecodeError as e:
    raise GatewayRequestError(f'Gateway response is not JSON: {body[:200]!r}') from e


def parse_gateway_response(body) -> GatewayResponse:
  """
  Validate a gateway JSON body and decode its `data` field.

  Raises:
    MalformedResponseError: naming `data`, `result`, `expires` or `sig`
  """
  data = body.get('data') if isinstance(body, dict) else None
  if not isinstance(data, str) or not _HEX_BYTES.fullmatch(data):
    raise MalformedResponseError('data', 'response did not contain a hex string')

  raw = bytes.fromhex(data[2:])
  result, expires, sig = decode_gateway_response(raw)
  return GatewayResponse(data=raw, result=result, expires=expires, sig=sig)
