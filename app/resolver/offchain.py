"""
Offchain (CCIP-Read) address resolution.

Runs the full EIP-3668 flow for addr(bytes32):

1. Find the resolver for the name in the ENS registry.
2. Call resolve(name, addr(node)) and expect an OffchainLookup revert.
3. Fetch the answer from the first gateway URL.
4. Submit the answer to resolveWithProof and trust only what it returns.

Each step depends on the one before; any failure aborts the run.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from django.conf import settings
from web3 import Web3

from resolver.errors import (
  CallDataMismatchError,
  NoGatewayUrlError,
  UnexpectedRevertError,
  VerificationFailedError,
)
from resolver.utils import dnsname
from resolver.utils.ens_codec import (
  decode_addr_result,
  decode_bytes_result,
  encode_addr_call,
  encode_resolve_call,
  encode_resolve_with_proof_call,
  ens_namehash,
)
from resolver.utils.gateway import build_request_url, fetch_json, parse_gateway_response
from resolver.utils.registry import find_resolver
from resolver.utils.web3_utils import CallSuccess, OffchainLookupSignal

logger = logging.getLogger('resolver')


@dataclass(frozen=True)
class Resolution:
  """
  Result of an offchain resolution.

  `address` is the verified value. `gateway_address`, `expires` and `sig` are
  what the gateway claimed before verification.
  """
  name: str
  resolver: str
  address: str
  gateway_address: str
  expires: int
  sig: bytes

  @property
  def expires_text(self) -> str:
    return format_expiry(self.expires)


def format_expiry(expires: int) -> str:
  """
  Render a unix timestamp as ISO 8601, or as the raw integer when it is past
  what datetime can represent.
  """
  try:
    return datetime.fromtimestamp(expires, tz=timezone.utc).isoformat()
  except (OverflowError, ValueError, OSError):
    return str(expires)


def resolve_address(chain, registry_address: str, name: str, fetch=fetch_json) -> Resolution:
  """
  Resolve `name` to an address through its offchain resolver.

  Args:
    chain: Object with a `call(to, data) -> CallOutcome` method
    registry_address: ENS registry contract address
    name: Dotted ENS name (e.g., "alice.eth")
    fetch: Callable `(url, timeout) -> JSON body` used for the gateway GET

  Returns:
    Resolution with the verified address
  """
  encoded_name = dnsname.encode(name)
  addr_call = encode_addr_call(ens_namehash(name))
  resolve_call = encode_resolve_call(encoded_name, addr_call)

  resolver_address = find_resolver(chain, registry_address, name)

  logger.info(f'Calling "resolve" on {resolver_address}...')
  signal = _expect_offchain_lookup(chain.call(resolver_address, resolve_call))
  logger.info(f'OffchainLookup received: {signal.as_dict()}')

  if signal.call_data != resolve_call:
    raise CallDataMismatchError(
      'the "callData" in the OffchainLookup error does not match the expected data'
    )
  if not signal.urls:
    raise NoGatewayUrlError('OffchainLookup did not include a gateway URL')

  request_url = build_request_url(signal.urls[0], resolver_address, resolve_call)
  logger.info(f'Requesting GET {request_url}...')
  body = fetch(request_url, settings.GATEWAY_TIMEOUT)
  logger.info(f'Response received: {body}')

  response = parse_gateway_response(body)
  gateway_address = decode_addr_result(response.result)
  logger.info(f'Decoded result: {gateway_address}')
  logger.info(f'Signature: {Web3.to_hex(response.sig)}')
  logger.info(f'Expires at: {format_expiry(response.expires)} ({response.expires})')
  # Freshness is checked by resolveWithProof, not here.
  if response.expires < time.time():
    logger.warning(f'Gateway response expired at {response.expires}')

  logger.info('Verifying the response with the resolver contract...')
  outcome = chain.call(
    resolver_address,
    encode_resolve_with_proof_call(response.data, resolve_call),
  )
  if not isinstance(outcome, CallSuccess):
    logger.info('Verification failed!')
    raise VerificationFailedError(_describe(outcome))

  verified_address = decode_addr_result(
    decode_bytes_result(outcome.data, 'resolveWithProof')
  )
  logger.info(f'Verified result: {verified_address}')

  return Resolution(
    name=name,
    resolver=resolver_address,
    address=verified_address,
    gateway_address=gateway_address,
    expires=response.expires,
    sig=response.sig,
  )


def _expect_offchain_lookup(outcome) -> OffchainLookupSignal:
  if isinstance(outcome, OffchainLookupSignal):
    return outcome
  if isinstance(outcome, CallSuccess):
    raise UnexpectedRevertError('expected OffchainLookup error, resolver answered directly')
  raise UnexpectedRevertError(f'expected OffchainLookup error, got: {outcome.reason}')


def _describe(outcome) -> str:
  if isinstance(outcome, OffchainLookupSignal):
    return 'resolveWithProof requested another OffchainLookup'
  return outcome.reason
