"""
ENS codec utilities for CCIP-Read resolution.

Handles ENS namehash computation and ABI encode/decode for the fixed set of
calls a resolution makes: the registry lookup, addr(bytes32), the ENSIP-10
resolve(bytes,bytes) wrapper, the EIP-3668 gateway response and the
resolveWithProof callback.
"""
from ens.exceptions import InvalidName
from ens.utils import normalize_name
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from resolver.errors import InvalidNameError, MalformedResponseError
from resolver.utils import dnsname


ZERO_ADDRESS = '0x' + '00' * 20
EMPTY_NODE = b'\x00' * 32


def function_selector(signature: str) -> bytes:
  """Return the 4-byte selector for a canonical function signature."""
  return bytes(Web3.keccak(text=signature)[:4])


# ─────────────────────────────────────────────────────────────────────────────
# Selectors (computed once at import)
# ─────────────────────────────────────────────────────────────────────────────

RESOLVER_SELECTOR = function_selector('resolver(bytes32)')                # 0x0178b8bf
ADDR_SELECTOR = function_selector('addr(bytes32)')                        # 0x3b3b57de
RESOLVE_SELECTOR = function_selector('resolve(bytes,bytes)')              # 0x9061b923
RESOLVE_WITH_PROOF_SELECTOR = function_selector('resolveWithProof(bytes,bytes)')

# Response format: (bytes result, uint64 expires, bytes sig)
GATEWAY_RESPONSE_TYPES = ['bytes', 'uint64', 'bytes']


# ─────────────────────────────────────────────────────────────────────────────
# ENS Namehash
# ─────────────────────────────────────────────────────────────────────────────

def ens_namehash(name: str) -> bytes:
  """
  Compute the ENS namehash for a dotted name.

  The name is normalised (ENSIP-15) before hashing.

  namehash("") = 0x0000...0000
  namehash("eth") = keccak256(namehash("") + keccak256("eth"))
  namehash("alice.eth") = keccak256(namehash("eth") + keccak256("alice"))

  Args:
    name: Dotted ENS name (e.g., "alice.eth")

  Returns:
    32-byte namehash
  """
  node = EMPTY_NODE
  if not name.strip('.'):
    return node
  try:
    normalized = normalize_name(name.strip('.'))
  except InvalidName as e:
    raise InvalidNameError(f'cannot normalise {name!r}: {e}') from e
  for label in reversed(dnsname.labels(normalized)):
    label_hash = Web3.keccak(text=label)
    node = bytes(Web3.keccak(node + label_hash))
  return node


# ─────────────────────────────────────────────────────────────────────────────
# Internal helpers
# ─────────────────────────────────────────────────────────────────────────────

def _decode(types: list[str], data: bytes, field: str) -> tuple:
  try:
    return decode(types, data)
  except (DecodingError, OverflowError, ValueError) as e:
    raise MalformedResponseError(field, f'not ABI-encoded ({", ".join(types)}): {e}') from e


def _strip_selector(data: bytes, selector: bytes, field: str) -> bytes:
  if data[:4] != selector:
    raise MalformedResponseError(
      field, f'expected selector 0x{selector.hex()}, got 0x{data[:4].hex()}'
    )
  return data[4:]


# ─────────────────────────────────────────────────────────────────────────────
# Registry: resolver(bytes32) → address
# ─────────────────────────────────────────────────────────────────────────────

def encode_resolver_call(node: bytes) -> bytes:
  return RESOLVER_SELECTOR + encode(['bytes32'], [node])


def decode_resolver_result(data: bytes) -> str:
  (address,) = _decode(['address'], data, 'resolver')
  return Web3.to_checksum_address(address)


# ─────────────────────────────────────────────────────────────────────────────
# addr(bytes32) → address
# ─────────────────────────────────────────────────────────────────────────────

def encode_addr_call(node: bytes) -> bytes:
  """ABI-encode addr(bytes32 node), selector included."""
  return ADDR_SELECTOR + encode(['bytes32'], [node])


def decode_addr_call(data: bytes) -> bytes:
  """Decode addr(bytes32 node) → returns the node."""
  (node,) = _decode(['bytes32'], _strip_selector(data, ADDR_SELECTOR, 'addr'), 'addr')
  return node


def encode_addr_result(address: str) -> bytes:
  """ABI-encode an address as returned by addr(bytes32)."""
  return encode(['address'], [Web3.to_checksum_address(address)])


def decode_addr_result(data: bytes) -> str:
  """Decode the result of addr(bytes32) into a checksummed address."""
  (address,) = _decode(['address'], data, 'result')
  return Web3.to_checksum_address(address)


# ─────────────────────────────────────────────────────────────────────────────
# resolve(bytes name, bytes data) → bytes
# ─────────────────────────────────────────────────────────────────────────────

def encode_resolve_call(dns_name: bytes, inner_call: bytes) -> bytes:
  """ABI-encode the ENSIP-10 resolve(bytes name, bytes data) call."""
  return RESOLVE_SELECTOR + encode(['bytes', 'bytes'], [dns_name, inner_call])


def decode_resolve_call(data: bytes) -> tuple[bytes, bytes]:
  """Decode resolve(bytes,bytes) call data → (dns_name, inner_call)."""
  name, inner = _decode(
    ['bytes', 'bytes'], _strip_selector(data, RESOLVE_SELECTOR, 'callData'), 'callData'
  )
  return name, inner


def encode_bytes_result(value: bytes) -> bytes:
  """ABI-encode a single `bytes` return value."""
  return encode(['bytes'], [value])


def decode_bytes_result(data: bytes, field: str = 'result') -> bytes:
  """Unwrap a single ABI-encoded `bytes` return value."""
  (value,) = _decode(['bytes'], data, field)
  return value


# ─────────────────────────────────────────────────────────────────────────────
# Gateway response: (bytes result, uint64 expires, bytes sig)
# ─────────────────────────────────────────────────────────────────────────────

def encode_gateway_response(result: bytes, expires: int, signature: bytes) -> bytes:
  """
  ABI-encode the full gateway response for the resolveWithProof callback.
  Format: (bytes result, uint64 expires, bytes signature)
  """
  return encode(GATEWAY_RESPONSE_TYPES, [result, expires, signature])


def _decode_bytes_at(data: bytes, offset: int, field: str) -> bytes:
  if offset > len(data):
    raise MalformedResponseError(field, f'offset {offset} is past the end of the data')
  # Re-point a single `bytes` head at the field's tail.
  (value,) = _decode(['bytes'], encode(['uint256'], [32]) + data[offset:], field)
  return value


def decode_gateway_response(data: bytes) -> tuple[bytes, int, bytes]:
  """
  Decode a gateway response → (result, expires, sig).

  Fields are decoded one at a time so an error names the field at fault.
  """
  result_offset, expires, sig_offset = _decode(['uint256'] * 3, data[:96], 'data')
  if expires >= 2 ** 64:
    raise MalformedResponseError('expires', f'{expires} does not fit in uint64')
  result = _decode_bytes_at(data, result_offset, 'result')
  sig = _decode_bytes_at(data, sig_offset, 'sig')
  return result, expires, sig


# ─────────────────────────────────────────────────────────────────────────────
# resolveWithProof(bytes response, bytes extraData) → bytes
# ─────────────────────────────────────────────────────────────────────────────

def encode_resolve_with_proof_call(response: bytes, extra_data: bytes) -> bytes:
  return RESOLVE_WITH_PROOF_SELECTOR + encode(['bytes', 'bytes'], [response, extra_data])
