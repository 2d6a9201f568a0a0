"""
Test fixtures: an in-memory chain with an ENS registry and an offchain
resolver, and a gateway that signs its answers the way the resolver checks.
"""
import time

import pytest
from eth_abi import decode
from eth_account import Account
from web3 import Web3

from resolver.utils import dnsname
from resolver.utils.ens_codec import (
  RESOLVE_SELECTOR,
  RESOLVE_WITH_PROOF_SELECTOR,
  RESOLVER_SELECTOR,
  ZERO_ADDRESS,
  decode_addr_call,
  decode_gateway_response,
  decode_resolve_call,
  encode_addr_result,
  encode_bytes_result,
  encode_gateway_response,
  ens_namehash,
)
from resolver.utils.web3_utils import CallReverted, CallSuccess, OffchainLookupSignal

REGISTRY = '0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e'
RESOLVER = '0x1111111111111111111111111111111111111111'
ALICE = '0x2222222222222222222222222222222222222222'
SIGNER_KEY = '0x' + '4c' * 32
GATEWAY_URL = 'https://gw.example/{sender}/{data}'


def sign_response(contract_address: str, request_data: bytes, result: bytes, expires: int) -> bytes:
  """
  Sign a gateway answer the way the resolver's resolveWithProof checks it:
    keccak256(abi.encodePacked(0x1900, resolver, expires,
                               keccak256(request), keccak256(result)))
  """
  message_hash = Web3.solidity_keccak(
    ['bytes2', 'address', 'uint64', 'bytes32', 'bytes32'],
    [
      b'\x19\x00',
      Web3.to_checksum_address(contract_address),
      expires,
      Web3.keccak(request_data),
      Web3.keccak(result),
    ],
  )
  return bytes(Account.from_key(SIGNER_KEY).unsafe_sign_hash(message_hash).signature)


class FakeChain:
  """Dispatches eth_calls to per-address handlers and records them."""

  def __init__(self):
    self.handlers = {}
    self.calls = []

  def register(self, address, handler):
    self.handlers[address] = handler

  def call(self, to, data):
    self.calls.append((to, data))
    return self.handlers[to](data)

  def calls_to(self, address):
    return [data for to, data in self.calls if to == address]


class FakeRegistry:
  def __init__(self, resolvers=None):
    self.resolvers = {ens_namehash(name): addr for name, addr in (resolvers or {}).items()}

  def __call__(self, data):
    assert data[:4] == RESOLVER_SELECTOR
    (node,) = decode(['bytes32'], data[4:])
    return CallSuccess(encode_addr_result(self.resolvers.get(node, ZERO_ADDRESS)))


class FakeOffchainResolver:
  """Reverts resolve() with OffchainLookup, verifies answers in resolveWithProof."""

  def __init__(self, address=RESOLVER, urls=(GATEWAY_URL,)):
    self.address = address
    self.urls = tuple(urls)

  def __call__(self, data):
    selector = data[:4]
    if selector == RESOLVE_SELECTOR:
      return OffchainLookupSignal(
        sender=self.address,
        urls=self.urls,
        call_data=data,
        callback_function=RESOLVE_WITH_PROOF_SELECTOR,
        extra_data=data,
      )
    if selector == RESOLVE_WITH_PROOF_SELECTOR:
      response, extra_data = decode(['bytes', 'bytes'], data[4:])
      result, expires, sig = decode_gateway_response(response)
      if expires < time.time():
        return CallReverted('execution reverted: SignatureVerifier: Signature expired')
      if sig != sign_response(self.address, extra_data, result, expires):
        return CallReverted('execution reverted: SignatureVerifier: Invalid sigature')
      return CallSuccess(encode_bytes_result(result))
    return CallReverted('execution reverted')


class FakeGateway:
  """Answers addr(bytes32) lookups for the names it knows."""

  def __init__(self, records=None, ttl=300):
    self.records = {ens_namehash(name): addr for name, addr in (records or {}).items()}
    self.ttl = ttl
    self.requests = []

  def __call__(self, url, timeout=None):
    self.requests.append(url)
    sender, data_hex = url.split('/')[-2:]
    request_data = bytes.fromhex(data_hex[2:])
    name, inner = decode_resolve_call(request_data)
    node = decode_addr_call(inner)
    assert ens_namehash(dnsname.decode(name)) == node

    result = encode_addr_result(self.records.get(node, ZERO_ADDRESS))
    expires = int(time.time()) + self.ttl
    sig = sign_response(sender, request_data, result, expires)
    return {'data': Web3.to_hex(encode_gateway_response(result, expires, sig))}


@pytest.fixture
def chain():
  chain = FakeChain()
  chain.register(REGISTRY, FakeRegistry({'eth': RESOLVER}))
  chain.register(RESOLVER, FakeOffchainResolver())
  return chain


@pytest.fixture
def gateway():
  return FakeGateway({'alice.eth': ALICE})
