"""
Web3 utilities for offchain resolution.

Read-only chain access:
- Provider setup from settings (get_w3)
- Raw eth_call with CCIP-Read auto-following disabled (Web3Chain.call)
- Tagged call outcomes: a revert is a value here, not an exception

Transport failures (RPC unreachable, bad responses) are not outcomes and
propagate unchanged.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from web3 import Web3
from web3.exceptions import ContractLogicError, OffchainLookup

logger = logging.getLogger('resolver')


# ─────────────────────────────────────────────────────────────────────────────
# Call outcomes
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CallSuccess:
  """The call returned normally."""
  data: bytes


@dataclass(frozen=True)
class OffchainLookupSignal:
  """
  The call reverted with EIP-3668 OffchainLookup.

  OffchainLookup(address sender, string[] urls, bytes callData,
                 bytes4 callbackFunction, bytes extraData)
  """
  sender: str
  urls: tuple[str, ...]
  call_data: bytes
  callback_function: bytes
  extra_data: bytes

  @classmethod
  def from_payload(cls, payload: dict) -> 'OffchainLookupSignal':
    """Build a signal from the payload web3.py attaches to OffchainLookup."""
    return cls(
      sender=Web3.to_checksum_address(payload['sender']),
      urls=tuple(payload['urls']),
      call_data=bytes(payload['callData']),
      callback_function=bytes(payload['callbackFunction']),
      extra_data=bytes(payload['extraData']),
    )

  def as_dict(self) -> dict:
    return {
      'sender': self.sender,
      'urls': list(self.urls),
      'callData': Web3.to_hex(self.call_data),
      'callbackFunction': Web3.to_hex(self.callback_function),
      'extraData': Web3.to_hex(self.extra_data),
    }


@dataclass(frozen=True)
class CallReverted:
  """The call reverted with anything other than OffchainLookup."""
  reason: str


CallOutcome = CallSuccess | OffchainLookupSignal | CallReverted


# ─────────────────────────────────────────────────────────────────────────────
# Web3 provider helpers
# ─────────────────────────────────────────────────────────────────────────────

def get_w3(rpc_url: str = '') -> Web3:
  """
  Get a Web3 instance for the given RPC URL, or JSON_RPC_URL from settings.
  """
  rpc_url = rpc_url or settings.JSON_RPC_URL
  if not rpc_url:
    raise ValueError('JSON_RPC_URL not configured in settings')

  return Web3(Web3.HTTPProvider(
    rpc_url,
    request_kwargs={'timeout': settings.RPC_TIMEOUT},
  ))


class Web3Chain:
  """
  Raw eth_call access to a chain, one independent instance per resolution.
  """

  def __init__(self, w3: Web3):
    self.w3 = w3

  def call(self, to: str, data: bytes) -> CallOutcome:
    """
    Call `to` with `data` at the latest block.

    Args:
      to: Contract address
      data: Full call data, selector included

    Returns:
      CallSuccess, OffchainLookupSignal or CallReverted
    """
    tx = {'to': Web3.to_checksum_address(to), 'data': Web3.to_hex(data)}
    try:
      result = self.w3.eth.call(tx, ccip_read_enabled=False)
    except OffchainLookup as e:
      return OffchainLookupSignal.from_payload(e.payload)
    except ContractLogicError as e:
      logger.debug(f'eth_call to {to} reverted: {e}')
      return CallReverted(reason=e.message or str(e))
    return CallSuccess(bytes(result))
