"""
ENS registry lookups.

Finds the resolver responsible for a name by walking from the name itself up
through its ancestors, so a more specific registration always wins.
"""
import logging

from resolver.errors import ResolvingEntryNotFoundError, UnexpectedRevertError
from resolver.utils import dnsname
from resolver.utils.ens_codec import (
  ZERO_ADDRESS,
  decode_resolver_result,
  encode_resolver_call,
  ens_namehash,
)
from resolver.utils.web3_utils import CallSuccess

logger = logging.getLogger('resolver')


def find_resolver(chain, registry_address: str, name: str) -> str:
  """
  Return the resolver address for the first suffix of `name` that has one.

  'alice.eth' queries 'alice.eth' then 'eth', stopping at the first
  non-zero resolver.

  Args:
    chain: Object with a `call(to, data) -> CallOutcome` method
    registry_address: ENS registry contract address
    name: Dotted ENS name

  Returns:
    Checksummed resolver address
  """
  for subname in dnsname.suffixes(name):
    outcome = chain.call(registry_address, encode_resolver_call(ens_namehash(subname)))
    if not isinstance(outcome, CallSuccess):
      raise UnexpectedRevertError(
        f'registry lookup for {subname} did not return an address: {outcome}'
      )

    resolver_address = decode_resolver_result(outcome.data)
    if resolver_address != ZERO_ADDRESS:
      logger.info(f'Resolver for {subname}: found - {resolver_address}')
      return resolver_address
    logger.info(f'Resolver for {subname}: not found')

  raise ResolvingEntryNotFoundError(f'could not find a resolver for {name!r}')
