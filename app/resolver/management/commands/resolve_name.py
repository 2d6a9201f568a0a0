"""
Resolve an ENS name through its offchain (CCIP-Read) resolver.

Usage: python manage.py resolve_name alice.eth [--rpc-url URL] [--registry ADDR]
"""
import logging

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from web3 import Web3
from web3.exceptions import Web3Exception

from resolver.errors import ResolutionError
from resolver.offchain import resolve_address
from resolver.utils.web3_utils import Web3Chain, get_w3

logger = logging.getLogger('resolver')


class Command(BaseCommand):
  help = 'Resolve the address of an ENS name via its offchain resolver, verifying the answer on-chain.'

  def add_arguments(self, parser):
    parser.add_argument('name', help='ENS name to resolve, e.g. alice.eth')
    parser.add_argument('--rpc-url', default='', help='JSON-RPC endpoint (default: JSON_RPC_URL)')
    parser.add_argument('--registry', default='', help='ENS registry address (default: REGISTRY_ADDRESS)')

  def handle(self, *args, **options):
    name = options['name'].strip()
    if not name:
      raise CommandError('name not provided')

    rpc_url = options['rpc_url'] or settings.JSON_RPC_URL
    if not rpc_url:
      raise CommandError('JSON_RPC_URL is required')

    registry = options['registry'] or settings.REGISTRY_ADDRESS
    if not registry:
      raise CommandError('REGISTRY_ADDRESS is required')
    if not Web3.is_address(registry):
      raise CommandError(f'invalid registry address: {registry}')

    self.stdout.write(f'Looking up {name}...')
    chain = Web3Chain(get_w3(rpc_url))

    try:
      resolution = resolve_address(chain, registry, name)
    except ResolutionError as e:
      logger.error(f'Resolution of {name} failed: {e}')
      raise CommandError(str(e)) from e
    except (Web3Exception, OSError) as e:
      logger.error(f'Resolution of {name} failed talking to the chain: {e}')
      raise CommandError(f'RPC request failed: {e}') from e

    self.stdout.write(f'Resolver: {resolution.resolver}')
    self.stdout.write(f'Gateway answer: {resolution.gateway_address} '
                      f'(expires {resolution.expires_text})')
    self.stdout.write(self.style.SUCCESS(f'Verified result: {resolution.address}'))
