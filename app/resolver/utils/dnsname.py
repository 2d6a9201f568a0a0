"""
DNS wire-format encoding for ENS names.

ENSIP-10 resolvers receive the name as a sequence of length-prefixed labels,
terminated by a zero byte.

Example: 'alice.eth' → b'\\x05alice\\x03eth\\x00'
"""
from resolver.errors import InvalidNameError, LabelTooLongError

MAX_LABEL_LENGTH = 63


def labels(name: str) -> list[str]:
  """
  Split a dotted name into its labels, most specific first.

  Leading and trailing dots are ignored. The empty name has no labels.
  """
  trimmed = name.strip('.')
  if not trimmed:
    return []
  parts = trimmed.split('.')
  if '' in parts:
    raise InvalidNameError(f'empty label in name {name!r}')
  return parts


def suffixes(name: str) -> list[str]:
  """
  List the name and each of its ancestors, down to a single label.

  Example: 'a.b.c' → ['a.b.c', 'b.c', 'c']
  """
  parts = labels(name)
  return ['.'.join(parts[i:]) for i in range(len(parts))]


def encode(name: str) -> bytes:
  """
  Encode a dotted name into DNS wire format.

  For a name with N >= 1 labels the result is exactly two bytes longer than
  the UTF-8 encoded (trimmed) name: N length bytes and the root byte take
  the place of the N - 1 dots.

  Raises:
    LabelTooLongError: if any label is longer than 63 bytes
  """
  encoded = bytearray()
  for label in labels(name):
    raw = label.encode('utf-8')
    if len(raw) > MAX_LABEL_LENGTH:
      raise LabelTooLongError(label)
    encoded.append(len(raw))
    encoded += raw
  encoded.append(0)
  return bytes(encoded)


def decode(dns_name: bytes) -> str:
  """
  Decode a DNS-encoded name into a human-readable dotted string.

  Example: b'\\x05alice\\x03eth\\x00' → 'alice.eth'
  """
  parts = []
  i = 0
  while i < len(dns_name):
    length = dns_name[i]
    if length == 0:
      return '.'.join(parts)
    i += 1
    if i + length > len(dns_name):
      raise InvalidNameError('truncated label in encoded name')
    parts.append(dns_name[i:i + length].decode('utf-8'))
    i += length
  raise InvalidNameError('encoded name is missing the root label')
