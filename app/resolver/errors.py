"""
Errors raised while resolving a name through an offchain lookup.

Every failure is terminal for the run: nothing here is retried.
"""


class ResolutionError(Exception):
  """Base class for all resolution failures."""
  pass


class InvalidNameError(ResolutionError):
  """Raised when a name cannot be split, encoded or normalised."""
  pass


class LabelTooLongError(InvalidNameError):
  """Raised when a label is longer than 63 bytes."""

  def __init__(self, label: str):
    self.label = label
    super().__init__(
      f'label too long: {label!r} is {len(label.encode("utf-8"))} bytes (max 63)'
    )


class ResolvingEntryNotFoundError(ResolutionError):
  """Raised when no suffix of the name has a resolver in the registry."""
  pass


class UnexpectedRevertError(ResolutionError):
  """Raised when a call did not produce the expected OffchainLookup revert."""
  pass


class CallDataMismatchError(ResolutionError):
  """Raised when the OffchainLookup callData differs from the call we sent."""
  pass


class NoGatewayUrlError(ResolutionError):
  """Raised when the OffchainLookup carries no gateway URL."""
  pass


class GatewayRequestError(ResolutionError):
  """Raised when the gateway request fails or returns something other than JSON."""
  pass


class MalformedResponseError(ResolutionError):
  """Raised when a response does not have the expected shape."""

  def __init__(self, field: str, message: str):
    self.field = field
    super().__init__(f'{field}: {message}')


class VerificationFailedError(ResolutionError):
  """Raised when resolveWithProof reverts."""

  def __init__(self, reason: str):
    self.reason = reason
    super().__init__(f'verification failed: {reason}')
