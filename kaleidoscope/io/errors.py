class ValidationError(Exception):
  """Raised when the IO performed does not match a capture file."""
