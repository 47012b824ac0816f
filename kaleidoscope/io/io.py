from abc import ABC, abstractmethod


class IOBase(ABC):
  """A byte-stream link to a Focus device.

  :meth:`read` raises the builtin :class:`TimeoutError` when no byte arrived within the read
  timeout. That is how the end of a reply is detected, so implementations must not raise it for
  any other reason.
  """

  @abstractmethod
  async def setup(self):
    pass

  @abstractmethod
  async def stop(self):
    pass

  @abstractmethod
  async def write(self, data: bytes):
    pass

  @abstractmethod
  async def read(self, num_bytes: int = 1) -> bytes:
    pass

  @abstractmethod
  async def bytes_to_read(self) -> int:
    """Number of bytes received but not yet read. Does not block."""

  @abstractmethod
  async def assert_ready_signal(self):
    """Tell the device the host is about to transmit (DTR)."""

  @abstractmethod
  async def assert_read_signal(self):
    """Tell the device the host is ready to receive (RTS)."""

  def serialize(self):
    return {}
