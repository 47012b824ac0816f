from collections import deque
from typing import Deque, Iterable, List, Optional, Tuple, Union

from kaleidoscope.io.io import IOBase

ScriptItem = Union[bytes, BaseException]


class ScriptedIO(IOBase):
  """IO for device-free testing. Plays back a script of reads and records every call.

  Each item of `reads` is what one call to :meth:`read` returns: bytes are returned, exceptions
  are raised. Once the script is exhausted every read times out. :meth:`bytes_to_read` reports the
  size of the next scripted chunk, after reporting nothing for the first `idle_polls` polls.
  """

  def __init__(self, reads: Optional[Iterable[ScriptItem]] = None, idle_polls: int = 0):
    self.reads: Deque[ScriptItem] = deque(reads or [])
    self.idle_polls = idle_polls
    self.calls: List[Tuple] = []
    self.written = bytearray()

  def __repr__(self):
    return f"<ScriptedIO {len(self.reads)} reads left>"

  async def setup(self):
    self.calls.append(("setup",))

  async def stop(self):
    self.calls.append(("stop",))

  async def write(self, data: bytes):
    self.calls.append(("write", data))
    self.written.extend(data)

  async def read(self, num_bytes: int = 1) -> bytes:
    self.calls.append(("read", num_bytes))
    if len(self.reads) == 0:
      raise TimeoutError("script exhausted")
    item = self.reads.popleft()
    if isinstance(item, BaseException):
      raise item
    return item[:num_bytes]

  async def bytes_to_read(self) -> int:
    self.calls.append(("bytes_to_read",))
    if self.idle_polls > 0:
      self.idle_polls -= 1
      return 0
    if len(self.reads) == 0 or isinstance(self.reads[0], BaseException):
      return 0
    return len(self.reads[0])

  async def assert_ready_signal(self):
    self.calls.append(("dtr",))

  async def assert_read_signal(self):
    self.calls.append(("rts",))
