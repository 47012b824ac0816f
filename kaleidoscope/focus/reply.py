"""Collection and normalization of Focus replies.

Replies carry no length and no terminator the host can rely on: the device writes its lines, a
line containing only ``.``, and then goes quiet. The end of a reply is therefore the first read that
times out. If the read timeout of the link is shorter than the gaps the device leaves while writing,
a reply gets cut short; nothing here can detect that.
"""

import asyncio
import enum
import logging

from kaleidoscope.io.io import IOBase

logger = logging.getLogger(__name__)

READ_BUFFER_SIZE = 1024
SENTINEL = "."


class CollectorState(enum.Enum):
  IDLE = "idle"
  AWAITING_FIRST_BYTE = "awaiting_first_byte"
  ACCUMULATING = "accumulating"
  DONE = "done"
  FAILED = "failed"


class ReplyCollector:
  """Reads one raw reply from the device.

  The collector moves through :class:`CollectorState`:

  - ``IDLE`` until :meth:`collect` is called,
  - ``AWAITING_FIRST_BYTE`` while polling for the start of the reply. There is no deadline here, a
    device that never answers keeps the collector waiting until the caller cancels it,
  - ``ACCUMULATING`` once data arrived, for as long as reads return data,
  - ``DONE`` after the first read that times out, or
  - ``FAILED`` after any other error, in which case the bytes read so far are dropped.

  A collector reads a single reply and cannot be reused.
  """

  def __init__(self, io: IOBase, write_delay: int):
    self.io = io
    self.write_delay = write_delay
    self._state = CollectorState.IDLE
    self._buffer = bytearray()

  @property
  def state(self) -> CollectorState:
    return self._state

  def _transition(self, state: CollectorState):
    logger.debug("reply collector: %s -> %s", self._state.value, state.value)
    self._state = state

  async def _sleep(self):
    await asyncio.sleep(self.write_delay / 1000)

  async def collect(self) -> bytes:
    if self._state is not CollectorState.IDLE:
      raise RuntimeError(f"Reply collector already used (state: {self._state.value})")

    try:
      await self.io.assert_read_signal()

      self._transition(CollectorState.AWAITING_FIRST_BYTE)
      while await self.io.bytes_to_read() == 0:
        await self._sleep()

      self._transition(CollectorState.ACCUMULATING)
      while True:
        try:
          data = await self.io.read(READ_BUFFER_SIZE)
        except TimeoutError:
          break
        self._buffer.extend(data)
        await self._sleep()
    except BaseException:
      self._buffer.clear()
      self._transition(CollectorState.FAILED)
      raise

    self._transition(CollectorState.DONE)
    reply = bytes(self._buffer)
    self._buffer.clear()
    logger.debug("received %r", reply)
    return reply


async def collect_reply(io: IOBase, write_delay: int) -> bytes:
  """Wait for a reply and read it until the link goes quiet. Returns the raw bytes."""
  return await ReplyCollector(io, write_delay).collect()


def normalize_reply(raw: bytes) -> str:
  """Turn a raw reply into text.

  Invalid UTF-8 is replaced rather than rejected. Blank lines and the ``.`` end marker are dropped
  and the remaining lines are joined with ``\\n``, without a trailing newline.

  >>> normalize_reply(b"line1\\nline2\\r\\n.\\n\\n")
  'line1\\nline2'
  """

  text = raw.decode("utf-8", errors="replace")
  lines = []
  for line in text.split("\n"):
    if line.endswith("\r"):
      line = line[:-1]
    if line == "" or line == SENTINEL:
      continue
    lines.append(line)
  return "\n".join(lines)
