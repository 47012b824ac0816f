from __future__ import annotations

import functools
import logging
import sys
import weakref
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

from kaleidoscope.config.config import Config
from kaleidoscope.focus.reply import collect_reply, normalize_reply
from kaleidoscope.focus.request import (
  DEFAULT_CHUNK_SIZE,
  DEFAULT_WRITE_DELAY,
  LengthCallback,
  ProgressCallback,
  send_request,
)
from kaleidoscope.io.io import IOBase
from kaleidoscope.io.serial import Serial

if sys.version_info < (3, 10):
  from typing_extensions import ParamSpec
else:
  from typing import ParamSpec

logger = logging.getLogger(__name__)

FOCUS_BAUDRATE = 9600
DEFAULT_READ_TIMEOUT = 0.1  # s

FLUSH_COMMAND = " "

_P = ParamSpec("_P")
_R = TypeVar("_R", bound=Awaitable[Any])


def need_setup_finished(func: Callable[_P, _R]) -> Callable[_P, _R]:
  """Decorator for methods that require the session to be set up.

  Raises:
    RuntimeError: If the session is not set up.
  """

  @functools.wraps(func)
  async def wrapper(*args, **kwargs):
    assert isinstance(args[0], Focus), "The first argument must be a Focus session."
    self = args[0]

    if not self.setup_finished:
      raise RuntimeError("The setup has not finished. See `setup`.")
    return await func(*args, **kwargs)

  return wrapper  # type: ignore[return-value]


class Focus:
  """A Focus session with a single device.

  The session owns its IO exclusively. Requests are strictly sequential: a request is fully
  written, including the pause after the last chunk, before its reply is read.

  Example::

    async with Focus.from_port("/dev/ttyACM0") as focus:
      await focus.flush()
      print(await focus.request("led.mode", ["2"]))
  """

  _instances: weakref.WeakSet["Focus"] = weakref.WeakSet()

  def __init__(
    self,
    io: IOBase,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    write_delay: int = DEFAULT_WRITE_DELAY,
  ):
    self.io = io
    self._setup_finished = False
    self._requests_started = False
    self._chunk_size = DEFAULT_CHUNK_SIZE
    self._write_delay = DEFAULT_WRITE_DELAY
    self.chunk_size = chunk_size
    self.write_delay = write_delay
    self._instances.add(self)

  @classmethod
  def from_port(
    cls,
    port: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    write_delay: int = DEFAULT_WRITE_DELAY,
    baudrate: int = FOCUS_BAUDRATE,
    timeout: float = DEFAULT_READ_TIMEOUT,
  ) -> "Focus":
    """Create a session over the serial port at `port`.

    Args:
      timeout: read timeout in seconds. A reply ends at the first read that receives nothing
        for this long, so it must be longer than any pause the device makes while replying.
    """
    io = Serial(port=port, baudrate=baudrate, timeout=timeout)
    return cls(io=io, chunk_size=chunk_size, write_delay=write_delay)

  @classmethod
  def from_config(cls, port: str, cfg: Config) -> "Focus":
    return cls.from_port(
      port=port,
      chunk_size=cfg.focus.chunk_size,
      write_delay=cfg.focus.write_delay,
      baudrate=cfg.focus.baudrate,
      timeout=cfg.focus.timeout,
    )

  @classmethod
  def get_all_instances(cls):
    return cls._instances

  def __repr__(self):
    return f"<Focus io={self.io!r} chunk_size={self._chunk_size} write_delay={self._write_delay}>"

  def _check_settable(self, name: str):
    if self._requests_started:
      raise RuntimeError(f"Cannot change {name} after the first request of a session.")

  @property
  def chunk_size(self) -> int:
    """Maximum number of bytes per write."""
    return self._chunk_size

  @chunk_size.setter
  def chunk_size(self, chunk_size: int):
    self._check_settable("chunk_size")
    if chunk_size < 1:
      raise ValueError(f"Chunk size must be at least 1, got {chunk_size}")
    self._chunk_size = chunk_size

  @property
  def write_delay(self) -> int:
    """Pause after every write and between reply polls, in milliseconds."""
    return self._write_delay

  @write_delay.setter
  def write_delay(self, write_delay: int):
    self._check_settable("write_delay")
    if write_delay < 0:
      raise ValueError(f"Write delay cannot be negative, got {write_delay}")
    self._write_delay = write_delay

  @property
  def setup_finished(self) -> bool:
    return self._setup_finished

  async def setup(self):
    await self.io.setup()
    self._setup_finished = True

  @need_setup_finished
  async def stop(self):
    await self.io.stop()
    self._setup_finished = False

  async def __aenter__(self):
    await self.setup()
    return self

  async def __aexit__(self, exc_type, exc_value, traceback):
    await self.stop()

  @need_setup_finished
  async def send_request(
    self,
    command: str,
    args: Optional[Sequence[str]] = None,
    on_length: Optional[LengthCallback] = None,
    on_progress: Optional[ProgressCallback] = None,
  ) -> None:
    """Write a request without reading the reply."""
    self._requests_started = True
    await send_request(
      self.io,
      command,
      args,
      chunk_size=self._chunk_size,
      write_delay=self._write_delay,
      on_length=on_length,
      on_progress=on_progress,
    )

  @need_setup_finished
  async def read_reply(self) -> str:
    """Wait for the device to reply and return the normalized reply."""
    raw = await collect_reply(self.io, self._write_delay)
    return normalize_reply(raw)

  async def flush(self) -> None:
    """Send the empty command and discard whatever comes back.

    Call this before the first real request to clear anything a previous, possibly interrupted,
    exchange left behind.
    """
    await self.send_request(FLUSH_COMMAND)
    reply = await self.read_reply()
    logger.debug("flushed %r", reply)

  async def request(self, command: str, args: Optional[Sequence[str]] = None) -> str:
    """Send a command and return the reply.

    Args:
      command: the command name, e.g. ``"version"``.
      args: argument tokens, e.g. ``["1", "2", "red"]``.

    Returns:
      The reply lines joined with ``\\n``, without the ``.`` end marker or blank lines. An empty
      string if the device sent nothing else.
    """
    return await self.request_with_progress(command, args)

  async def request_with_progress(
    self,
    command: str,
    args: Optional[Sequence[str]] = None,
    on_length: Optional[LengthCallback] = None,
    on_progress: Optional[ProgressCallback] = None,
  ) -> str:
    """Like :meth:`request`, reporting write progress.

    Args:
      on_length: called once with the number of bytes that will be written.
      on_progress: called with the size of every chunk as it is written. Nothing is reported
        while the reply is read, its length is not known in advance.
    """
    await self.send_request(command, args, on_length=on_length, on_progress=on_progress)
    return await self.read_reply()
