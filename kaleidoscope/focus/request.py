"""Encoding and paced transmission of Focus requests.

A request is one line of text: the command and its arguments separated by single spaces and
terminated by a newline. The firmware on the other end has a small UART receive buffer, so the line
is written in small chunks with a pause after every chunk.
"""

import asyncio
import logging
from typing import Callable, Iterator, Optional, Sequence

from kaleidoscope.io.io import IOBase

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 32
DEFAULT_WRITE_DELAY = 500  # ms

LengthCallback = Callable[[int], None]
ProgressCallback = Callable[[int], None]


def build_frame(command: str, args: Optional[Sequence[str]] = None) -> bytes:
  """Build the wire frame for a command.

  Args:
    command: the command name, e.g. ``"led.mode"``. A single space is the empty command used to
      flush the device.
    args: argument tokens, sent in order.

  Returns:
    The UTF-8 encoded frame, e.g. ``b"led.mode 2\\n"``.
  """

  if command == "":
    raise ValueError("Command cannot be empty.")
  tokens = [command, *(args or [])]
  for token in tokens:
    if "\n" in token:
      raise ValueError(f"Command and arguments cannot contain newlines, got {token!r}")
  return (" ".join(tokens) + "\n").encode("utf-8")


def iter_chunks(frame: bytes, chunk_size: int) -> Iterator[bytes]:
  """Split a frame into consecutive slices of at most `chunk_size` bytes."""

  if chunk_size < 1:
    raise ValueError(f"Chunk size must be at least 1, got {chunk_size}")
  for start in range(0, len(frame), chunk_size):
    yield frame[start : start + chunk_size]


async def send_request(
  io: IOBase,
  command: str,
  args: Optional[Sequence[str]] = None,
  chunk_size: int = DEFAULT_CHUNK_SIZE,
  write_delay: int = DEFAULT_WRITE_DELAY,
  on_length: Optional[LengthCallback] = None,
  on_progress: Optional[ProgressCallback] = None,
) -> None:
  """Send a command to the device.

  The ready signal is asserted before anything is written. Every chunk, including the last one, is
  followed by a `write_delay` ms pause so that the device has drained its input buffer before the
  reply is read.

  Args:
    io: the link to the device.
    command: the command name.
    args: argument tokens.
    chunk_size: maximum number of bytes per write.
    write_delay: pause after every write, in milliseconds.
    on_length: called once with the total frame length before anything is written.
    on_progress: called with the length of each chunk, just before it is written.
  """

  frame = build_frame(command, args)
  chunks = list(iter_chunks(frame, chunk_size))
  logger.debug("sending %r in %d chunk(s)", frame, len(chunks))

  await io.assert_ready_signal()

  if on_length is not None:
    on_length(len(frame))

  for chunk in chunks:
    if on_progress is not None:
      on_progress(len(chunk))
    await io.write(chunk)
    await asyncio.sleep(write_delay / 1000)
