"""Send a single Focus command to a device and print the reply.

Usage::

  focus-send [-d PATH] [--chunk-size N] [--write-delay MS] [--timeout S] command [args ...]

Without ``-d``, the first attached Keyboardio device is used.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Sequence

import serial  # type: ignore

from kaleidoscope import CONFIG
from kaleidoscope.config import Config
from kaleidoscope.focus import Focus, discover_device
from kaleidoscope.io.validation_utils import LOG_LEVEL_IO

logger = logging.getLogger(__name__)


def get_parser(cfg: Config = CONFIG) -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(
    prog="focus-send",
    description="Send a Focus command to a Kaleidoscope device and print the reply.",
  )

  parser.add_argument(
    "-d", "--device", metavar="PATH", type=str, default=None,
    help="The serial port of the device. Discovered by USB ID if omitted.",
  )
  parser.add_argument(
    "--chunk-size", type=int, default=cfg.focus.chunk_size,
    help="Maximum number of bytes per write. (default: %(default)s)",
  )
  parser.add_argument(
    "--write-delay", metavar="MS", type=int, default=cfg.focus.write_delay,
    help="Pause after every write and between reply polls, in ms. (default: %(default)s)",
  )
  parser.add_argument(
    "--timeout", metavar="S", type=float, default=cfg.focus.timeout,
    help="Read timeout in seconds; the reply ends when the device is quiet this long. "
    "(default: %(default)s)",
  )
  parser.add_argument(
    "--reply-timeout", metavar="S", type=float, default=None,
    help="Give up if an exchange takes longer than this many seconds.",
  )
  parser.add_argument(
    "-v", "--verbose", action="count", default=0,
    help="Log to stderr. Repeat to include raw IO.",
  )

  parser.add_argument("command", type=str, help="The Focus command, e.g. 'version'.")
  parser.add_argument("args", nargs="*", type=str, help="Arguments to the command.")

  return parser


def _setup_stderr_logging(verbosity: int):
  if verbosity == 0:
    return
  level = logging.DEBUG if verbosity == 1 else LOG_LEVEL_IO
  handler = logging.StreamHandler(sys.stderr)
  handler.setFormatter(logging.Formatter("%(name)s - %(levelname)s - %(message)s"))
  kaleidoscope_logger = logging.getLogger("kaleidoscope")
  kaleidoscope_logger.addHandler(handler)
  kaleidoscope_logger.setLevel(level)


async def send(
  port: str,
  command: str,
  args: Sequence[str],
  chunk_size: int,
  write_delay: int,
  timeout: float,
  reply_timeout: Optional[float] = None,
  baudrate: int = CONFIG.focus.baudrate,
) -> str:
  """Flush the device, send one command and return the reply."""
  focus = Focus.from_port(
    port, chunk_size=chunk_size, write_delay=write_delay, baudrate=baudrate, timeout=timeout
  )
  async with focus:
    await asyncio.wait_for(focus.flush(), timeout=reply_timeout)
    return await asyncio.wait_for(focus.request(command, args), timeout=reply_timeout)


def main(argv: Optional[List[str]] = None) -> int:
  parser = get_parser()
  try:
    opts = parser.parse_args(argv)
  except SystemExit as err:
    return err.code if isinstance(err.code, int) else 1

  _setup_stderr_logging(opts.verbose)

  try:
    port = opts.device if opts.device is not None else discover_device()
    reply = asyncio.run(
      send(
        port,
        opts.command,
        opts.args,
        chunk_size=opts.chunk_size,
        write_delay=opts.write_delay,
        timeout=opts.timeout,
        reply_timeout=opts.reply_timeout,
      )
    )
  except asyncio.TimeoutError:
    print(f"No reply within {opts.reply_timeout}s.", file=sys.stderr)
    return 1
  except (serial.SerialException, OSError, RuntimeError, ValueError) as e:
    logger.debug("focus-send failed", exc_info=True)
    print(f"Error: {e}", file=sys.stderr)
    return 1

  print(reply)
  return 0


if __name__ == "__main__":
  sys.exit(main(sys.argv[1:]))
