import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

import serial  # type: ignore

from kaleidoscope.io.capture import (
  CaptureReader,
  Command,
  capturer,
  get_capture_or_validation_active,
)
from kaleidoscope.io.errors import ValidationError
from kaleidoscope.io.io import IOBase
from kaleidoscope.io.validation_utils import LOG_LEVEL_IO, align_sequences

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Bytes are stored in capture files as latin-1 text, which maps every byte to one character.
CAPTURE_ENCODING = "latin-1"


@dataclass
class SerialCommand(Command):
  data: str

  def __init__(self, device_id: str, action: str, data: str, module: str = "serial"):
    super().__init__(module=module, device_id=device_id, action=action)
    self.data = data


class Serial(IOBase):
  """Thin wrapper around serial.Serial that logs and captures all IO.

  The pyserial handle is only ever used from a single worker thread, so calls made through this
  object reach the port in the order they were awaited.
  """

  def __init__(
    self,
    port: str,
    baudrate: int = 9600,
    bytesize: int = 8,  # serial.EIGHTBITS
    parity: str = "N",  # serial.PARITY_NONE
    stopbits: int = 1,  # serial.STOPBITS_ONE,
    write_timeout: Optional[float] = None,
    timeout: float = 0.1,
  ):
    self._port = port
    self.baudrate = baudrate
    self.bytesize = bytesize
    self.parity = parity
    self.stopbits = stopbits
    self._ser: Optional[serial.Serial] = None
    self._executor: Optional[ThreadPoolExecutor] = None
    self.write_timeout = write_timeout
    self.timeout = timeout

    if get_capture_or_validation_active():
      raise RuntimeError("Cannot create a new Serial object while capture or validation is active")

  @property
  def port(self) -> str:
    return self._port

  async def setup(self):
    loop = asyncio.get_running_loop()
    self._executor = ThreadPoolExecutor(max_workers=1)

    def _open_serial() -> serial.Serial:
      return serial.Serial(
        port=self._port,
        baudrate=self.baudrate,
        bytesize=self.bytesize,
        parity=self.parity,
        stopbits=self.stopbits,
        write_timeout=self.write_timeout,
        timeout=self.timeout,
      )

    try:
      self._ser = await loop.run_in_executor(self._executor, _open_serial)
    except serial.SerialException:
      logger.error("Could not open %s, is it in use by a different process?", self._port)
      self._executor.shutdown(wait=True)
      self._executor = None
      raise

  async def stop(self):
    if self._ser is not None and self._ser.is_open:
      await self._run(self._ser.close)
    self._ser = None
    if self._executor is not None:
      self._executor.shutdown(wait=True)
      self._executor = None

  async def _run(self, func: Callable[..., T], *args: Any) -> T:
    if self._executor is None:
      raise RuntimeError("Call setup() first.")
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(self._executor, func, *args)

  def _record(self, action: str, data: str = ""):
    capturer.record(SerialCommand(device_id=self._port, action=action, data=data))

  async def write(self, data: bytes):
    assert self._ser is not None, "forgot to call setup?"
    await self._run(self._ser.write, data)
    logger.log(LOG_LEVEL_IO, "[%s] write %s", self._port, data)
    self._record("write", data.decode(CAPTURE_ENCODING))

  async def read(self, num_bytes: int = 1) -> bytes:
    """Read up to `num_bytes` bytes.

    Blocks for at most `timeout` seconds waiting for the first byte, then returns whatever is
    buffered (capped at `num_bytes`) without waiting for more.

    Raises:
      TimeoutError: if no byte arrived within `timeout`.
    """
    assert self._ser is not None, "forgot to call setup?"
    ser = self._ser

    def _read_available() -> bytes:
      return ser.read(min(max(ser.in_waiting, 1), num_bytes))

    data = await self._run(_read_available)
    logger.log(LOG_LEVEL_IO, "[%s] read %s", self._port, data)
    self._record("read", data.decode(CAPTURE_ENCODING))
    if len(data) == 0:
      raise TimeoutError(f"No data from {self._port} within {self.timeout}s")
    return bytes(data)

  async def bytes_to_read(self) -> int:
    assert self._ser is not None, "forgot to call setup?"
    ser = self._ser
    num_bytes = await self._run(lambda: ser.in_waiting)
    logger.log(LOG_LEVEL_IO, "[%s] bytes_to_read %d", self._port, num_bytes)
    self._record("bytes_to_read", str(num_bytes))
    return int(num_bytes)

  async def assert_ready_signal(self):
    assert self._ser is not None, "forgot to call setup?"
    ser = self._ser

    def _set_dtr():
      ser.dtr = True

    await self._run(_set_dtr)
    logger.log(LOG_LEVEL_IO, "[%s] dtr on", self._port)
    self._record("dtr")

  async def assert_read_signal(self):
    assert self._ser is not None, "forgot to call setup?"
    ser = self._ser

    def _set_rts():
      ser.rts = True

    await self._run(_set_rts)
    logger.log(LOG_LEVEL_IO, "[%s] rts on", self._port)
    self._record("rts")

  def serialize(self):
    return {
      "port": self._port,
      "baudrate": self.baudrate,
      "bytesize": self.bytesize,
      "parity": self.parity,
      "stopbits": self.stopbits,
      "write_timeout": self.write_timeout,
      "timeout": self.timeout,
    }

  @classmethod
  def deserialize(cls, data: dict) -> "Serial":
    return cls(
      port=data["port"],
      baudrate=data["baudrate"],
      bytesize=data["bytesize"],
      parity=data["parity"],
      stopbits=data["stopbits"],
      write_timeout=data["write_timeout"],
      timeout=data["timeout"],
    )


class SerialValidator(Serial):
  """Stands in for :class:`Serial`, checking every action against a capture file."""

  def __init__(
    self,
    cr: "CaptureReader",
    port: str,
    baudrate: int = 9600,
    bytesize: int = 8,  # serial.EIGHTBITS
    parity: str = "N",  # serial.PARITY_NONE
    stopbits: int = 1,  # serial.STOPBITS_ONE,
    write_timeout: Optional[float] = None,
    timeout: float = 0.1,
  ):
    super().__init__(
      port=port,
      baudrate=baudrate,
      bytesize=bytesize,
      parity=parity,
      stopbits=stopbits,
      write_timeout=write_timeout,
      timeout=timeout,
    )
    self.cr = cr

  def _next(self, action: str) -> SerialCommand:
    next_command = SerialCommand(**self.cr.next_command())
    if not (
      next_command.module == "serial"
      and next_command.device_id == self._port
      and next_command.action == action
    ):
      raise ValidationError(f"Next line is {next_command}, expected Serial {action}")
    return next_command

  async def setup(self):
    pass

  async def stop(self):
    pass

  async def write(self, data: bytes):
    next_command = self._next("write")
    if next_command.data != data.decode(CAPTURE_ENCODING):
      align_sequences(expected=next_command.data, actual=data.decode(CAPTURE_ENCODING))
      raise ValidationError("Data mismatch: difference was written to stdout.")

  async def read(self, num_bytes: int = 1) -> bytes:
    next_command = self._next("read")
    if len(next_command.data) > num_bytes:
      raise ValidationError(
        f"Captured read of {len(next_command.data)} bytes exceeds requested {num_bytes}"
      )
    if len(next_command.data) == 0:
      raise TimeoutError(f"No data from {self._port} within {self.timeout}s")
    return next_command.data.encode(CAPTURE_ENCODING)

  async def bytes_to_read(self) -> int:
    return int(self._next("bytes_to_read").data)

  async def assert_ready_signal(self):
    self._next("dtr")

  async def assert_read_signal(self):
    self._next("rts")
