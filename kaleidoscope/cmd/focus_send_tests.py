import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import AsyncMock, patch

import serial  # type: ignore

from kaleidoscope.cmd.focus_send import get_parser, main, send
from kaleidoscope.io.serial_tests import FakePySerial


class TestParser(unittest.TestCase):
  def test_defaults(self):
    opts = get_parser().parse_args(["led.at", "1", "2", "red"])
    self.assertIsNone(opts.device)
    self.assertEqual(opts.command, "led.at")
    self.assertEqual(opts.args, ["1", "2", "red"])
    self.assertEqual(opts.chunk_size, 32)
    self.assertEqual(opts.write_delay, 500)

  def test_options(self):
    opts = get_parser().parse_args(
      ["-d", "/dev/ttyACM1", "--chunk-size", "64", "--write-delay", "50", "version"]
    )
    self.assertEqual(opts.device, "/dev/ttyACM1")
    self.assertEqual((opts.chunk_size, opts.write_delay), (64, 50))
    self.assertEqual(opts.args, [])


class TestSend(unittest.IsolatedAsyncioTestCase):
  async def test_flush_then_request(self):
    fake = FakePySerial()
    fake_write = fake.write

    def _write(data):
      # the device answers every request once it is complete
      if bytes(fake.written + data).endswith(b"\n"):
        fake.incoming.append(b"v1.0\r\n.\r\n" if data.startswith(b"version") else b".\r\n")
      return fake_write(data)

    fake.write = _write
    with patch("kaleidoscope.io.serial.serial.Serial", return_value=fake):
      reply = await send("/dev/ttyACM0", "version", [], chunk_size=32, write_delay=0, timeout=0.1)
    self.assertEqual(reply, "v1.0")
    self.assertEqual(bytes(fake.written), b" \nversion\n")
    self.assertFalse(fake.is_open)


class TestMain(unittest.TestCase):
  def test_prints_reply(self):
    stdout = io.StringIO()
    with patch("kaleidoscope.cmd.focus_send.send", new=AsyncMock(return_value="a\nb")) as send_mock:
      with redirect_stdout(stdout):
        self.assertEqual(main(["-d", "/dev/ttyACM0", "--write-delay", "0", "layer.state"]), 0)
    self.assertEqual(stdout.getvalue(), "a\nb\n")
    self.assertEqual(send_mock.await_args.args, ("/dev/ttyACM0", "layer.state", []))
    self.assertEqual(send_mock.await_args.kwargs["write_delay"], 0)

  def test_discovers_device(self):
    with patch("kaleidoscope.cmd.focus_send.discover_device", return_value="/dev/ttyACM5"), \
      patch("kaleidoscope.cmd.focus_send.send", new=AsyncMock(return_value="")) as send_mock, \
      redirect_stdout(io.StringIO()):
      self.assertEqual(main(["version"]), 0)
    self.assertEqual(send_mock.await_args.args[0], "/dev/ttyACM5")

  def test_no_device(self):
    stderr = io.StringIO()
    with patch(
      "kaleidoscope.cmd.focus_send.discover_device", side_effect=RuntimeError("No Focus device")
    ), redirect_stderr(stderr):
      self.assertEqual(main(["version"]), 1)
    self.assertIn("No Focus device", stderr.getvalue())

  def test_io_error(self):
    stderr = io.StringIO()
    error = serial.SerialException("could not open port /dev/ttyACM0")
    with patch("kaleidoscope.cmd.focus_send.send", new=AsyncMock(side_effect=error)), \
      redirect_stderr(stderr):
      self.assertEqual(main(["-d", "/dev/ttyACM0", "version"]), 1)
    self.assertIn("could not open port", stderr.getvalue())

  def test_bad_arguments(self):
    with redirect_stderr(io.StringIO()):
      self.assertEqual(main([]), 2)
