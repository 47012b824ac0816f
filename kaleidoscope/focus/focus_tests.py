import unittest
from unittest.mock import MagicMock, patch

from kaleidoscope.config.config import Config
from kaleidoscope.focus.focus import FOCUS_BAUDRATE, Focus
from kaleidoscope.io.scripted import ScriptedIO
from kaleidoscope.io.serial import Serial


class TestFocus(unittest.IsolatedAsyncioTestCase):
  """Tests for the Focus session, driven by a scripted device."""

  async def test_request(self):
    io = ScriptedIO([b"Kaleidoscope/v1.99\r\n.\r\n", TimeoutError()])
    async with Focus(io=io, write_delay=0) as focus:
      self.assertEqual(await focus.request("version"), "Kaleidoscope/v1.99")
    self.assertEqual(bytes(io.written), b"version\n")
    self.assertEqual(io.calls[0], ("setup",))
    self.assertEqual(io.calls[-1], ("stop",))

  async def test_request_with_args(self):
    io = ScriptedIO([b".\r\n"])
    async with Focus(io=io, write_delay=0) as focus:
      self.assertEqual(await focus.request("led.at", ["1", "2", "red"]), "")
    self.assertEqual(bytes(io.written), b"led.at 1 2 red\n")

  async def test_write_phase_before_read_phase(self):
    io = ScriptedIO([b"0\r\n.\r\n"])
    async with Focus(io=io, chunk_size=4, write_delay=0) as focus:
      await focus.request("led.mode", ["2"])
    actions = [c[0] for c in io.calls if c[0] not in ("setup", "stop")]
    last_write = max(i for i, a in enumerate(actions) if a == "write")
    self.assertEqual(actions[0], "dtr")
    self.assertEqual(actions[last_write + 1], "rts")
    self.assertNotIn("write", actions[last_write + 1 :])

  async def test_flush(self):
    io = ScriptedIO([b"stale\r\n.\r\n", TimeoutError(), b"1\r\n.\r\n", TimeoutError()])
    async with Focus(io=io, write_delay=0) as focus:
      self.assertIsNone(await focus.flush())
      self.assertEqual(await focus.request("led.mode"), "1")
    self.assertEqual(bytes(io.written), b" \nled.mode\n")

  async def test_request_with_progress(self):
    io = ScriptedIO([b"ok\r\n.\r\n"])
    on_length = MagicMock()
    on_progress = MagicMock()
    async with Focus(io=io, chunk_size=5, write_delay=0) as focus:
      reply = await focus.request_with_progress(
        "led.at", ["1", "2", "red"], on_length=on_length, on_progress=on_progress
      )
    self.assertEqual(reply, "ok")
    on_length.assert_called_once_with(15)
    self.assertEqual([c.args[0] for c in on_progress.call_args_list], [5, 5, 5])

  async def test_send_and_read_separately(self):
    io = ScriptedIO([b"a\r\nb\r\n.\r\n"])
    async with Focus(io=io, write_delay=0) as focus:
      await focus.send_request("palette")
      self.assertEqual(await focus.read_reply(), "a\nb")

  async def test_read_error_propagates(self):
    io = ScriptedIO([b"partial", OSError("device unplugged")])
    async with Focus(io=io, write_delay=0) as focus:
      with self.assertRaises(OSError):
        await focus.request("version")

  async def test_requires_setup(self):
    focus = Focus(io=ScriptedIO(), write_delay=0)
    with self.assertRaises(RuntimeError):
      await focus.request("version")

  async def test_settings(self):
    focus = Focus(io=ScriptedIO([b".\r\n"]))
    self.assertEqual(focus.chunk_size, 32)
    self.assertEqual(focus.write_delay, 500)
    focus.chunk_size = 64
    focus.write_delay = 0
    self.assertEqual((focus.chunk_size, focus.write_delay), (64, 0))

    with self.assertRaises(ValueError):
      focus.chunk_size = 0
    with self.assertRaises(ValueError):
      focus.write_delay = -1

    async with focus:
      await focus.request("version")
      with self.assertRaises(RuntimeError):
        focus.chunk_size = 16
      with self.assertRaises(RuntimeError):
        focus.write_delay = 10
    self.assertEqual((focus.chunk_size, focus.write_delay), (64, 0))

  def test_from_port(self):
    with patch("kaleidoscope.focus.focus.Serial", wraps=Serial) as serial_cls:
      focus = Focus.from_port("/dev/ttyACM0", chunk_size=16, write_delay=100)
    serial_cls.assert_called_once_with(port="/dev/ttyACM0", baudrate=FOCUS_BAUDRATE, timeout=0.1)
    self.assertIsInstance(focus.io, Serial)
    self.assertEqual((focus.chunk_size, focus.write_delay), (16, 100))

  def test_from_config(self):
    cfg = Config(focus=Config.Focus(chunk_size=64, write_delay=50, timeout=0.25, baudrate=115200))
    focus = Focus.from_config("/dev/ttyACM1", cfg)
    self.assertEqual((focus.chunk_size, focus.write_delay), (64, 50))
    self.assertEqual(focus.io.serialize()["baudrate"], 115200)
    self.assertEqual(focus.io.serialize()["timeout"], 0.25)

  def test_instances(self):
    focus = Focus(io=ScriptedIO())
    self.assertIn(focus, Focus.get_all_instances())
