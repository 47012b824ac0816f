import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import kaleidoscope.io.capture
from kaleidoscope.focus.focus import Focus
from kaleidoscope.io import (
  SerialValidator,
  ValidationError,
  end_validation,
  start_capture,
  stop_capture,
  validate,
)
from kaleidoscope.io.serial_tests import FakePySerial
from kaleidoscope.io.validation_utils import align_sequences


class TestCaptureAndValidate(unittest.IsolatedAsyncioTestCase):
  def setUp(self):
    self.capture_file = Path(tempfile.mkdtemp()) / "focus_capture.json"
    self.fake = FakePySerial([b"Kaleidoscope/v1.99\r\n", b".\r\n"])
    patch("kaleidoscope.io.serial.serial.Serial", return_value=self.fake).start()
    self.addCleanup(patch.stopall)
    self.addCleanup(setattr, kaleidoscope.io.capture, "_capture_or_validation_active", False)

  async def _capture(self) -> Focus:
    focus = Focus.from_port("/dev/ttyACM0", write_delay=0)
    start_capture(self.capture_file)
    async with focus:
      self.assertEqual(await focus.request("version"), "Kaleidoscope/v1.99")
    stop_capture()
    return focus

  async def test_capture_file(self):
    await self._capture()
    with open(self.capture_file, "r", encoding="utf-8") as f:
      data = json.load(f)
    actions = [c["action"] for c in data["commands"]]
    self.assertEqual(actions[:3], ["dtr", "write", "rts"])
    self.assertEqual(data["commands"][1]["data"], "version\n")
    self.assertEqual(actions[-1], "read")
    self.assertEqual(data["commands"][-1]["data"], "")  # the timeout that ended the reply

  async def test_validate(self):
    focus = await self._capture()

    validate(self.capture_file)
    self.assertIsInstance(focus.io, SerialValidator)
    async with focus:
      self.assertEqual(await focus.request("version"), "Kaleidoscope/v1.99")
    end_validation()

  async def test_validate_mismatch(self):
    focus = await self._capture()

    validate(self.capture_file)
    async with focus:
      with self.assertRaises(ValidationError):
        await focus.request("layer.state")

  async def test_validate_not_done(self):
    await self._capture()

    validate(self.capture_file)
    with self.assertRaises(ValidationError):
      end_validation()

  async def test_new_io_during_capture(self):
    start_capture(self.capture_file)
    with self.assertRaises(RuntimeError):
      Focus.from_port("/dev/ttyACM0")
    stop_capture()


class TestAlignSequences(unittest.TestCase):
  def test_align(self):
    with patch("builtins.print"):
      expected, actual, markers = align_sequences("led.mode 2\n", "led.mod 3\n")
    self.assertEqual(expected.replace("-", ""), "led.mode 2\n")
    self.assertEqual(actual.replace("-", ""), "led.mod 3\n")
    self.assertEqual(len(expected), len(actual))
    self.assertEqual(len(markers), len(expected))
    self.assertEqual(markers.count("^"), 2)
