import unittest
from types import SimpleNamespace
from unittest.mock import patch

from kaleidoscope.focus.discovery import (
  KNOWN_DEVICES,
  DeviceDescriptor,
  discover_device,
  find_device,
)


def _port(device, vid=None, pid=None):
  return SimpleNamespace(device=device, vid=vid, pid=pid)


class TestFindDevice(unittest.TestCase):
  def setUp(self):
    self.ports = [
      _port("/dev/ttyS0"),
      _port("/dev/ttyUSB0", 0x0403, 0x6001),
      _port("/dev/ttyACM0", 0x3496, 0x0006),
      _port("/dev/ttyACM1", 0x1209, 0x2301),
    ]

  def test_first_match_in_port_order(self):
    self.assertEqual(find_device(self.ports, KNOWN_DEVICES), "/dev/ttyACM0")

  def test_injected_descriptors(self):
    descriptors = [DeviceDescriptor(0x0403, 0x6001, "FTDI adapter")]
    self.assertEqual(find_device(self.ports, descriptors), "/dev/ttyUSB0")

  def test_no_match(self):
    self.assertIsNone(find_device(self.ports[:2], KNOWN_DEVICES))
    self.assertIsNone(find_device([], KNOWN_DEVICES))
    self.assertIsNone(find_device(self.ports, []))


class TestDiscoverDevice(unittest.TestCase):
  def test_discover(self):
    ports = [_port("/dev/ttyACM3", 0x1209, 0x2303)]
    with patch("kaleidoscope.focus.discovery.serial.tools.list_ports.comports", return_value=ports):
      self.assertEqual(discover_device(), "/dev/ttyACM3")

  def test_not_found(self):
    with patch("kaleidoscope.focus.discovery.serial.tools.list_ports.comports", return_value=[]):
      with self.assertRaises(RuntimeError) as ctx:
        discover_device()
    self.assertIn("Keyboardio Model 100 (3496:0006)", str(ctx.exception))
