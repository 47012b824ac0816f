import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import serial.tools.list_ports  # type: ignore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceDescriptor:
  """USB vendor and product ID of a device that speaks Focus."""

  vendor_id: int
  product_id: int
  name: str = ""

  def __str__(self):
    return f"{self.name or 'device'} ({self.vendor_id:04x}:{self.product_id:04x})"


KNOWN_DEVICES: Sequence[DeviceDescriptor] = (
  DeviceDescriptor(0x1209, 0x2301, "Keyboardio Model 01"),
  DeviceDescriptor(0x3496, 0x0006, "Keyboardio Model 100"),
  DeviceDescriptor(0x1209, 0x2303, "Keyboardio Atreus"),
)


def find_device(ports: Iterable, descriptors: Iterable[DeviceDescriptor]) -> Optional[str]:
  """Return the first port whose USB IDs match one of `descriptors`, or None.

  Args:
    ports: port descriptions as returned by ``serial.tools.list_ports.comports()``; anything with
      ``device``, ``vid`` and ``pid`` attributes will do. Ports that are not USB have no IDs.
    descriptors: the devices to look for.
  """

  wanted = {(d.vendor_id, d.product_id) for d in descriptors}
  for port in ports:
    if port.vid is not None and (port.vid, port.pid) in wanted:
      return str(port.device)
  return None


def discover_device(descriptors: Iterable[DeviceDescriptor] = KNOWN_DEVICES) -> str:
  """Find the serial port of an attached Focus device.

  Raises:
    RuntimeError: If no matching device is attached.
  """

  descriptors = list(descriptors)
  port = find_device(serial.tools.list_ports.comports(), descriptors)
  if port is None:
    raise RuntimeError(
      "No Focus device found. Looked for: " + ", ".join(str(d) for d in descriptors)
    )
  logger.info("Found Focus device at %s", port)
  return port
