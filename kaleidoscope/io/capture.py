import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from kaleidoscope.__version__ import __version__
from kaleidoscope.io.errors import ValidationError

_capture_or_validation_active = False


def get_capture_or_validation_active() -> bool:
  return _capture_or_validation_active


@dataclass
class Command:
  module: str
  device_id: str
  action: str


class _CaptureWriter:
  """Streams IO commands into a JSON capture file while a capture is active."""

  def __init__(self):
    self._path = None
    self._tempfile = None
    self._num_commands = 0

  def start(self, path: Path):
    if self._tempfile is not None:
      raise RuntimeError("io capture already active")
    self._path = path
    self._num_commands = 0

    self._tempfile = tempfile.NamedTemporaryFile(delete=False)
    self._tempfile.write(b'{\n  "version": "')
    self._tempfile.write(__version__.encode("utf-8"))
    self._tempfile.write(b'",\n')
    self._tempfile.write(b'  "commands": [\n')
    self._tempfile.flush()

    global _capture_or_validation_active
    _capture_or_validation_active = True

  def record(self, command: Command):
    if self._tempfile is None:
      return
    encoded_command = json.dumps(command.__dict__, indent=2).encode()
    # indent to the level of the "commands" list
    encoded_command = b"    " + encoded_command.replace(b"\n", b"\n    ")
    if self._num_commands > 0:
      self._tempfile.write(b",\n")
    self._tempfile.write(encoded_command)
    self._tempfile.flush()
    self._num_commands += 1

  def stop(self):
    if self._path is None or self._tempfile is None:
      raise RuntimeError("io capture not active. Call start() first.")

    self._tempfile.write(b"\n  ]\n}\n")
    self._tempfile.flush()
    self._tempfile.seek(0)

    with open(self._path, "wb") as f:
      f.write(self._tempfile.read())
    self._tempfile.close()
    Path(self._tempfile.name).unlink()

    print(f"Capture file written to {self._path}")

    self._path = None
    self._tempfile = None

    global _capture_or_validation_active
    _capture_or_validation_active = False

  @property
  def capture_active(self):
    return self._tempfile is not None


class CaptureReader:
  """Replays the commands of a capture file, in order."""

  def __init__(self, path: Union[Path, str]):
    self.path = path
    self.commands: List[dict] = []
    with open(path, "r", encoding="utf-8") as f:
      data = json.load(f)
      for c in data["commands"]:
        self.commands.append(c)
    self._command_idx = 0

  def start(self):
    global _capture_or_validation_active
    _capture_or_validation_active = True

  def next_command(self) -> dict:
    if self._command_idx >= len(self.commands):
      raise ValidationError(f"Capture file {self.path} exhausted after {self._command_idx} commands")
    command = self.commands[self._command_idx]
    self._command_idx += 1
    return command

  def done(self):
    if self._command_idx < len(self.commands):
      left = len(self.commands) - self._command_idx
      next_command = self.commands[self._command_idx]
      raise ValidationError(
        f"Capture file not fully read, {left} commands left. First command: {next_command}"
      )
    print("Validation successful!")
    self.reset()

  def reset(self):
    self._command_idx = 0

    global _capture_or_validation_active
    _capture_or_validation_active = False


capturer = _CaptureWriter()


def start_capture(fp: Union[Path, str] = Path("./validation.json")):
  """Start capturing all IO events to a capture file."""
  if not isinstance(fp, Path):
    fp = Path(fp)
  if fp.is_dir():
    raise ValueError("Path is a directory, please provide a file path.")
  capturer.start(fp)


def stop_capture():
  """Stop capturing all IO events and write the capture file."""
  capturer.stop()
