from pathlib import Path
from typing import Optional, Union

from kaleidoscope.io.capture import CaptureReader, capturer
from kaleidoscope.io.serial import Serial, SerialValidator

cr: Optional[CaptureReader] = None


def validate(capture_file: Union[Path, str]):
  """Start validation against a capture file.

  The IO of every live :class:`~kaleidoscope.focus.Focus` session is replaced by a validator that
  replays the capture, so the session runs exactly as it did when the capture was made, without a
  device attached.

  Args:
    capture_file: path to the capture file. Generate with start_capture.
  """

  # imported here, kaleidoscope.focus imports kaleidoscope.io
  from kaleidoscope.focus.focus import Focus

  if capturer.capture_active:
    raise RuntimeError("Cannot validate while capture is active")

  global cr
  cr = CaptureReader(path=capture_file)

  for session in Focus.get_all_instances():
    if session.io.__class__ is Serial:
      session.io = SerialValidator(**session.io.serialize(), cr=cr)
    elif isinstance(session.io, SerialValidator):
      session.io.cr = cr
    # other IO, like ScriptedIO, never reaches a device

  cr.start()


def end_validation():
  if cr is None:
    raise RuntimeError("Validation not started")
  cr.done()
