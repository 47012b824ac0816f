from .capture import CaptureReader, start_capture, stop_capture
from .errors import ValidationError
from .io import IOBase
from .scripted import ScriptedIO
from .serial import Serial, SerialValidator
from .validation import end_validation, validate
