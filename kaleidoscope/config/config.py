import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from kaleidoscope.io.validation_utils import LOG_LEVEL_IO

LOG_FROM_STRING = {
  "IO": LOG_LEVEL_IO,
  "DEBUG": logging.DEBUG,
  "INFO": logging.INFO,
  "WARNING": logging.WARNING,
  "ERROR": logging.ERROR,
  "CRITICAL": logging.CRITICAL,
}

LOG_TO_STRING = {v: k for k, v in LOG_FROM_STRING.items()}


@dataclass
class Config:
  """The configuration object for kaleidoscope."""

  @dataclass
  class Logging:
    """The logging configuration."""

    level: int = logging.INFO
    log_dir: Optional[Path] = None

  @dataclass
  class Focus:
    """Defaults for new Focus sessions."""

    chunk_size: int = 32
    write_delay: int = 500  # ms
    timeout: float = 0.1  # s
    baudrate: int = 9600

  logging: Logging = field(default_factory=Logging)
  focus: Focus = field(default_factory=Focus)

  @classmethod
  def from_dict(cls, d: dict) -> "Config":
    log_data = d.get("logging", {})
    log_dir = log_data.get("log_dir")
    focus_data = d.get("focus", {})
    focus_defaults = cls.Focus()
    return cls(
      logging=cls.Logging(
        level=LOG_FROM_STRING[log_data.get("level", "INFO")],
        log_dir=Path(log_dir) if log_dir is not None else None,
      ),
      focus=cls.Focus(
        chunk_size=int(focus_data.get("chunk_size", focus_defaults.chunk_size)),
        write_delay=int(focus_data.get("write_delay", focus_defaults.write_delay)),
        timeout=float(focus_data.get("timeout", focus_defaults.timeout)),
        baudrate=int(focus_data.get("baudrate", focus_defaults.baudrate)),
      ),
    )

  @property
  def as_dict(self) -> dict:
    return {
      "logging": {
        "level": LOG_TO_STRING[self.logging.level],
        "log_dir": str(self.logging.log_dir) if self.logging.log_dir is not None else None,
      },
      "focus": {
        "chunk_size": self.focus.chunk_size,
        "write_delay": self.focus.write_delay,
        "timeout": self.focus.timeout,
        "baudrate": self.focus.baudrate,
      },
    }
