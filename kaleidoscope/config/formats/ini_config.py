import configparser
from typing import IO

from kaleidoscope.config.config import Config
from kaleidoscope.config.formats import ConfigLoader, ConfigSaver


class IniLoader(ConfigLoader):
  """A ConfigLoader that loads from an IO stream that is INI formatted.

  Example::

    [logging]
    level = DEBUG
    log_dir = logs

    [focus]
    chunk_size = 32
    write_delay = 500
  """

  extension = "ini"

  def load(self, r: IO) -> Config:
    """Load a Config object from an opened IO stream that is INI formatted."""
    config = configparser.ConfigParser()
    config.read_file(r)
    return Config.from_dict({section: dict(config[section]) for section in config.sections()})


class IniSaver(ConfigSaver):
  """A ConfigSaver that saves to an IO stream in INI format."""

  extension = "ini"

  def save(self, w: IO, cfg: Config):
    """Save a Config object to an IO stream in INI format."""
    config = configparser.ConfigParser()
    for k, v in cfg.as_dict.items():
      config[k] = {k_: v_ for k_, v_ in v.items() if v_ is not None}

    config.write(w)
    return w
