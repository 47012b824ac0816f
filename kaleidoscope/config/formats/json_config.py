import json
from typing import IO

from kaleidoscope.config.config import Config
from kaleidoscope.config.formats import ConfigLoader, ConfigSaver


class JsonLoader(ConfigLoader):
  """A ConfigLoader that loads from an IO stream that is JSON formatted."""

  extension = "json"

  def load(self, r: IO) -> Config:
    return Config.from_dict(json.loads(r.read()))


class JsonSaver(ConfigSaver):
  """A ConfigSaver that saves to an IO stream in JSON format."""

  extension = "json"

  def save(self, w: IO, cfg: Config):
    json.dump(cfg.as_dict, w, indent=2)
