"""ConfigLoader and ConfigSaver load and save configs from and to IO streams."""

import logging
from abc import ABC, abstractmethod
from typing import IO, List

from kaleidoscope.config.config import Config

logger = logging.getLogger(__name__)


class ConfigLoader(ABC):
  """ConfigLoader is an abstract class for loading a Config object from a stream."""

  extension: str

  @abstractmethod
  def load(self, r: IO) -> Config:
    """Load a Config object."""


class ConfigSaver(ABC):
  """ConfigSaver is an abstract class for saving a Config object to a stream."""

  extension: str

  @abstractmethod
  def save(self, w: IO, cfg: Config):
    """Save a Config object."""


class MultiLoader(ConfigLoader):
  """A ConfigLoader that tries multiple ConfigLoaders in order, from the start of the stream."""

  def __init__(self, loaders: List[ConfigLoader]):
    self.loaders = loaders

  # The loaders raise whatever their parser raises, so anything counts as "not this format".
  def load(self, r: IO) -> Config:
    for loader in self.loaders:
      r.seek(0)
      try:
        return loader.load(r)
      except Exception as e:  # pylint: disable=broad-except
        logger.debug("%s could not load config: %s", type(loader).__name__, e)
    raise ValueError("No loader could load file.")
