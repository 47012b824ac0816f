import os

from setuptools import setup, find_packages

with open(os.path.join("kaleidoscope", "version.txt"), "r", encoding="utf-8") as f:
  __version__ = f.read().strip()

extras_dev = [
  "pytest",
  "pytest-timeout",
  "pylint",
  "mypy",
]

setup(
  name="kaleidoscope-focus",
  version=__version__,
  packages=find_packages(include=["kaleidoscope", "kaleidoscope.*"]),
  description="Talk with Kaleidoscope powered devices over the Focus protocol",
  install_requires=["pyserial", "typing_extensions"],
  python_requires=">=3.8",
  package_data={"kaleidoscope": ["version.txt"]},
  extras_require={
    "dev": extras_dev,
  },
  entry_points={
    "console_scripts": [
      "focus-send=kaleidoscope.cmd.focus_send:main",
    ],
  }
)
