"""fmount package exports for test/import convenience."""

from . import config, constants, errors, logging_utils, runner
from .devices import blkid, classify, links, locate, luks, mounts, udev

__all__ = [
    "blkid",
    "classify",
    "config",
    "constants",
    "errors",
    "links",
    "locate",
    "logging_utils",
    "luks",
    "mounts",
    "runner",
    "udev",
]

__version__ = "1.0.0"
