"""Mounted state of devices, read from ``/proc/mounts``.

An encrypted device is never mounted itself: its opened mapping is, so the
lookups go through :func:`fmount.devices.luks.correlate` first.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Iterable, List, NamedTuple, Optional

from ..config import Config, get_config
from ..errors import MountedDevice
from . import classify, luks, udev
from .links import dev_descr
from .locate import dev_path, follow_links

logger = logging.getLogger(__name__)

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


class MountEntry(NamedTuple):
    device: str
    mountpoint: str
    fs_type: str


def _unescape(field: str) -> str:
    # /proc/mounts encodes spaces, tabs and newlines as \040, \011, \012
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def mount_entries(config: Optional[Config] = None) -> List[MountEntry]:
    config = get_config(config)
    entries = []
    try:
        with open(config.paths.proc_mounts, "r") as f:
            for line in f:
                parts = line.split()
                if len(parts) >= 3:
                    entries.append(MountEntry(_unescape(parts[0]), _unescape(parts[1]), parts[2]))
    except FileNotFoundError:
        logger.warning("Mount table %s is missing", config.paths.proc_mounts)
    return entries


def find_mount(device: str, config: Optional[Config] = None) -> Optional[MountEntry]:
    """The first mount table entry for the device or its open mapping."""
    config = get_config(config)
    mapped = luks.correlate(device, config).mapped
    target = dev_path(mapped, config)
    for entry in mount_entries(config):
        if not os.path.isabs(entry.device):
            continue
        try:
            source = follow_links(entry.device)
        except OSError:
            continue
        if source == target:
            return entry
    return None


def find_mountpoint(device: str, default: str = "", config: Optional[Config] = None) -> str:
    entry = find_mount(device, config)
    return entry.mountpoint if entry else default


def mounted_filesystem(device: str, default: str = "", config: Optional[Config] = None) -> str:
    entry = find_mount(device, config)
    return entry.fs_type if entry else default


def is_mounted(device: str, config: Optional[Config] = None) -> bool:
    return find_mount(device, config) is not None


def check_unmounted(devices: Iterable[str], config: Optional[Config] = None) -> None:
    """Raise :class:`MountedDevice` if a device, or a partition of it, is mounted."""
    config = get_config(config)
    mounted = []
    for device in devices:
        candidates = [dev_path(device, config)]
        if not classify.is_partition(device, config):
            candidates += udev.disk_partitions(device, config)
        for candidate in candidates:
            if candidate not in mounted and is_mounted(candidate, config):
                mounted.append(candidate)
    if mounted:
        raise MountedDevice(mounted, [dev_descr(dev, config=config) for dev in mounted])
