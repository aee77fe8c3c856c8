from __future__ import annotations

import logging
from typing import List, Optional

import pyudev

from ..config import Config, get_config
from . import classify
from .locate import dev_path

logger = logging.getLogger(__name__)


def block_devices(include_partitions: bool = True) -> List[str]:
    """Device nodes of the disks (and partitions) known to udev."""
    wanted = ("disk", "partition") if include_partitions else ("disk",)
    context = pyudev.Context()
    nodes = []
    for device in context.list_devices(subsystem="block"):
        if device.device_type in wanted and device.device_node:
            nodes.append(device.device_node)
    return sorted(nodes)


def disk_partitions(device: str, config: Optional[Config] = None) -> List[str]:
    """Partition nodes of a disk; a partition only lists itself."""
    config = get_config(config)
    path = dev_path(device, config)
    if classify.is_partition(path, config):
        return [path]

    partitions = []
    try:
        context = pyudev.Context()
        parent = pyudev.Devices.from_device_file(context, path)
        for child in context.list_devices(parent=parent):
            if child.device_type == "partition" and child.device_node:
                partitions.append(child.device_node)
    except (pyudev.DeviceNotFoundError, OSError) as exc:
        logger.debug("No udev device for %s: %s", path, exc)
    return partitions
