"""Symbolic links pointing at a device, and what they tell about it.

udev indexes devices under ``/dev/disk/by-*`` and ``/dev/mapper``; the name of
a link in ``by-label`` is the filesystem label of its target, the name of a
link in ``by-uuid`` its UUID, and so on.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional

from .. import constants
from ..config import Config, get_config
from . import blkid
from .locate import dev_name, dev_path, follow_links

logger = logging.getLogger(__name__)


def dir_entries(directory: str) -> List[str]:
    try:
        names = sorted(os.listdir(directory))
    except (FileNotFoundError, NotADirectoryError):
        return []
    return [os.path.join(directory, name) for name in names]


def link_target(link: str) -> Optional[str]:
    try:
        return follow_links(link)
    except OSError as exc:
        logger.debug("Ignoring unresolvable link %s: %s", link, exc)
        return None


def dev_link_paths(dev: str, dirs: Optional[List[str]] = None, config: Optional[Config] = None) -> List[str]:
    """Every link, in ``dirs``, resolving to the device.

    ``dirs`` defaults to the device root, the ``/dev/disk/by-*`` search
    directories and the device-mapper directory.
    """
    config = get_config(config)
    target = dev_path(dev, config)
    if not dirs:
        dirs = config.paths.link_dirs()

    links = []
    for directory in dirs:
        directory = directory.rstrip(os.sep) or os.sep
        for entry in dir_entries(directory):
            if os.path.islink(entry) and link_target(entry) == target:
                links.append(entry)
    return links


def dev_link_names(dev: str, dirs: Optional[List[str]] = None, config: Optional[Config] = None) -> List[str]:
    return [os.path.basename(link) for link in dev_link_paths(dev, dirs, config)]


def dev_link_name(dev: str, config: Optional[Config] = None) -> str:
    """Name of the first link to the device in the device root, if any."""
    config = get_config(config)
    links = sorted(dev_link_paths(dev, [config.paths.dev_root], config))
    if links:
        return os.path.basename(links[0])
    return ""


def _dev_link_name(dev: str, link_dir: str, config: Config) -> str:
    name = dev_name(dev, config)
    for entry in dir_entries(link_dir):
        if not os.path.islink(entry):
            continue
        target = link_target(entry)
        if target is not None and os.path.basename(target) == name:
            return os.path.basename(entry)
    return ""


def dev_label(dev: str, config: Optional[Config] = None) -> str:
    config = get_config(config)
    return _dev_link_name(dev, config.paths.by_label, config)


def dev_fsuuid(dev: str, config: Optional[Config] = None) -> str:
    config = get_config(config)
    return _dev_link_name(dev, config.paths.by_uuid, config)


def dev_partuuid(dev: str, config: Optional[Config] = None) -> str:
    config = get_config(config)
    return _dev_link_name(dev, config.paths.by_partuuid, config)


def dev_hardware_path(dev: str, config: Optional[Config] = None) -> str:
    config = get_config(config)
    return _dev_link_name(dev, config.paths.by_path, config)


def dev_mapper_name(dev: str, config: Optional[Config] = None) -> str:
    config = get_config(config)
    return _dev_link_name(dev, config.paths.mapper, config)


def dev_parttable_uuid(dev: str, config: Optional[Config] = None) -> str:
    config = get_config(config)
    return blkid.attribute(dev_path(dev, config), constants.BLKID_PTUUID, config)


def dev_uuid(dev: str, config: Optional[Config] = None) -> str:
    """Filesystem UUID, else partition UUID, else partition table UUID."""
    config = get_config(config)
    for lookup in (dev_fsuuid, dev_partuuid, dev_parttable_uuid):
        value = lookup(dev, config)
        if value:
            return value
    return ""


def dev_display(dev: str, config: Optional[Config] = None) -> str:
    """A link name, a filesystem label or the device name."""
    config = get_config(config)
    if os.path.islink(dev):
        return os.path.basename(dev)
    return dev_label(dev, config) or dev_name(dev, config)


def dev_descr(dev: str, display: Optional[str] = None, config: Optional[Config] = None) -> str:
    """Short description such as ``sdb1`` or ``my_label (sdb1)``."""
    config = get_config(config)
    if display is None:
        display = dev_display(dev, config)
    name = dev_name(dev, config)
    if not display or display == name:
        return name
    return f"{display} ({name})"


def dev_detailed_descr(dev: str, config: Optional[Config] = None) -> str:
    config = get_config(config)
    text = dev_name(dev, config)

    links = [os.path.relpath(link, config.paths.dev_root) for link in dev_link_paths(dev, config=config)]
    if links:
        text += f" ({', '.join(links)})"

    label = dev_label(dev, config)
    if label:
        text += f", label={label}"

    uuid = dev_uuid(dev, config)
    if uuid:
        text += f", uuid={uuid}"

    return text
