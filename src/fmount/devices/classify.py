"""Predicates telling what kind of block device a path designates.

Everything is read from the live sysfs tree, the device-mapper directory and
``blkid``; a missing attribute file means "no" rather than an error.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .. import constants
from ..config import Config, get_config
from ..logging_utils import log_decision
from . import blkid, links
from .locate import dev_name, dev_path

logger = logging.getLogger(__name__)


def _read_text(path: str) -> Optional[str]:
    try:
        with open(path, "r") as f:
            return f.read().strip()
    except OSError:
        return None


def _read_int(path: str) -> Optional[int]:
    text = _read_text(path)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def is_partition(dev: str, config: Optional[Config] = None) -> bool:
    config = get_config(config)
    attr = os.path.join(config.paths.sys_class_block, dev_name(dev, config), "partition")
    ret = os.path.exists(attr)
    log_decision(logger, "is_partition", dev, ret, attribute=attr)
    return ret


def disk_name(dev: str, config: Optional[Config] = None) -> str:
    """Name of the disk holding a partition (``sdb`` for ``sdb1``).

    Any other device is its own disk.
    """
    config = get_config(config)
    name = dev_name(dev, config)
    if not is_partition(dev, config):
        return name

    sysroot = config.paths.sys_block
    try:
        disks = sorted(os.listdir(sysroot))
    except OSError:
        disks = []
    for disk in disks:
        # /sys/block/sdb/sdb1 => sdb
        if os.path.isdir(os.path.join(sysroot, disk, name)):
            return disk

    logger.debug("No disk found in %s for partition %s", sysroot, name)
    return name


def is_removable(dev: str, config: Optional[Config] = None) -> bool:
    config = get_config(config)
    disk = disk_name(dev, config)
    attr = os.path.join(config.paths.sys_class_block, disk, "removable")
    value = _read_int(attr)
    ret = bool(value)
    log_decision(logger, "is_removable", dev, ret, disk=disk, removable=value)
    return ret


def is_disk(dev: str, config: Optional[Config] = None) -> bool:
    """True for SCSI/SATA/USB disks; optical drives and mappings are not disks."""
    config = get_config(config)
    attr = os.path.join(config.paths.sys_block, dev_name(dev, config), "dev")
    # 8:0 => disk, 65:0 => 17th disk, 11:0 => cd/dvd, 254:0 => dm
    devnum = _read_text(attr)
    ret = False
    if devnum:
        major = devnum.split(":", 1)[0]
        ret = major.isdigit() and int(major) in constants.SCSI_DISK_MAJORS
    log_decision(logger, "is_disk", dev, ret, devnum=devnum)
    return ret


def is_dm(dev: str, config: Optional[Config] = None) -> bool:
    """True if a link in the device-mapper directory points at the device."""
    config = get_config(config)
    mapper_name = links.dev_mapper_name(dev, config)
    ret = bool(mapper_name)
    log_decision(logger, "is_dm", dev, ret, mapper_name=mapper_name)
    return ret


def dev_fs(dev: str, default: str = "", config: Optional[Config] = None) -> str:
    """Filesystem type reported by blkid, such as ``ext4`` or ``crypto_LUKS``."""
    config = get_config(config)
    fs_type = blkid.attribute(dev_path(dev, config), constants.BLKID_TYPE, config)
    return fs_type or default


def dev_fs_usage(dev: str, default: str = "", config: Optional[Config] = None) -> str:
    fs_type = dev_fs(dev, config=config)
    if constants.USAGE_CRYPTO in fs_type:
        return constants.USAGE_CRYPTO
    if fs_type:
        return constants.USAGE_FILESYSTEM
    return default


def is_encrypted(dev: str, config: Optional[Config] = None) -> bool:
    """True for a LUKS device, but not for its opened mapping.

    An opened mapping exposes the type of the decrypted payload.
    """
    if not dev:
        return False
    config = get_config(config)
    usage = dev_fs_usage(dev, config=config)
    ret = usage == constants.USAGE_CRYPTO and not is_dm(dev, config)
    log_decision(logger, "is_encrypted", dev, ret, usage=usage)
    return ret


def is_fs(dev: str, config: Optional[Config] = None) -> bool:
    usage = dev_fs_usage(dev, config=config)
    ret = usage in (constants.USAGE_FILESYSTEM, constants.USAGE_CRYPTO)
    log_decision(logger, "is_fs", dev, ret, usage=usage)
    return ret


def is_usb(dev: str, config: Optional[Config] = None) -> bool:
    hw_path = links.dev_hardware_path(dev, config)
    ret = "usb" in hw_path.lower()
    log_decision(logger, "is_usb", dev, ret, hardware_path=hw_path)
    return ret


def dev_bytes(dev: str, config: Optional[Config] = None) -> int:
    """Device size in bytes, 0 when unknown."""
    config = get_config(config)
    # The size is given as a number of 512-byte sectors
    sectors = _read_int(os.path.join(config.paths.sys_class_block, dev_name(dev, config), "size"))
    return constants.SECTOR_SIZE * (sectors or 0)


@dataclass(frozen=True)
class DeviceInfo:
    path: str
    name: str
    display: str
    description: str
    label: str
    uuid: str
    fs_type: str
    fs_usage: str
    size_bytes: int
    is_partition: bool
    is_disk: bool
    is_removable: bool
    is_dm: bool
    is_encrypted: bool
    is_usb: bool


def describe(dev: str, config: Optional[Config] = None) -> DeviceInfo:
    """Gather everything known about a device, as of now."""
    config = get_config(config)
    path = dev_path(dev, config)
    fs_type = dev_fs(path, config=config)
    dm = is_dm(path, config)
    if constants.USAGE_CRYPTO in fs_type:
        usage = constants.USAGE_CRYPTO
    elif fs_type:
        usage = constants.USAGE_FILESYSTEM
    else:
        usage = ""
    return DeviceInfo(
        path=path,
        name=dev_name(path, config),
        display=links.dev_display(path, config),
        description=links.dev_detailed_descr(path, config),
        label=links.dev_label(path, config),
        uuid=links.dev_uuid(path, config),
        fs_type=fs_type,
        fs_usage=usage,
        size_bytes=dev_bytes(path, config),
        is_partition=is_partition(path, config),
        is_disk=is_disk(path, config),
        is_removable=is_removable(path, config),
        is_dm=dm,
        is_encrypted=usage == constants.USAGE_CRYPTO and not dm,
        is_usb=is_usb(path, config),
    )
