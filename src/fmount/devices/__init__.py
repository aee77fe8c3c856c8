"""
Block device handling

- Resolution of device references (names, links, labels, UUIDs) to device paths
- Link discovery and device descriptions
- Device classification from sysfs, the device-mapper directory and blkid
- LUKS mappings through cryptsetup
- Mounted state of devices
"""

from .classify import describe, is_dm, is_encrypted
from .locate import dev_path, resolve, search_dev_path
from .luks import correlate, dm_mapping_name, luks_close, luks_format, luks_open
from .mounts import check_unmounted, find_mountpoint

__all__ = [
    'check_unmounted',
    'correlate',
    'describe',
    'dev_path',
    'dm_mapping_name',
    'find_mountpoint',
    'is_dm',
    'is_encrypted',
    'luks_close',
    'luks_format',
    'luks_open',
    'resolve',
    'search_dev_path',
]
