from __future__ import annotations

# Device directories
DEV_ROOT = "/dev"
DEV_DISK = DEV_ROOT + "/disk"
DEV_BY_UUID = DEV_DISK + "/by-uuid"
DEV_BY_LABEL = DEV_DISK + "/by-label"
DEV_BY_PARTUUID = DEV_DISK + "/by-partuuid"
DEV_BY_PATH = DEV_DISK + "/by-path"
DEV_MAPPER = DEV_ROOT + "/mapper"

SYS_BLOCK = "/sys/block"
SYS_CLASS_BLOCK = "/sys/class/block"
PROC_MOUNTS = "/proc/mounts"

# Mapping names compatible with pmount: /dev/sdc1 => _dev_sdc1
DM_NAME_PREFIX = "_dev_"

# luksClose fails when run right after a format or an open
LUKS_CLOSE_DELAY_SECONDS = 0.5

# Symlink hops followed before giving up (same bound as the kernel's ELOOP)
MAX_SYMLINK_HOPS = 40

SECTOR_SIZE = 512
# sd block majors: sda-sdp on 8, the following disks on 65-71 and 128-135
SCSI_DISK_MAJORS = frozenset([8] + list(range(65, 72)) + list(range(128, 136)))

# Filesystem usage classes
USAGE_FILESYSTEM = "filesystem"
USAGE_CRYPTO = "crypto"

# blkid attributes
BLKID_TYPE = "TYPE"
BLKID_PTUUID = "PTUUID"

# Journald keys
LOG_KEY_EVENT = "FMOUNT_EVENT"
LOG_KEY_DEVNODE = "DEVNODE"
LOG_KEY_PREDICATE = "PREDICATE"
LOG_KEY_RESULT = "RESULT"
LOG_KEY_MAPPING = "MAPPING"

# Events
EVENT_CLASSIFY = "classify"
EVENT_FORMAT = "luks_format"
EVENT_OPEN = "luks_open"
EVENT_CLOSE = "luks_close"
