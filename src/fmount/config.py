from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional

from . import constants

DEFAULT_CONFIG_PATH = Path("/etc/fmount/config.toml")


@dataclass(frozen=True)
class DevicePaths:
    """Locations of the device, sysfs and procfs trees that are scanned."""

    dev_root: str = constants.DEV_ROOT
    by_uuid: str = constants.DEV_BY_UUID
    by_label: str = constants.DEV_BY_LABEL
    by_partuuid: str = constants.DEV_BY_PARTUUID
    by_path: str = constants.DEV_BY_PATH
    mapper: str = constants.DEV_MAPPER
    sys_block: str = constants.SYS_BLOCK
    sys_class_block: str = constants.SYS_CLASS_BLOCK
    proc_mounts: str = constants.PROC_MOUNTS

    @classmethod
    def rooted(cls, prefix: str | os.PathLike) -> "DevicePaths":
        """Rebase every default location under ``prefix``."""
        base = cls()
        values = {
            f.name: os.path.join(os.fspath(prefix), getattr(base, f.name).lstrip("/"))
            for f in fields(cls)
        }
        return cls(**values)

    def disk_dirs(self) -> List[str]:
        # Priority order for "first match wins" lookups
        return [self.dev_root, self.by_uuid, self.by_label, self.by_partuuid]

    def search_dirs(self) -> List[str]:
        return self.disk_dirs() + [self.mapper]

    def link_dirs(self) -> List[str]:
        return self.search_dirs()


@dataclass
class Config:
    passphrase_file: Optional[str] = None
    fake: bool = False
    verbose: int = 0
    cryptsetup: str = "cryptsetup"
    blkid: str = "blkid"
    paths: DevicePaths = field(default_factory=DevicePaths)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
        if not cfg_path.exists():
            return cls()
        with cfg_path.open("rb") as f:
            parsed = tomllib.load(f)

        known = {f.name for f in fields(DevicePaths)}
        path_overrides = {
            key: str(value)
            for key, value in parsed.get("paths", {}).items()
            if key in known
        }

        return cls(
            passphrase_file=parsed.get("passphrase_file") or None,
            fake=parsed.get("fake", False),
            verbose=parsed.get("verbose", 0),
            cryptsetup=parsed.get("cryptsetup", "cryptsetup"),
            blkid=parsed.get("blkid", "blkid"),
            paths=replace(DevicePaths(), **path_overrides),
        )


def get_config(config: Optional[Config]) -> Config:
    return config if config is not None else Config()
