"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, Generator, Optional, Tuple
from unittest.mock import patch

import pytest

from fmount.config import Config, DevicePaths
from fmount.runner import CommandFailedError


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: needs root, cryptsetup and loop devices")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# Synthetic device tree: an internal SATA disk (sda), a USB stick (sdb) whose
# first partition is LUKS-encrypted and opened as _dev_sdb1 (dm-0), and a
# DVD drive (sr0).
USB_PATH = "pci-0000:00:14.0-usb-0:1:1.0-scsi-0:0:0:0"
ATA_PATH = "pci-0000:00:17.0-ata-1"

DEV_FILES = ["sda", "sda1", "sdb", "sdb1", "sdb2", "sr0", "dm-0"]

DEV_LINKS = {
    "cdrom": "sr0",
    "disk/by-uuid/1234-5678": "../../sdb1",
    "disk/by-uuid/aaaa-bbbb": "../../sda1",
    "disk/by-uuid/cafe-0001": "../../dm-0",
    "disk/by-label/USBKEY": "../../sdb2",
    "disk/by-label/DATA": "../../dm-0",
    "disk/by-partuuid/0badf00d-01": "../../sdb1",
    f"disk/by-path/{USB_PATH}": "../../sdb",
    f"disk/by-path/{USB_PATH}-part1": "../../sdb1",
    f"disk/by-path/{USB_PATH}-part2": "../../sdb2",
    f"disk/by-path/{ATA_PATH}": "../../sda",
    f"disk/by-path/{ATA_PATH}-part1": "../../sda1",
    "mapper/_dev_sdb1": "../dm-0",
}

SYS_BLOCK = {
    "sda": {"dev": "8:0", "removable": "0"},
    "sda/sda1": {"dev": "8:1"},
    "sdb": {"dev": "8:16", "removable": "1"},
    "sdb/sdb1": {"dev": "8:17"},
    "sdb/sdb2": {"dev": "8:18"},
    "sr0": {"dev": "11:0", "removable": "1"},
    "dm-0": {"dev": "254:0", "removable": "0"},
}

SYS_CLASS_BLOCK = {
    "sda": {"removable": "0", "size": "1000215216"},
    "sda1": {"partition": "1", "size": "1000212480"},
    "sdb": {"removable": "1", "size": "15633408"},
    "sdb1": {"partition": "1", "removable": "0", "size": "2097152"},
    "sdb2": {"partition": "2", "size": "13533184"},
    "sr0": {"removable": "1", "size": "0"},
    "dm-0": {"removable": "0", "size": "2064384"},
}

BLKID = {
    ("sda", "PTUUID"): "5eed5eed",
    ("sda1", "TYPE"): "ext4",
    ("sdb", "PTUUID"): "0badf00d",
    ("sdb1", "TYPE"): "crypto_LUKS",
    ("sdb2", "TYPE"): "vfat",
    ("dm-0", "TYPE"): "ext4",
}


class DeviceTree:
    """A fake /dev, /sys and /proc/mounts rooted in a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.config = Config(paths=DevicePaths.rooted(root))
        self.blkid: Dict[Tuple[str, str], str] = dict(BLKID)

    def dev(self, name: str) -> str:
        return os.path.join(self.config.paths.dev_root, name)

    def mapper(self, name: str) -> str:
        return os.path.join(self.config.paths.mapper, name)

    def link(self, relpath: str, target: str) -> str:
        path = Path(self.config.paths.dev_root) / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        os.symlink(target, path)
        return str(path)

    def add_device(self, name: str) -> str:
        Path(self.dev(name)).touch()
        return self.dev(name)

    def write_mounts(self, *lines: str) -> None:
        Path(self.config.paths.proc_mounts).write_text("".join(line + "\n" for line in lines))

    def fake_blkid(self, cmd, **kwargs) -> str:
        attr, dev = cmd[2], cmd[-1]
        value = self.blkid.get((os.path.basename(dev), attr))
        if value is None:
            raise CommandFailedError(cmd, 2)
        return value + "\n"


def _write_attrs(base: Path, table: Dict[str, Dict[str, str]]) -> None:
    for entry, attrs in table.items():
        directory = base / entry
        directory.mkdir(parents=True, exist_ok=True)
        for attr, value in attrs.items():
            (directory / attr).write_text(value + "\n")


@pytest.fixture
def device_tree(tmp_path: Path) -> DeviceTree:
    tree = DeviceTree(tmp_path / "root")
    paths = tree.config.paths

    for directory in (paths.dev_root, paths.by_uuid, paths.by_label, paths.by_partuuid,
                      paths.by_path, paths.mapper, os.path.dirname(paths.proc_mounts)):
        os.makedirs(directory, exist_ok=True)
    for name in DEV_FILES:
        tree.add_device(name)
    Path(tree.mapper("control")).touch()
    for relpath, target in DEV_LINKS.items():
        tree.link(relpath, target)

    _write_attrs(Path(paths.sys_block), SYS_BLOCK)
    _write_attrs(Path(paths.sys_class_block), SYS_CLASS_BLOCK)

    tree.write_mounts(
        f"{tree.dev('sda1')} / ext4 rw,relatime 0 0",
        "proc /proc proc rw,nosuid,nodev,noexec 0 0",
        f"{tree.mapper('_dev_sdb1')} /media/usb\\040key ext4 rw,nosuid,nodev 0 0",
    )
    return tree


@pytest.fixture
def blkid(device_tree: DeviceTree) -> Generator[DeviceTree, None, None]:
    """Answer blkid queries from the device tree's table."""
    with patch("fmount.devices.blkid.run_command", side_effect=device_tree.fake_blkid):
        yield device_tree


@pytest.fixture
def passphrase_file(temp_dir: Path) -> Path:
    path = temp_dir / "passphrase"
    path.write_bytes(b"correct horse")
    return path


def is_root() -> bool:
    """Check if running as root."""
    return os.geteuid() == 0


def has_command(cmd: str) -> bool:
    """Check if a command is available."""
    return shutil.which(cmd) is not None


@pytest.fixture
def require_root():
    """Skip test if not running as root."""
    if not is_root():
        pytest.skip("This test requires root privileges")


@pytest.fixture
def require_cryptsetup():
    """Skip test if cryptsetup is not available."""
    if not has_command("cryptsetup"):
        pytest.skip("This test requires cryptsetup")


@pytest.fixture
def require_losetup():
    """Skip test if losetup is not available."""
    if not has_command("losetup"):
        pytest.skip("This test requires losetup")


class LoopDevice:
    """Context manager for loop devices."""

    def __init__(self, size_mb: int = 100):
        self.size_mb = size_mb
        self.image_file: Optional[Path] = None
        self.loop_device: Optional[str] = None
        self.temp_dir: Optional[Path] = None

    def __enter__(self) -> str:
        """Create and setup loop device."""
        if not is_root():
            raise RuntimeError("Loop device creation requires root")

        self.temp_dir = Path(tempfile.mkdtemp(prefix="fmount-test-"))
        self.image_file = self.temp_dir / "disk.img"

        # Create sparse file
        with open(self.image_file, 'wb') as f:
            f.seek(self.size_mb * 1024 * 1024 - 1)
            f.write(b'\0')

        result = subprocess.run(
            ["losetup", "-f", "--show", str(self.image_file)],
            capture_output=True,
            text=True,
            check=True
        )
        self.loop_device = result.stdout.strip()
        return self.loop_device

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Cleanup loop device."""
        if self.loop_device:
            subprocess.run(["losetup", "-d", self.loop_device], check=False)

        if self.temp_dir and self.temp_dir.exists():
            shutil.rmtree(self.temp_dir, ignore_errors=True)


@pytest.fixture
def loop_device(require_root, require_losetup) -> Generator[type, None, None]:
    """Provide a loop device context manager."""
    yield LoopDevice
