"""Resolve device references to canonical device paths.

A reference is either a path (anything containing a directory separator,
possibly a symbolic link) or a bare name such as ``sdb1``, a filesystem
label, a UUID or a device-mapper name. Bare names are looked up in the
device directories, in the order given by
:meth:`fmount.config.DevicePaths.search_dirs`.
"""

from __future__ import annotations

import errno
import os
from dataclasses import dataclass
from typing import List, Optional

from .. import constants
from ..config import Config, get_config
from ..errors import DeviceError, NoSuchDevice, TooManyDevices


def _is_candidate(path: str) -> bool:
    return os.path.lexists(path) and not os.path.isdir(path)


def _candidates(name: str, dirs: List[str], first_only: bool) -> List[str]:
    found = []
    for directory in dirs:
        path = os.path.join(directory, name)
        if _is_candidate(path):
            found.append(path)
            if first_only:
                break
    return found


def follow_links(path: str) -> str:
    """Follow a chain of symbolic links and return the normalized target.

    Relative link targets are resolved against the directory holding the link.
    """
    current = os.path.normpath(os.path.abspath(path))
    for _ in range(constants.MAX_SYMLINK_HOPS):
        if not os.path.islink(current):
            return current
        target = os.readlink(current)
        if not os.path.isabs(target):
            target = os.path.join(os.path.dirname(current), target)
        current = os.path.normpath(target)
    raise OSError(errno.ELOOP, os.strerror(errno.ELOOP), path)


def dev_path(ref: str, config: Optional[Config] = None) -> str:
    """Return the canonical path of the device designated by ``ref``."""
    paths = get_config(config).paths
    ref = os.fspath(ref)

    if os.sep in ref:
        path = ref
        if not os.path.isabs(ref):
            # 'disk/by-label/foo' style references
            found = _candidates(ref, paths.disk_dirs(), first_only=True)
            if found:
                path = found[0]
    else:
        found = _candidates(ref, paths.search_dirs(), first_only=True)
        path = found[0] if found else ref

    return follow_links(path)


def search_dev_path(ref: str, config: Optional[Config] = None) -> str:
    """Like :func:`dev_path`, but a bare name must match exactly one entry.

    Raises:
        NoSuchDevice: no device directory holds ``ref``.
        TooManyDevices: several device directories hold ``ref``.
    """
    config = get_config(config)
    ref = os.fspath(ref)
    if os.sep in ref:
        return dev_path(ref, config)

    found = _candidates(ref, config.paths.search_dirs(), first_only=False)
    if len(found) == 1:
        return dev_path(found[0], config)
    if not found:
        raise NoSuchDevice(ref)

    from .links import dev_descr

    descriptions = []
    for path in found:
        try:
            descriptions.append(dev_descr(path, config=config))
        except OSError:
            # Unresolvable link, e.g. a cycle
            descriptions.append(path)
    raise TooManyDevices(found, descriptions)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a reference: either a path or a device error."""

    ref: str
    path: Optional[str] = None
    error: Optional[DeviceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        return self.path


def resolve(ref: str, config: Optional[Config] = None) -> Resolution:
    try:
        return Resolution(ref, path=search_dev_path(ref, config))
    except (NoSuchDevice, TooManyDevices) as exc:
        return Resolution(ref, error=exc)


def dev_name(dev: str, config: Optional[Config] = None) -> str:
    """Leaf name of the device, i.e. 'sda1' for '/dev/sda1'."""
    return os.path.basename(dev_path(dev, config))
