from __future__ import annotations

import logging
import os
import time
from typing import Any, List, NamedTuple, Optional

from .. import constants
from ..config import Config, get_config
from ..errors import LuksError, LuksMappingFailed
from ..logging_utils import log_structured
from ..runner import CommandFailedError, run_command
from . import classify, links
from .locate import dev_name, dev_path

logger = logging.getLogger(__name__)


class MappingCorrelation(NamedTuple):
    """An encrypted device and its opened mapping.

    ``raw`` is empty when ``mapped`` is not an opened LUKS mapping, and
    ``mapped`` is the raw device itself when it has no open mapping.
    """

    mapped: str
    raw: str


def luks_keyfile_args(passphrase_file: Optional[str]) -> List[str]:
    """cryptsetup options reading the whole passphrase file as the key."""
    if not passphrase_file:
        return []
    try:
        size = os.path.getsize(passphrase_file)
    except OSError as exc:
        message = f"Cannot read passphrase file {passphrase_file}: {exc.strerror or exc}"
        raise LuksError(message, cause=exc) from exc
    return ["--key-file", passphrase_file, "--keyfile-size", str(size)]


def _passphrase_path(passphrase_file: Any) -> Optional[str]:
    if passphrase_file is None:
        return None
    if isinstance(passphrase_file, (str, os.PathLike)):
        return os.fspath(passphrase_file)
    return getattr(passphrase_file, "name", None)


def _log_event(event: str, device: str, mapping_name: Optional[str] = None) -> None:
    fields = {constants.LOG_KEY_EVENT: event, constants.LOG_KEY_DEVNODE: device}
    if mapping_name:
        fields[constants.LOG_KEY_MAPPING] = mapping_name
    log_structured(logger, f"{event} {device}", fields)


def dm_mapping_name(raw_device: str, config: Optional[Config] = None) -> str:
    """Mapping name for an encrypted device: ``_dev_sdc1`` for ``/dev/sdc1``.

    Both fmount and pmount name their mappings this way.
    """
    return constants.DM_NAME_PREFIX + dev_name(dev_path(raw_device, config), config)


def luks_format(device: str, config: Optional[Config] = None) -> None:
    """Initialize a LUKS header on the device and set its first passphrase.

    Without a passphrase file, cryptsetup prompts on the terminal.
    """
    config = get_config(config)
    path = dev_path(device, config)
    keyfile_args = luks_keyfile_args(config.passphrase_file)
    cmd = [config.cryptsetup] + keyfile_args + ["luksFormat", path]
    _log_event(constants.EVENT_FORMAT, path)
    try:
        run_command(cmd, fake=config.fake, interactive=not keyfile_args)
    except CommandFailedError as exc:
        raise LuksError.from_failure(exc) from exc


def luks_open(
    device: str,
    passphrase_file: Any = None,
    mapping_name: Optional[str] = None,
    config: Optional[Config] = None,
) -> str:
    """Open an encrypted device and return the path of its mapping.

    ``passphrase_file`` is a path or an open file object; without one,
    cryptsetup prompts on the terminal. The mapping is named after the device
    unless ``mapping_name`` is given.
    """
    config = get_config(config)
    path = dev_path(device, config)
    if not mapping_name:
        mapping_name = dm_mapping_name(path, config)

    keyfile_args = luks_keyfile_args(_passphrase_path(passphrase_file))
    cmd = [config.cryptsetup] + keyfile_args + ["luksOpen", path, mapping_name]
    _log_event(constants.EVENT_OPEN, path, mapping_name)
    try:
        run_command(cmd, fake=config.fake, interactive=not keyfile_args)
    except CommandFailedError as exc:
        raise LuksMappingFailed(mapping_name, exc) from exc

    dmdev = os.path.join(config.paths.mapper, mapping_name)
    if not config.fake and not os.path.exists(dmdev):
        raise LuksMappingFailed(mapping_name)
    return dmdev


def luks_close(mapping_name: str, config: Optional[Config] = None) -> None:
    """Close a mapping opened with :func:`luks_open`."""
    config = get_config(config)
    cmd = [config.cryptsetup, "luksClose", mapping_name]

    # luksClose fails if it is run immediately after a format or an open
    time.sleep(constants.LUKS_CLOSE_DELAY_SECONDS)

    _log_event(constants.EVENT_CLOSE, os.path.join(config.paths.mapper, mapping_name), mapping_name)
    try:
        run_command(cmd, fake=config.fake)
    except CommandFailedError as exc:
        raise LuksError.from_failure(exc, mapping_name) from exc


def correlate(disk: str, config: Optional[Config] = None) -> MappingCorrelation:
    """Pair an encrypted device with its open mapping, in either direction."""
    config = get_config(config)
    paths = config.paths

    if classify.is_encrypted(disk, config):
        dm_name = dm_mapping_name(disk, config)
        for entry in links.dir_entries(paths.mapper):
            if os.path.basename(entry) == dm_name:
                return MappingCorrelation(entry, disk)
    elif classify.is_dm(disk, config):
        mapper_name = links.dev_mapper_name(disk, config)
        raw = ""
        for entry in links.dir_entries(paths.dev_root):
            if os.path.isdir(entry):
                continue
            target = links.link_target(entry)
            if target is None:
                continue
            if constants.DM_NAME_PREFIX + os.path.basename(target) == mapper_name:
                raw = entry
        return MappingCorrelation(disk, raw)

    return MappingCorrelation(disk, "")
