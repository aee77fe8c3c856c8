from __future__ import annotations

import logging
from typing import Optional

from ..config import Config, get_config
from ..runner import CommandFailedError, run_command

logger = logging.getLogger(__name__)


def attribute(dev: str, attr: str, config: Optional[Config] = None) -> str:
    """Read one blkid attribute of a device; an absent attribute is ``""``."""
    config = get_config(config)
    cmd = [config.blkid, "-s", attr, "-o", "value", dev]
    try:
        out = run_command(cmd, log_level=logging.DEBUG)
    except CommandFailedError as exc:
        logger.debug("blkid %s of %s unavailable: %s", attr, dev, exc)
        return ""
    return out.strip()
