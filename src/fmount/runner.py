from __future__ import annotations

import logging
import signal
import subprocess
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandFailedError(Exception):
    """An external program exited with an error or could not be started."""

    def __init__(
        self,
        cmd: Sequence[str],
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        reason: Optional[str] = None,
    ) -> None:
        self.cmd: List[str] = list(cmd)
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        self.reason = reason
        super().__init__(self._build_message())

    @property
    def command(self) -> str:
        return " ".join(self.cmd)

    def _build_message(self) -> str:
        if self.returncode is None:
            msg = f"Command '{self.command}' could not be run"
            if self.reason:
                msg += f": {self.reason}"
            return msg + "."
        if self.returncode >= 0:
            msg = f"Command '{self.command}' failed with error code {self.returncode}."
        else:
            signum = -self.returncode
            try:
                signame = signal.Signals(signum).name
            except ValueError:
                signame = str(signum)
            msg = f"Command '{self.command}' stopped by signal {signame}."
        details = self.stderr.strip() or self.stdout.strip()
        if details:
            msg += f"\n{details}"
        return msg


def run_command(
    cmd: List[str],
    fake: bool = False,
    interactive: bool = False,
    log_level: int = logging.INFO,
) -> str:
    """Run ``cmd`` to completion and return its standard output.

    In fake mode the command is only logged. Interactive commands keep the
    terminal attached so that the program can prompt the user; only their
    standard error is captured.
    """
    if fake:
        logger.info("[fake] %s", " ".join(cmd))
        return ""

    logger.log(log_level, "%s", " ".join(cmd))
    try:
        if interactive:
            result = subprocess.run(cmd, stderr=subprocess.PIPE, text=True, check=True)
        else:
            result = subprocess.run(cmd, capture_output=True, text=True, check=True)
    except subprocess.CalledProcessError as exc:
        raise CommandFailedError(cmd, exc.returncode, exc.stdout, exc.stderr) from exc
    except OSError as exc:
        raise CommandFailedError(cmd, reason=exc.strerror or str(exc)) from exc
    return result.stdout or ""
