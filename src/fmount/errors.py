"""Failures reported while resolving, inspecting or mapping block devices."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .runner import CommandFailedError


def _with_context(message: Optional[str], body: str) -> str:
    if message:
        return f"{message}\n{body}"
    return body


class DeviceError(Exception):
    """Base class for every device-layer failure."""

    def __init__(self, text: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(text)
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def returncode(self) -> Optional[int]:
        if isinstance(self.cause, CommandFailedError):
            return self.cause.returncode
        return None

    @property
    def stderr(self) -> str:
        if isinstance(self.cause, CommandFailedError):
            return self.cause.stderr
        return ""


class NoSuchDevice(DeviceError):
    def __init__(self, device: str, message: Optional[str] = None) -> None:
        self.device = device
        super().__init__(_with_context(message, f"No such device: {device}"))


class TooManyDevices(DeviceError):
    def __init__(
        self,
        devices: Sequence[str],
        descriptions: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.devices: List[str] = list(devices)
        self.descriptions: List[str] = list(descriptions) if descriptions else list(devices)
        body = f"Matching devices: {', '.join(self.descriptions)}."
        super().__init__(_with_context(message, body))


class MountedDevice(DeviceError):
    def __init__(
        self,
        devices: Sequence[str],
        descriptions: Optional[Sequence[str]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.devices: List[str] = list(devices)
        self.descriptions: List[str] = list(descriptions) if descriptions else list(devices)
        if not self.devices:
            body = "No mounted device."
        else:
            plural = "s" if len(self.devices) > 1 else ""
            body = f"Mounted device{plural}: {', '.join(self.descriptions)}."
        super().__init__(_with_context(message, body))


class LuksError(DeviceError):
    """A cryptsetup invocation failed."""

    def __init__(
        self,
        message: str,
        mapping_name: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.mapping_name = mapping_name
        super().__init__(message, cause)

    @classmethod
    def from_failure(cls, cause: CommandFailedError, mapping_name: Optional[str] = None) -> "LuksError":
        if mapping_name:
            return cls(f"LUKS error for mapping {mapping_name}: {cause}", mapping_name, cause)
        return cls(f"LUKS error: {cause}", None, cause)


class LuksMappingFailed(LuksError):
    """luksOpen failed or did not create the expected mapper node."""

    def __init__(self, mapping_name: str, cause: Optional[BaseException] = None) -> None:
        message = f"LUKS mapping {mapping_name} failed."
        if cause is not None:
            message += f"\n{cause}"
        super().__init__(message, mapping_name, cause)
