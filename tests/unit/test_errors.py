"""Unit tests for the device error hierarchy."""

from __future__ import annotations

import pytest

from fmount.errors import (
    DeviceError,
    LuksError,
    LuksMappingFailed,
    MountedDevice,
    NoSuchDevice,
    TooManyDevices,
)
from fmount.runner import CommandFailedError


class TestMessages:
    """Test rendered error messages."""

    def test_no_such_device(self):
        assert str(NoSuchDevice("sdz")) == "No such device: sdz"

    def test_no_such_device_with_context(self):
        error = NoSuchDevice("sdz", "Cannot format.")
        assert str(error) == "Cannot format.\nNo such device: sdz"
        assert error.device == "sdz"

    def test_too_many_devices_defaults_to_paths(self):
        error = TooManyDevices(["/dev/sda1", "/dev/disk/by-label/sda1"])
        assert str(error) == "Matching devices: /dev/sda1, /dev/disk/by-label/sda1."
        assert error.descriptions == error.devices

    def test_too_many_devices_with_descriptions(self):
        error = TooManyDevices(["/dev/a", "/dev/b"], ["a", "USB (b)"], "Ambiguous name.")
        assert str(error) == "Ambiguous name.\nMatching devices: a, USB (b)."

    @pytest.mark.parametrize(
        "devices,expected",
        [
            ([], "No mounted device."),
            (["/dev/sdb1"], "Mounted device: /dev/sdb1."),
            (["/dev/sdb1", "/dev/sdb2"], "Mounted devices: /dev/sdb1, /dev/sdb2."),
        ],
    )
    def test_mounted_device(self, devices, expected):
        assert str(MountedDevice(devices)) == expected

    def test_mapping_failed_without_cause(self):
        error = LuksMappingFailed("_dev_sdb1")
        assert str(error) == "LUKS mapping _dev_sdb1 failed."
        assert error.returncode is None
        assert error.stderr == ""


class TestCauses:
    """Test that underlying command failures stay reachable."""

    def test_luks_error_from_failure(self):
        failure = CommandFailedError(["cryptsetup", "luksFormat", "/dev/sdb1"], 1, stderr="Cannot format.")
        error = LuksError.from_failure(failure)

        assert error.cause is failure
        assert error.__cause__ is failure
        assert error.mapping_name is None
        assert error.returncode == 1
        assert error.stderr == "Cannot format."
        assert str(error) == (
            "LUKS error: Command 'cryptsetup luksFormat /dev/sdb1' failed with error code 1.\nCannot format."
        )

    def test_luks_error_names_mapping(self):
        failure = CommandFailedError(["cryptsetup", "luksClose", "_dev_sdb1"], 4)
        error = LuksError.from_failure(failure, "_dev_sdb1")
        assert str(error).startswith("LUKS error for mapping _dev_sdb1: Command")

    def test_mapping_failed_with_cause(self):
        failure = CommandFailedError(["cryptsetup", "luksOpen"], 2, stderr="No key available.")
        error = LuksMappingFailed("_dev_sdb1", failure)
        assert str(error).splitlines() == [
            "LUKS mapping _dev_sdb1 failed.",
            "Command 'cryptsetup luksOpen' failed with error code 2.",
            "No key available.",
        ]
        assert error.returncode == 2

    def test_hierarchy(self):
        for error in (NoSuchDevice("x"), TooManyDevices([]), MountedDevice([]), LuksMappingFailed("m")):
            assert isinstance(error, DeviceError)
        assert issubclass(LuksMappingFailed, LuksError)

    def test_cause_that_is_not_a_command(self):
        cause = OSError("boom")
        error = DeviceError("failed", cause)
        assert error.__cause__ is cause
        assert error.returncode is None
