#!/usr/bin/env python3
"""
fmount-dev - inspect block devices and drive their LUKS mappings

- Resolve a device name, label, UUID or link to its device path
- Describe a device (type, filesystem, size, links, encryption)
- Format, open and close LUKS mappings
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import List, Optional

from . import logging_utils
from .config import Config
from .devices import classify, locate, luks, mounts, udev
from .errors import DeviceError


def _load_config(args) -> Config:
    cfg = Config.load(Path(args.config) if args.config else None)
    if args.passphrase_file:
        cfg.passphrase_file = args.passphrase_file
    if args.fake:
        cfg.fake = True
    cfg.verbose = max(cfg.verbose, args.verbose)
    return cfg


def _human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"


def _print_info(info: classify.DeviceInfo, mountpoint: str) -> None:
    print(f"Device: {info.path}")
    print(f"Description: {info.description}")
    print(f"Filesystem: {info.fs_type or 'none'}")
    print(f"Size: {_human_size(info.size_bytes)}")
    flags = [
        name
        for name, value in (
            ("partition", info.is_partition),
            ("disk", info.is_disk),
            ("removable", info.is_removable),
            ("usb", info.is_usb),
            ("mapper", info.is_dm),
            ("encrypted", info.is_encrypted),
        )
        if value
    ]
    print(f"Flags: {', '.join(flags) or 'none'}")
    if mountpoint:
        print(f"Mounted: {mountpoint}")


def cmd_resolve(args, cfg: Config) -> int:
    """Print the device path for a reference"""
    resolution = locate.resolve(args.device, cfg)
    if not resolution.ok:
        print(f"Error: {resolution.error}", file=sys.stderr)
        return 1
    print(resolution.path)
    return 0


def cmd_info(args, cfg: Config) -> int:
    """Describe a device"""
    path = locate.search_dev_path(args.device, cfg)
    info = classify.describe(path, cfg)
    mountpoint = mounts.find_mountpoint(path, config=cfg)
    if args.json:
        data = dataclasses.asdict(info)
        data["mountpoint"] = mountpoint
        print(json.dumps(data, indent=2))
        return 0
    _print_info(info, mountpoint)
    return 0


def cmd_list(args, cfg: Config) -> int:
    """List block devices known to udev"""
    nodes = udev.block_devices(include_partitions=not args.disks)
    if not nodes:
        print("No block devices detected")
        return 0
    for node in nodes:
        info = classify.describe(node, cfg)
        print(f"{info.description}  [{info.fs_type or 'none'}, {_human_size(info.size_bytes)}]")
    return 0


def cmd_format(args, cfg: Config) -> int:
    """Create a LUKS header on a device"""
    path = locate.search_dev_path(args.device, cfg)
    mounts.check_unmounted([path], cfg)
    luks.luks_format(path, cfg)
    return 0


def cmd_open(args, cfg: Config) -> int:
    """Open a LUKS device"""
    path = locate.search_dev_path(args.device, cfg)
    dmdev = luks.luks_open(path, cfg.passphrase_file, args.name, cfg)
    print(dmdev)
    return 0


def cmd_close(args, cfg: Config) -> int:
    """Close a LUKS mapping"""
    name = args.mapping
    resolution = locate.resolve(args.mapping, cfg)
    if resolution.ok and classify.is_encrypted(resolution.path, cfg):
        name = luks.dm_mapping_name(resolution.path, cfg)
    luks.luks_close(name, cfg)
    return 0


def cmd_correlate(args, cfg: Config) -> int:
    """Show an encrypted device and its mapping"""
    path = locate.search_dev_path(args.device, cfg)
    pair = luks.correlate(path, cfg)
    print(f"mapped={pair.mapped}")
    print(f"raw={pair.raw}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fmount-dev",
        description="Inspect block devices and manage LUKS mappings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fmount-dev resolve MY_LABEL            Print the device holding a label
  fmount-dev info sdb1                   Describe a device
  fmount-dev open sdb1                   Open /dev/mapper/_dev_sdb1
  fmount-dev close _dev_sdb1             Close the mapping
""",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (repeat for debug output)")
    parser.add_argument("-c", "--config", help="Configuration file")
    parser.add_argument("-p", "--passphrase-file",
                        help="Read the LUKS passphrase from this file instead of prompting")
    parser.add_argument("-n", "--fake", action="store_true",
                        help="Print cryptsetup commands without running them")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    resolve_parser = subparsers.add_parser("resolve", help="Print the device path for a reference")
    resolve_parser.add_argument("device", help="Device name, label, UUID or path")
    resolve_parser.set_defaults(func=cmd_resolve)

    info_parser = subparsers.add_parser("info", help="Describe a device")
    info_parser.add_argument("device", help="Device name, label, UUID or path")
    info_parser.add_argument("-j", "--json", action="store_true", help="Output in JSON format")
    info_parser.set_defaults(func=cmd_info)

    list_parser = subparsers.add_parser("list", help="List block devices")
    list_parser.add_argument("-d", "--disks", action="store_true", help="Only list whole disks")
    list_parser.set_defaults(func=cmd_list)

    format_parser = subparsers.add_parser("format", help="Create a LUKS header on a device")
    format_parser.add_argument("device", help="Device name, label, UUID or path")
    format_parser.set_defaults(func=cmd_format)

    open_parser = subparsers.add_parser("open", help="Open a LUKS device")
    open_parser.add_argument("device", help="Device name, label, UUID or path")
    open_parser.add_argument("--name", help="Mapping name (default: _dev_<device name>)")
    open_parser.set_defaults(func=cmd_open)

    close_parser = subparsers.add_parser("close", help="Close a LUKS mapping")
    close_parser.add_argument("mapping", help="Mapping name, or the encrypted device")
    close_parser.set_defaults(func=cmd_close)

    correlate_parser = subparsers.add_parser("correlate", help="Show an encrypted device and its mapping")
    correlate_parser.add_argument("device", help="Encrypted device or mapping")
    correlate_parser.set_defaults(func=cmd_correlate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cfg = _load_config(args)
    logging_utils.setup_logging(logging_utils.level_for_verbosity(cfg.verbose))

    try:
        return args.func(args, cfg)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130
    except DeviceError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
