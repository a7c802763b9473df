"""Partition table to device and mount resolution.

This module turns a planned partition table into:
- sfdisk options that write the table to the image file
- loopback devices exposing each partition of the image file
- mounts for a copy stage that fills the filesystems from a tree
"""

from __future__ import annotations

import posixpath
from typing import Any, Callable

from stagegen.domain.models import Partition, PartitionTable
from stagegen.logging import LoggerFactory

from .exceptions import InvalidDeviceError, UnsupportedFilesystemError
from .records import Stage, omit_unset

LOOPBACK_DEVICE_TYPE = "org.osbuild.loopback"
ROOT_DEVICE_NAME = "root"

log = LoggerFactory.for_disk()


def loopback_device(filename: str, start: int = 0, size: int = 0) -> dict[str, Any]:
    """Device exposing ``size`` units of ``filename`` from ``start``."""
    return {
        "type": LOOPBACK_DEVICE_TYPE,
        "options": {"filename": filename, "start": start, "size": size},
    }


def _mount(mount_type: str, name: str, source: str, target: str) -> dict[str, str]:
    return {"name": name, "type": mount_type, "source": source, "target": target}


def xfs_mount(name: str, source: str, target: str) -> dict[str, str]:
    return _mount("org.osbuild.xfs", name, source, target)


def fat_mount(name: str, source: str, target: str) -> dict[str, str]:
    return _mount("org.osbuild.fat", name, source, target)


def ext4_mount(name: str, source: str, target: str) -> dict[str, str]:
    return _mount("org.osbuild.ext4", name, source, target)


def btrfs_mount(name: str, source: str, target: str) -> dict[str, str]:
    return _mount("org.osbuild.btrfs", name, source, target)

MOUNT_CONSTRUCTORS: dict[str, Callable[[str, str, str], dict[str, str]]] = {
    "xfs": xfs_mount,
    "vfat": fat_mount,
    "ext4": ext4_mount,
    "btrfs": btrfs_mount,
}


def device_name(mountpoint: str) -> str:
    """Logical device name for a mountpoint: its last path segment.

    "/" has no last segment and becomes "root".
    """
    name = posixpath.basename(mountpoint.rstrip("/"))
    return name or ROOT_DEVICE_NAME


def partition_mount(partition: Partition, name: str) -> dict[str, str]:
    fs = partition.filesystem
    constructor = MOUNT_CONSTRUCTORS.get(fs.type)
    if constructor is None:
        raise UnsupportedFilesystemError(fs.type, fs.mountpoint)
    return constructor(name, name, fs.mountpoint)


def copy_fs_tree_options(
    input_name: str,
    partition_table: PartitionTable,
    device: dict[str, Any],
) -> tuple[dict[str, Any], dict[str, Any], list[dict[str, str]]]:
    """Create options, devices and mounts for a copy stage.

    Args:
        input_name: Name of the tree input to copy from
        partition_table: Planned partition table of the image
        device: Loopback device for the whole image file

    Returns:
        Tuple of (options, devices, mounts); mounts are ordered so every
        parent directory is mounted before its children.

    Raises:
        InvalidDeviceError: If device is not a loopback device
        UnsupportedFilesystemError: If a partition has an unknown filesystem
    """
    if device.get("type") != LOOPBACK_DEVICE_TYPE:
        raise InvalidDeviceError(device.get("type", ""))
    filename = device.get("options", {}).get("filename", "")

    devices: dict[str, Any] = {}
    mounts: list[dict[str, str]] = []
    for partition in partition_table.partitions:
        if partition.filesystem is None:
            # BIOS boot and similar partitions are never mounted
            continue
        name = device_name(partition.filesystem.mountpoint)
        devices[name] = loopback_device(filename, partition.start, partition.size)
        mounts.append(partition_mount(partition, name))

    # "/" < "/boot" < "/boot/efi": a parent always sorts before its children
    mounts.sort(key=lambda mount: mount["target"])
    log.debug(
        f"Resolved {len(mounts)} mounts: "
        + ", ".join(mount["target"] for mount in mounts)
    )

    options = {
        "paths": [
            {
                "from": f"input://{input_name}/",
                "to": "mount://root/",
            }
        ]
    }
    return options, devices, mounts


def copy_stage(
    input_name: str,
    input_pipeline: str,
    partition_table: PartitionTable,
    device: dict[str, Any],
) -> Stage:
    """Copy stage filling the image filesystems from another pipeline's tree."""
    options, devices, mounts = copy_fs_tree_options(input_name, partition_table, device)
    inputs = {
        input_name: {
            "type": "org.osbuild.tree",
            "origin": "org.osbuild.pipeline",
            "references": [f"name:{input_pipeline}"],
        }
    }
    return Stage(
        type="org.osbuild.copy",
        options=options,
        inputs=inputs,
        devices=devices,
        mounts=mounts,
    )


def sfdisk_stage_options(partition_table: PartitionTable) -> dict[str, Any]:
    """Options for an sfdisk stage writing ``partition_table`` to the image."""
    partitions = [
        omit_unset(
            {
                "bootable": partition.bootable or None,
                "size": partition.size,
                "start": partition.start,
                "type": partition.type or None,
                "uuid": partition.uuid or None,
            }
        )
        for partition in partition_table.partitions
    ]
    return omit_unset(
        {
            "label": partition_table.type,
            "uuid": partition_table.uuid or None,
            "partitions": partitions,
        }
    )
