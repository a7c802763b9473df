"""Bootloader stage options.

Covers the grub2 configuration stage, the grub2 core image installer used
for BIOS boot from a raw disk, the zipl installer for s390x and the kernel
command line stage.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from stagegen.domain.models import (
    BOOT_MOUNTPOINT,
    ROOT_MOUNTPOINT,
    KernelCustomization,
    Partition,
    PartitionTable,
)
from stagegen.logging import LoggerFactory

from .constants import SAVED_ENTRY_MACHINE_ID
from .exceptions import InvalidIdentifierError, MissingPartitionError

GRUB2_STAGE = "org.osbuild.grub2"
GRUB2_INST_STAGE = "org.osbuild.grub2.inst"
ZIPL_INST_STAGE = "org.osbuild.zipl.inst"

log = LoggerFactory.for_bootloader()


def parse_fs_uuid(value: str) -> str:
    """Parse a filesystem UUID and return its canonical form.

    Raises:
        InvalidIdentifierError: If value is not a valid UUID
    """
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError, AttributeError) as error:
        raise InvalidIdentifierError(value, str(error)) from error


def saved_entry(kernel_version: str) -> str:
    """grub2 saved_entry making ``kernel_version`` the default boot entry."""
    return f"{SAVED_ENTRY_MACHINE_ID}-{kernel_version}"


def grub2_stage_options(
    root_partition: Optional[Partition],
    boot_partition: Optional[Partition],
    kernel_options: str,
    kernel: Optional[KernelCustomization],
    kernel_version: str,
    uefi: bool,
    legacy: str,
    vendor: str,
    install: bool,
) -> dict[str, Any]:
    """Options for the grub2 stage.

    Args:
        root_partition: Partition mounted at /, required
        boot_partition: Dedicated /boot partition, if any
        kernel_options: Base kernel command line
        kernel: Blueprint kernel customization, its append string is added
            to the command line
        kernel_version: Installed kernel, made the default boot entry
        uefi: Configure for UEFI instead of legacy BIOS boot
        legacy: Legacy platform (e.g. "i386-pc"), used when not uefi and
            omitted when empty
        vendor: EFI vendor directory name
        install: Install the EFI binaries from the vendor directory

    Raises:
        MissingPartitionError: If root_partition is None
        InvalidIdentifierError: If a filesystem UUID cannot be parsed
    """
    if root_partition is None or root_partition.filesystem is None:
        raise MissingPartitionError(GRUB2_STAGE, ROOT_MOUNTPOINT)

    options: dict[str, Any] = {
        "root_fs_uuid": parse_fs_uuid(root_partition.filesystem.uuid),
    }
    if boot_partition is not None and boot_partition.filesystem is not None:
        options["boot_fs_uuid"] = parse_fs_uuid(boot_partition.filesystem.uuid)

    if kernel is not None and kernel.append:
        kernel_options = f"{kernel_options} {kernel.append}"
    options["kernel_opts"] = kernel_options

    if uefi:
        options["uefi"] = {"vendor": vendor, "install": install}
    elif legacy:
        options["legacy"] = legacy

    if kernel_version:
        options["saved_entry"] = saved_entry(kernel_version)

    return options


def grub2_inst_stage_options(
    filename: str, partition_table: PartitionTable, platform: str
) -> dict[str, Any]:
    """Options for writing the grub2 core image into the disk image.

    The prefix is where grub looks for its modules and config, relative to
    the boot filesystem: a dedicated /boot partition holds them at /grub2,
    otherwise they live under /boot/grub2 of the root filesystem.

    Raises:
        MissingPartitionError: If neither /boot nor / is in the table
    """
    boot_index = partition_table.require_boot_partition_index(GRUB2_INST_STAGE)
    boot_fs = partition_table.partitions[boot_index].filesystem

    prefix_path = "/boot/grub2"
    if boot_fs.mountpoint == BOOT_MOUNTPOINT:
        prefix_path = "/grub2"
    log.debug(f"grub2 prefix {prefix_path} on partition {boot_index}")

    return {
        "filename": filename,
        "platform": platform,
        "location": partition_table.partitions[0].start,
        "core": {
            "type": "mkimage",
            "partlabel": partition_table.type,
            "filesystem": boot_fs.type,
        },
        "prefix": {
            "type": "partition",
            "partlabel": partition_table.type,
            "number": boot_index,
            "path": prefix_path,
        },
    }


def zipl_inst_stage_options(
    kernel: str, partition_table: PartitionTable
) -> dict[str, Any]:
    """Options for the zipl boot loader installer (s390x).

    Raises:
        MissingPartitionError: If neither /boot nor / is in the table
    """
    boot_index = partition_table.require_boot_partition_index(ZIPL_INST_STAGE)
    return {
        "kernel": kernel,
        "location": partition_table.partitions[boot_index].start,
    }


def kernel_cmdline_stage_options(root_uuid: str, kernel_options: str) -> dict[str, Any]:
    return {
        "root_fs_uuid": root_uuid,
        "kernel_opts": kernel_options,
    }
