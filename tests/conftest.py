"""
Pytest configuration and shared fixtures for stagegen tests.

This module provides the partition tables and blueprint customizations used
across test modules.
"""

from typing import Any, Dict

import pytest

from stagegen.domain.models import (
    Customizations,
    Filesystem,
    FirewallCustomization,
    FirewallServices,
    GroupCustomization,
    KernelCustomization,
    Partition,
    PartitionTable,
    ServicesCustomization,
    UserCustomization,
)
from stagegen.stages.registry import BuildContext


ROOT_UUID = "6e4ff95f-f662-45ee-a82a-bdf44a2d0b75"
BOOT_UUID = "0194fdc2-fa2f-4cc0-81d3-ff12045b73c8"
EFI_UUID = "7B77-95E7"
PT_UUID = "d209c89e-ea5e-4fbd-b161-b1cce297e6f0"
BIOS_BOOT_TYPE = "21686148-6449-6E6F-744E-656564454649"
EFI_TYPE = "C12A7328-F81F-11D2-BA4B-00A0C93EC93B"
FS_TYPE = "0FC63DAF-8483-4772-8E79-3D69D8477DE4"

MIB = 1024 * 1024


# ==============================================================================
# Partition Table Fixtures
# ==============================================================================


@pytest.fixture
def bios_partition() -> Partition:
    """BIOS boot partition: part of the layout, never mounted."""
    return Partition(start=MIB, size=MIB, type=BIOS_BOOT_TYPE, bootable=True)


@pytest.fixture
def efi_partition() -> Partition:
    return Partition(
        start=2 * MIB,
        size=100 * MIB,
        type=EFI_TYPE,
        uuid="68B2905B-DF3E-4FB3-80FA-49D1E773AA33",
        filesystem=Filesystem(type="vfat", uuid=EFI_UUID, mountpoint="/boot/efi"),
    )


@pytest.fixture
def boot_partition() -> Partition:
    return Partition(
        start=102 * MIB,
        size=500 * MIB,
        type=FS_TYPE,
        uuid="CB07C243-BC44-4717-853E-28852021225B",
        filesystem=Filesystem(type="xfs", uuid=BOOT_UUID, mountpoint="/boot"),
    )


@pytest.fixture
def root_partition() -> Partition:
    return Partition(
        start=602 * MIB,
        size=2048 * MIB,
        type=FS_TYPE,
        uuid="6264D520-3FB9-423F-8AB8-7A0A8E3D3562",
        filesystem=Filesystem(type="xfs", uuid=ROOT_UUID, mountpoint="/"),
    )


@pytest.fixture
def simple_pt(bios_partition, efi_partition, root_partition) -> PartitionTable:
    """GPT table without a dedicated /boot partition."""
    return PartitionTable(
        type="gpt",
        uuid=PT_UUID,
        partitions=(bios_partition, efi_partition, root_partition),
    )


@pytest.fixture
def boot_pt(bios_partition, efi_partition, boot_partition, root_partition) -> PartitionTable:
    """GPT table with a dedicated /boot partition after the ESP."""
    return PartitionTable(
        type="gpt",
        uuid=PT_UUID,
        partitions=(bios_partition, efi_partition, boot_partition, root_partition),
    )


@pytest.fixture
def unmountable_pt(bios_partition) -> PartitionTable:
    """Table whose only partition carries no filesystem."""
    return PartitionTable(type="dos", uuid="0x14fc63d2", partitions=(bios_partition,))


@pytest.fixture
def partition_table_dict() -> Dict[str, Any]:
    """Partition table as delivered by the layout planner."""
    return {
        "type": "gpt",
        "uuid": PT_UUID,
        "partitions": [
            {"start": MIB, "size": MIB, "type": BIOS_BOOT_TYPE, "bootable": True},
            {
                "start": 2 * MIB,
                "size": 2048 * MIB,
                "type": FS_TYPE,
                "uuid": "6264D520-3FB9-423F-8AB8-7A0A8E3D3562",
                "filesystem": {"type": "xfs", "uuid": ROOT_UUID, "mountpoint": "/"},
            },
        ],
    }


# ==============================================================================
# Blueprint Fixtures
# ==============================================================================


@pytest.fixture
def customizations() -> Customizations:
    return Customizations(
        users=(
            UserCustomization(
                name="alice",
                password="$6$rounds=4096$saltsalt$hashedhashedhashed",
                key="ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIHxq alice@example.com",
                groups=("wheel",),
                uid=1000,
            ),
            UserCustomization(name="bob", shell="/bin/zsh"),
        ),
        groups=(GroupCustomization(name="devs", gid=2000), GroupCustomization(name="ops")),
        firewall=FirewallCustomization(
            ports=("22:tcp", "8080:tcp"),
            services=FirewallServices(enabled=("http",), disabled=("telnet",)),
        ),
        services=ServicesCustomization(enabled=("cockpit.socket",), disabled=("kdump",)),
        kernel=KernelCustomization(append="nosmt=force"),
    )


@pytest.fixture
def build_context(boot_pt, customizations) -> BuildContext:
    return BuildContext(
        arch="x86_64", partition_table=boot_pt, customizations=customizations
    )


@pytest.fixture(autouse=True)
def default_settings(tmp_path, monkeypatch):
    """Run every test against the built-in settings, not the user's file."""
    from stagegen.config import settings

    monkeypatch.setattr(settings, "SETTINGS_PATH", tmp_path / "no-settings.json")
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)
    yield
    settings.settings_store.values = dict(settings.DEFAULT_SETTINGS)
