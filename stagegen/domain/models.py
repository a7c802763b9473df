"""Input domain model for stage option generation.

Partition tables come from the layout planner and customizations from the
validated blueprint. Every object here is built right before a generator call
and thrown away afterwards, so all of them are frozen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from stagegen.stages.exceptions import MissingPartitionError


ROOT_MOUNTPOINT = "/"
BOOT_MOUNTPOINT = "/boot"


# ==============================================================================
# Disk Domain
# ==============================================================================


@dataclass(frozen=True)
class Filesystem:
    """A filesystem living on a partition."""

    type: str  # xfs, vfat, ext4 or btrfs
    uuid: str
    mountpoint: str
    label: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Filesystem:
        return cls(
            type=data["type"],
            uuid=data.get("uuid", ""),
            mountpoint=data["mountpoint"],
            label=data.get("label"),
        )


@dataclass(frozen=True)
class Partition:
    """One entry of a partition table.

    Partitions without a filesystem (BIOS boot, PReP) take part in the
    layout but are never mounted.
    """

    start: int = 0  # Offset from the start of the disk
    size: int = 0
    type: str = ""  # Partition type GUID or MBR type code
    bootable: bool = False
    uuid: str = ""
    filesystem: Filesystem | None = None

    @property
    def mountpoint(self) -> str | None:
        if self.filesystem is None:
            return None
        return self.filesystem.mountpoint

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Partition:
        fs_data = data.get("filesystem")
        return cls(
            start=int(data.get("start", 0)),
            size=int(data.get("size", 0)),
            type=data.get("type", ""),
            bootable=bool(data.get("bootable", False)),
            uuid=data.get("uuid", ""),
            filesystem=Filesystem.from_dict(fs_data) if fs_data else None,
        )


@dataclass(frozen=True)
class PartitionTable:
    """A partition table as planned for the target disk image."""

    type: str  # "gpt" or "dos"
    uuid: str = ""
    partitions: tuple[Partition, ...] = ()

    def find_mountpoint(self, mountpoint: str) -> Optional[int]:
        """Index of the first partition mounted at ``mountpoint``."""
        for index, partition in enumerate(self.partitions):
            if partition.mountpoint == mountpoint:
                return index
        return None

    def boot_partition_index(self) -> Optional[int]:
        """Index of the partition holding /boot.

        A dedicated /boot partition wins; without one the root partition
        carries the boot files. Returns None if neither exists.
        """
        index = self.find_mountpoint(BOOT_MOUNTPOINT)
        if index is None:
            index = self.find_mountpoint(ROOT_MOUNTPOINT)
        return index

    def require_boot_partition_index(self, stage_type: str) -> int:
        """Like boot_partition_index() but a missing partition is fatal.

        Raises:
            MissingPartitionError: If no partition is mounted at /boot or /
        """
        index = self.boot_partition_index()
        if index is None:
            raise MissingPartitionError(stage_type, BOOT_MOUNTPOINT)
        return index

    def root_partition(self) -> Partition | None:
        index = self.find_mountpoint(ROOT_MOUNTPOINT)
        return None if index is None else self.partitions[index]

    def boot_partition(self) -> Partition | None:
        index = self.find_mountpoint(BOOT_MOUNTPOINT)
        return None if index is None else self.partitions[index]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PartitionTable:
        """Convert a layout planner dict to a PartitionTable.

        Args:
            data: Dict with keys: type, uuid, partitions

        Raises:
            KeyError: If a partition filesystem lacks type or mountpoint
            ValueError: If start or size cannot be converted to int
        """
        return cls(
            type=data.get("type", ""),
            uuid=data.get("uuid", ""),
            partitions=tuple(
                Partition.from_dict(part) for part in data.get("partitions", [])
            ),
        )


# ==============================================================================
# Blueprint Customization Domain
# ==============================================================================


@dataclass(frozen=True)
class UserCustomization:
    name: str
    description: str | None = None
    password: str | None = None  # Plaintext or already crypted
    key: str | None = None  # SSH public key
    home: str | None = None
    shell: str | None = None
    groups: tuple[str, ...] | None = None
    uid: int | None = None
    gid: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserCustomization:
        groups = data.get("groups")
        return cls(
            name=data["name"],
            description=data.get("description"),
            password=data.get("password"),
            key=data.get("key"),
            home=data.get("home"),
            shell=data.get("shell"),
            groups=tuple(groups) if groups is not None else None,
            uid=data.get("uid"),
            gid=data.get("gid"),
        )


@dataclass(frozen=True)
class GroupCustomization:
    name: str
    gid: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GroupCustomization:
        return cls(name=data["name"], gid=data.get("gid"))


@dataclass(frozen=True)
class FirewallServices:
    enabled: tuple[str, ...] = ()
    disabled: tuple[str, ...] = ()


@dataclass(frozen=True)
class FirewallCustomization:
    ports: tuple[str, ...] = ()  # "22:tcp", "8080-8090:udp"
    services: FirewallServices | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FirewallCustomization:
        services = data.get("services")
        return cls(
            ports=tuple(data.get("ports", ())),
            services=FirewallServices(
                enabled=tuple(services.get("enabled", ())),
                disabled=tuple(services.get("disabled", ())),
            )
            if services is not None
            else None,
        )


@dataclass(frozen=True)
class ServicesCustomization:
    enabled: tuple[str, ...] = ()
    disabled: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ServicesCustomization:
        return cls(
            enabled=tuple(data.get("enabled", ())),
            disabled=tuple(data.get("disabled", ())),
        )


@dataclass(frozen=True)
class KernelCustomization:
    name: str = ""
    append: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> KernelCustomization:
        return cls(name=data.get("name", ""), append=data.get("append", ""))


@dataclass(frozen=True)
class Customizations:
    """The OS customizations section of a blueprint."""

    users: tuple[UserCustomization, ...] = ()
    groups: tuple[GroupCustomization, ...] = ()
    firewall: FirewallCustomization | None = None
    services: ServicesCustomization | None = None
    kernel: KernelCustomization | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Customizations:
        firewall = data.get("firewall")
        services = data.get("services")
        kernel = data.get("kernel")
        return cls(
            users=tuple(UserCustomization.from_dict(u) for u in data.get("user", [])),
            groups=tuple(
                GroupCustomization.from_dict(g) for g in data.get("group", [])
            ),
            firewall=FirewallCustomization.from_dict(firewall)
            if firewall is not None
            else None,
            services=ServicesCustomization.from_dict(services)
            if services is not None
            else None,
            kernel=KernelCustomization.from_dict(kernel) if kernel is not None else None,
        )


# ==============================================================================
# Repository Domain
# ==============================================================================


@dataclass(frozen=True)
class RepoConfig:
    """A package repository as resolved from repository metadata."""

    name: str
    baseurl: str = ""
    gpgkey: str = ""  # ASCII armored key, empty when unsigned
    check_gpg: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RepoConfig:
        return cls(
            name=data["name"],
            baseurl=data.get("baseurl", ""),
            gpgkey=data.get("gpgkey", ""),
            check_gpg=bool(data.get("check_gpg", True)),
        )
