"""Bootable ISO stage options.

Two ISO flavors are supported:
- bootiso.mono: hybrid BIOS/UEFI anaconda installer ISO driven by a kickstart
- grub2.iso: network/live boot ISO that writes a disk image to a device
plus the discinfo metadata and the xorrisofs stage assembling the ISO file.
"""

from __future__ import annotations

from typing import Any, Optional

from stagegen.config.settings import get_str
from stagegen.logging import LoggerFactory

from .constants import (
    BCJ_FILTERS,
    EFI_ARCHITECTURES,
    GRUB_ISO_KERNEL_OPTS,
    GRUB_ISO_KERNEL_OPTS_TRAILER,
    ISO_EFI_BOOT_IMAGE,
    ISO_ROOTFS_COMPRESSION,
    ISO_ROOTFS_SIZE,
    ISO_SYSID,
    ISOHYBRID_MBR,
    ISOLINUX_ARCHITECTURES,
    ISOLINUX_BOOT_CATALOG,
    ISOLINUX_BOOT_IMAGE,
    KICKSTART_PATH,
)
from .exceptions import InvalidInputError, UnsupportedArchitectureError

BOOTISO_MONO_STAGE = "org.osbuild.bootiso.mono"
GRUB2_ISO_STAGE = "org.osbuild.grub2.iso"

log = LoggerFactory.for_iso()


def efi_architectures(arch: str, stage_type: str = "") -> list[str]:
    """EFI architecture tokens for ``arch``.

    Raises:
        UnsupportedArchitectureError: If arch has no EFI mapping
    """
    try:
        return list(EFI_ARCHITECTURES[arch])
    except KeyError:
        raise UnsupportedArchitectureError(arch, stage_type) from None


def bcj_filter(arch: str) -> Optional[str]:
    """xz BCJ filter for ``arch``, None when xz has none for it."""
    return BCJ_FILTERS.get(arch)


def bootiso_mono_stage_options(
    kernel_version: str,
    arch: str,
    vendor: str,
    product: str,
    os_version: str,
    isolabel: str,
) -> dict[str, Any]:
    """Options for a hybrid BIOS/UEFI installer ISO tree.

    Raises:
        UnsupportedArchitectureError: If arch is not x86_64 or aarch64
    """
    architectures = efi_architectures(arch, BOOTISO_MONO_STAGE)

    compression_options: dict[str, str] = {}
    bcj = bcj_filter(arch)
    if bcj:
        compression_options["bcj"] = bcj

    isolinux = arch in ISOLINUX_ARCHITECTURES
    log.debug(f"bootiso.mono {arch}: efi={architectures} isolinux={isolinux}")

    return {
        "product": {"name": product, "version": os_version},
        "isolabel": isolabel,
        "kernel": kernel_version,
        "kernel_opts": f"inst.ks=hd:LABEL={isolabel}:{KICKSTART_PATH}",
        "efi": {"architectures": architectures, "vendor": vendor},
        "isolinux": {"enabled": isolinux, "debug": False},
        "templates": get_str("bootiso_templates"),
        "rootfs": {
            "size": ISO_ROOTFS_SIZE,
            "compression": {
                "method": ISO_ROOTFS_COMPRESSION,
                "options": compression_options,
            },
        },
    }


def grub_iso_kernel_opts(install_device: str, isolabel: str) -> list[str]:
    opts = list(GRUB_ISO_KERNEL_OPTS)
    opts.append(f"edge.liveiso={isolabel}")
    opts.append(f"coreos.inst.install_dev={install_device}")
    opts.extend(GRUB_ISO_KERNEL_OPTS_TRAILER)
    return opts


def grub_iso_stage_options(
    install_device: str,
    kernel_version: str,
    arch: str,
    vendor: str,
    product: str,
    os_version: str,
    isolabel: str,
) -> dict[str, Any]:
    """Options for a grub2 booted ISO that installs to ``install_device``.

    Raises:
        UnsupportedArchitectureError: If arch is not x86_64 or aarch64
    """
    architectures = efi_architectures(arch, GRUB2_ISO_STAGE)
    return {
        "product": {"name": product, "version": os_version},
        "isolabel": isolabel,
        "kernel": {
            "dir": get_str("kernel_image_dir"),
            "opts": grub_iso_kernel_opts(install_device, isolabel),
        },
        "architectures": architectures,
        "vendor": vendor,
    }


def discinfo_stage_options(arch: str, release: Optional[str] = None) -> dict[str, Any]:
    return {
        "basearch": arch,
        "release": release or get_str("discinfo_release"),
    }


def volume_id(isolabel: str, arch: str) -> str:
    """Fill the architecture into an ISO label template such as "RHEL-8-6-0-BaseOS-%s".

    Raises:
        InvalidInputError: If the template has no single %s placeholder
    """
    try:
        return isolabel % arch
    except (TypeError, ValueError) as error:
        raise InvalidInputError(
            f"ISO label template {isolabel!r} must contain one %s: {error}"
        ) from error


def xorrisofs_stage_options(
    filename: str, isolabel: str, arch: str, isolinux: bool
) -> dict[str, Any]:
    options: dict[str, Any] = {
        "filename": filename,
        "volid": volume_id(isolabel, arch),
        "sysid": ISO_SYSID,
        "efi": ISO_EFI_BOOT_IMAGE,
    }
    if isolinux:
        options["boot"] = {
            "image": ISOLINUX_BOOT_IMAGE,
            "catalog": ISOLINUX_BOOT_CATALOG,
        }
        options["isohybridmbr"] = ISOHYBRID_MBR
    return options
