"""Disk image format conversion options."""

from __future__ import annotations

from typing import Any

from .exceptions import UnsupportedFormatError

QCOW2 = "qcow2"
VPC = "vpc"
VMDK = "vmdk"

QEMU_FORMATS = (QCOW2, VPC, VMDK)


def qemu_format_options(image_format: str, compat: str = "") -> dict[str, Any]:
    """Format record for the qemu stage.

    Only qcow2 carries a compatibility level ("0.10", "1.1"), and only when
    one is given; it is ignored for the other formats.

    Raises:
        UnsupportedFormatError: If image_format is not qcow2, vpc or vmdk
    """
    if image_format == QCOW2:
        if compat:
            return {"type": QCOW2, "compat": compat}
        return {"type": QCOW2}
    if image_format in (VPC, VMDK):
        return {"type": image_format}
    raise UnsupportedFormatError(image_format)


def qemu_stage_options(filename: str, image_format: str, compat: str = "") -> dict[str, Any]:
    return {
        "filename": filename,
        "format": qemu_format_options(image_format, compat),
    }
