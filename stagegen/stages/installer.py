"""Installer and initramfs stage options.

Options for the stages that build an installer runtime: kickstart files,
the anaconda module set, lorax post-install templates, the dracut module
list and the buildstamp read by anaconda.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from stagegen.config.settings import get_str
from stagegen.logging import LoggerFactory

from .constants import (
    ANACONDA_KICKSTART_MODULES,
    BUILDSTAMP_PATH,
    DRACUT_ARCH_MODULES,
    DRACUT_BASE_MODULES,
    KICKSTART_PATH,
)

log = LoggerFactory.for_installer()


def tar_kickstart_stage_options(tar_url: str) -> dict[str, Any]:
    """Kickstart installing the image from a live tarball."""
    return {
        "path": KICKSTART_PATH,
        "liveimg": {"url": tar_url},
    }


def ostree_kickstart_stage_options(ostree_url: str, ostree_ref: str) -> dict[str, Any]:
    """Kickstart deploying an OSTree commit.

    The commit is pulled from a repository embedded in the ISO, so GPG
    verification is off.
    """
    return {
        "path": KICKSTART_PATH,
        "ostree": {
            "osname": get_str("ostree_osname"),
            "url": ostree_url,
            "ref": ostree_ref,
            "gpg": False,
        },
    }


def anaconda_stage_options() -> dict[str, Any]:
    return {"kickstart-modules": list(ANACONDA_KICKSTART_MODULES)}


def lorax_script_stage_options(arch: str) -> dict[str, Any]:
    return {
        "path": get_str("lorax_template"),
        "basearch": arch,
    }


def dracut_modules(arch: str, additional_modules: Optional[Iterable[str]] = None) -> list[str]:
    """Baseline modules, then architecture modules, then caller extras."""
    modules = list(DRACUT_BASE_MODULES)
    modules.extend(DRACUT_ARCH_MODULES.get(arch, ()))
    if additional_modules:
        modules.extend(additional_modules)
    return modules


def dracut_stage_options(
    kernel_version: str,
    arch: str,
    additional_modules: Optional[Iterable[str]] = None,
) -> dict[str, Any]:
    modules = dracut_modules(arch, additional_modules)
    log.debug(f"dracut: {len(modules)} modules for {arch}")
    return {
        "kernel": [kernel_version],
        "modules": modules,
        "install": [BUILDSTAMP_PATH],
    }


def buildstamp_stage_options(
    arch: str, product: str, os_version: str, variant: str
) -> dict[str, Any]:
    return {
        "arch": arch,
        "product": product,
        "version": os_version,
        "variant": variant,
        "final": True,
    }
