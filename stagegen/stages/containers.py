"""Fixed options for container and OSTree image variants."""

from __future__ import annotations

from typing import Any

from .constants import EFI_MOUNTPOINT, EFI_MOUNTPOINT_MODE, NGINX_PID_FILE


def nginx_config_stage_options(path: str, html_root: str, listen: str) -> dict[str, Any]:
    # unprivileged container: stay in the foreground, pid file in /tmp
    return {
        "path": path,
        "config": {
            "listen": listen,
            "root": html_root,
            "daemon": False,
            "pid": NGINX_PID_FILE,
        },
    }


def chmod_stage_options(path: str, mode: str, recursive: bool) -> dict[str, Any]:
    return {
        "items": {
            path: {"mode": mode, "recursive": recursive},
        },
    }


def ostree_config_stage_options(repo: str, read_only: bool) -> dict[str, Any]:
    return {
        "repo": repo,
        "config": {
            "sysroot": {
                "readonly": read_only,
                "bootloader": "none",
            },
        },
    }


def efi_mkdir_stage_options() -> dict[str, Any]:
    return {
        "paths": [
            {"path": EFI_MOUNTPOINT, "mode": EFI_MOUNTPOINT_MODE},
        ],
    }
