"""Settings storage for generator defaults.

Literals that track a distro release rather than the build engine's schema
live here so a deployment can override them without touching generators.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


SETTINGS_PATH = Path(
    os.environ.get(
        "STAGEGEN_SETTINGS_PATH",
        Path.home() / ".config" / "stagegen" / "settings.json",
    )
)

# Default values - use these constants instead of hardcoding values elsewhere
DEFAULT_DISCINFO_RELEASE = "202010217.n.0"
DEFAULT_OSTREE_OSNAME = "rhel"
DEFAULT_BOOTISO_TEMPLATES = "80-rhel"
DEFAULT_LORAX_TEMPLATE = "99-generic/runtime-postinstall.tmpl"
DEFAULT_KERNEL_IMAGE_DIR = "/images/pxeboot"

DEFAULT_SETTINGS: dict[str, Any] = {
    "discinfo_release": DEFAULT_DISCINFO_RELEASE,
    "ostree_osname": DEFAULT_OSTREE_OSNAME,
    "bootiso_templates": DEFAULT_BOOTISO_TEMPLATES,
    "lorax_template": DEFAULT_LORAX_TEMPLATE,
    "kernel_image_dir": DEFAULT_KERNEL_IMAGE_DIR,
}


@dataclass
class SettingsStore:
    values: dict[str, Any] = field(default_factory=dict)


# Built-in defaults until the CLI loads a settings file
settings_store = SettingsStore(values=dict(DEFAULT_SETTINGS))


def load_settings(path: Path | None = None) -> bool:
    """Merge a settings file over the defaults.

    Missing, unreadable or non-object files leave the defaults in place.
    Returns True when a file was applied.
    """
    path = path or SETTINGS_PATH
    settings_store.values = dict(DEFAULT_SETTINGS)
    if not path.exists():
        return False
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return False
    if not isinstance(data, dict):
        return False
    settings_store.values.update(data)
    return True


def get_setting(key: str, default: Any | None = None) -> Any:
    return settings_store.values.get(key, default)


def get_str(key: str) -> str:
    """Return a string setting, falling back to its built-in default."""
    value = get_setting(key)
    if not isinstance(value, str) or not value:
        return DEFAULT_SETTINGS[key]
    return value

