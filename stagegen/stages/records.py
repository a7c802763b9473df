"""Stage records handed to the pipeline assembler.

A stage is tagged by its engine type (``org.osbuild.grub2`` and so on) and
carries a flat options dict using the exact field names the build engine
reads. Devices, mounts and inputs are only present on stages that need them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Stage:
    type: str
    options: dict[str, Any]
    inputs: Optional[dict[str, Any]] = None
    devices: Optional[dict[str, Any]] = None
    mounts: Optional[list[dict[str, Any]]] = None

    def to_dict(self) -> dict[str, Any]:
        stage: dict[str, Any] = {"type": self.type}
        if self.inputs is not None:
            stage["inputs"] = self.inputs
        if self.devices is not None:
            stage["devices"] = self.devices
        if self.mounts is not None:
            stage["mounts"] = self.mounts
        stage["options"] = self.options
        return stage


def omit_unset(record: dict[str, Any]) -> dict[str, Any]:
    """Drop optional fields that were never set.

    None values and empty lists/dicts are removed; False, 0 and empty
    strings are kept since the engine treats them as explicit values.
    """
    return {
        key: value
        for key, value in record.items()
        if value is not None and value != [] and value != {}
    }
