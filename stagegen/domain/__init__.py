"""Domain models for stage option generation.

This package contains the frozen input types handed to the generators:
partition tables from the layout planner and blueprint customizations.
"""

from __future__ import annotations

from .models import (
    Customizations,
    Filesystem,
    FirewallCustomization,
    FirewallServices,
    GroupCustomization,
    KernelCustomization,
    Partition,
    PartitionTable,
    RepoConfig,
    ServicesCustomization,
    UserCustomization,
)


__all__ = [
    "Customizations",
    "Filesystem",
    "FirewallCustomization",
    "FirewallServices",
    "GroupCustomization",
    "KernelCustomization",
    "Partition",
    "PartitionTable",
    "RepoConfig",
    "ServicesCustomization",
    "UserCustomization",
]
