"""Options projected straight from blueprint customizations and repo metadata."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from stagegen.domain.models import (
    FirewallCustomization,
    RepoConfig,
    ServicesCustomization,
)

from .constants import SELINUX_FILE_CONTEXTS, SELINUX_INSTALL_EXEC_LABELS
from .records import omit_unset


def rpm_stage_options(repos: Iterable[RepoConfig]) -> dict[str, Any]:
    """GPG keys of all repositories that have one."""
    gpg_keys = [repo.gpgkey for repo in repos if repo.gpgkey]
    return omit_unset({"gpgkeys": gpg_keys})


def selinux_stage_options(label_cp: bool = False) -> dict[str, Any]:
    """Options for the selinux relabel stage.

    With ``label_cp`` the cp and tar binaries get install_exec_t so they
    keep file labels when used from the build root.
    """
    options: dict[str, Any] = {"file_contexts": SELINUX_FILE_CONTEXTS}
    if label_cp:
        options["labels"] = dict(SELINUX_INSTALL_EXEC_LABELS)
    return options


def firewall_stage_options(firewall: FirewallCustomization) -> dict[str, Any]:
    options: dict[str, Any] = {"ports": list(firewall.ports)}
    if firewall.services is not None:
        options["enabled_services"] = list(firewall.services.enabled)
        options["disabled_services"] = list(firewall.services.disabled)
    return omit_unset(options)


def systemd_stage_options(
    enabled_services: Iterable[str],
    disabled_services: Iterable[str],
    services: Optional[ServicesCustomization] = None,
    target: Optional[str] = None,
) -> dict[str, Any]:
    """Image type defaults first, then the blueprint's own services."""
    enabled = list(enabled_services)
    disabled = list(disabled_services)
    if services is not None:
        enabled.extend(services.enabled)
        disabled.extend(services.disabled)
    return omit_unset(
        {
            "enabled_services": enabled,
            "disabled_services": disabled,
            "default_target": target or None,
        }
    )
