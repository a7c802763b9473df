"""Dispatch from stage type to generator.

Each builder takes the shared build context (architecture, partition table,
blueprint customizations, repositories) and the per-stage parameters from
the request, and returns a finished Stage. Builders never share or mutate
state, so a batch either renders completely or raises on the first error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from stagegen.domain.models import Customizations, PartitionTable, RepoConfig
from stagegen.logging import LoggerFactory

from . import bootloader, containers, disk, installer, iso, qemu, system, users
from .constants import ISOLINUX_ARCHITECTURES
from .exceptions import InvalidRequestError, MissingPartitionError, UnknownStageError
from .records import Stage


@dataclass(frozen=True)
class BuildContext:
    """Inputs shared by all stages of one image build."""

    arch: str
    partition_table: Optional[PartitionTable] = None
    customizations: Customizations = field(default_factory=Customizations)
    repos: tuple[RepoConfig, ...] = ()


Params = Mapping[str, Any]
StageBuilder = Callable[[BuildContext, Params], Stage]

STAGE_BUILDERS: dict[str, StageBuilder] = {}


def register(stage_type: str) -> Callable[[StageBuilder], StageBuilder]:
    def decorator(builder: StageBuilder) -> StageBuilder:
        STAGE_BUILDERS[stage_type] = builder
        return builder

    return decorator


def _checked(value: Any, key: str, stage_type: str, kind: type) -> Any:
    if not isinstance(value, kind):
        raise InvalidRequestError(
            f"{stage_type} parameter '{key}' must be {kind.__name__}, "
            f"got {type(value).__name__}",
            field=key,
        )
    return value


def _require(params: Params, key: str, stage_type: str, kind: type = str) -> Any:
    try:
        value = params[key]
    except KeyError:
        raise InvalidRequestError(
            f"{stage_type} stage requires parameter '{key}'", field=key
        ) from None
    return _checked(value, key, stage_type, kind)


def _optional(
    params: Params, key: str, stage_type: str, default: Any, kind: type = str
) -> Any:
    value = params.get(key)
    if value is None:
        return default
    return _checked(value, key, stage_type, kind)


def _string_list(params: Params, key: str, stage_type: str) -> tuple[str, ...]:
    value = params.get(key) or ()
    if not isinstance(value, (list, tuple)) or not all(
        isinstance(item, str) for item in value
    ):
        raise InvalidRequestError(
            f"{stage_type} parameter '{key}' must be a list of strings", field=key
        )
    return tuple(value)


def _partition_table(context: BuildContext, stage_type: str) -> PartitionTable:
    if context.partition_table is None:
        raise InvalidRequestError(
            f"{stage_type} stage requires a partition table", field="partition_table"
        )
    return context.partition_table


# ==============================================================================
# Package and system stages
# ==============================================================================


@register("org.osbuild.rpm")
def _rpm(context: BuildContext, params: Params) -> Stage:
    return Stage("org.osbuild.rpm", system.rpm_stage_options(context.repos))


@register("org.osbuild.selinux")
def _selinux(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.selinux"
    return Stage(
        stage_type,
        system.selinux_stage_options(
            _optional(params, "label_cp", stage_type, False, bool)
        ),
    )


@register("org.osbuild.users")
def _users(context: BuildContext, params: Params) -> Stage:
    return Stage(
        "org.osbuild.users", users.users_stage_options(context.customizations.users)
    )


@register("org.osbuild.first-boot")
def _first_boot(context: BuildContext, params: Params) -> Stage:
    users_options = users.users_stage_options(context.customizations.users)
    return Stage(
        "org.osbuild.first-boot", users.users_first_boot_options(users_options)
    )


@register("org.osbuild.groups")
def _groups(context: BuildContext, params: Params) -> Stage:
    return Stage(
        "org.osbuild.groups", users.groups_stage_options(context.customizations.groups)
    )


@register("org.osbuild.firewall")
def _firewall(context: BuildContext, params: Params) -> Stage:
    firewall = context.customizations.firewall
    if firewall is None:
        raise InvalidRequestError(
            "org.osbuild.firewall stage requires a firewall customization",
            field="customizations.firewall",
        )
    return Stage("org.osbuild.firewall", system.firewall_stage_options(firewall))


@register("org.osbuild.systemd")
def _systemd(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.systemd"
    return Stage(
        stage_type,
        system.systemd_stage_options(
            _string_list(params, "enabled_services", stage_type),
            _string_list(params, "disabled_services", stage_type),
            context.customizations.services,
            _optional(params, "default_target", stage_type, None),
        ),
    )


# ==============================================================================
# Installer stages
# ==============================================================================


@register("org.osbuild.buildstamp")
def _buildstamp(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.buildstamp"
    return Stage(
        stage_type,
        installer.buildstamp_stage_options(
            context.arch,
            _require(params, "product", stage_type),
            _require(params, "version", stage_type),
            _optional(params, "variant", stage_type, ""),
        ),
    )


@register("org.osbuild.anaconda")
def _anaconda(context: BuildContext, params: Params) -> Stage:
    return Stage("org.osbuild.anaconda", installer.anaconda_stage_options())


@register("org.osbuild.lorax-script")
def _lorax_script(context: BuildContext, params: Params) -> Stage:
    return Stage(
        "org.osbuild.lorax-script", installer.lorax_script_stage_options(context.arch)
    )


@register("org.osbuild.dracut")
def _dracut(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.dracut"
    return Stage(
        stage_type,
        installer.dracut_stage_options(
            _require(params, "kernel_version", stage_type),
            context.arch,
            _string_list(params, "additional_modules", stage_type),
        ),
    )


@register("org.osbuild.kickstart")
def _kickstart(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.kickstart"
    has_ostree = "ostree_url" in params
    has_tar = "tar_url" in params
    if has_ostree == has_tar:
        raise InvalidRequestError(
            f"{stage_type} stage requires exactly one of 'ostree_url' or 'tar_url'"
        )
    if has_ostree:
        options = installer.ostree_kickstart_stage_options(
            _require(params, "ostree_url", stage_type),
            _require(params, "ostree_ref", stage_type),
        )
    else:
        options = installer.tar_kickstart_stage_options(
            _require(params, "tar_url", stage_type)
        )
    return Stage(stage_type, options)


# ==============================================================================
# ISO stages
# ==============================================================================


@register("org.osbuild.bootiso.mono")
def _bootiso_mono(context: BuildContext, params: Params) -> Stage:
    stage_type = iso.BOOTISO_MONO_STAGE
    return Stage(
        stage_type,
        iso.bootiso_mono_stage_options(
            _require(params, "kernel_version", stage_type),
            context.arch,
            _require(params, "vendor", stage_type),
            _require(params, "product", stage_type),
            _require(params, "version", stage_type),
            _require(params, "isolabel", stage_type),
        ),
    )


@register("org.osbuild.grub2.iso")
def _grub2_iso(context: BuildContext, params: Params) -> Stage:
    stage_type = iso.GRUB2_ISO_STAGE
    return Stage(
        stage_type,
        iso.grub_iso_stage_options(
            _require(params, "install_device", stage_type),
            _require(params, "kernel_version", stage_type),
            context.arch,
            _require(params, "vendor", stage_type),
            _require(params, "product", stage_type),
            _require(params, "version", stage_type),
            _require(params, "isolabel", stage_type),
        ),
    )


@register("org.osbuild.discinfo")
def _discinfo(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.discinfo"
    return Stage(
        stage_type,
        iso.discinfo_stage_options(
            context.arch, _optional(params, "release", stage_type, None)
        ),
    )


@register("org.osbuild.xorrisofs")
def _xorrisofs(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.xorrisofs"
    return Stage(
        stage_type,
        iso.xorrisofs_stage_options(
            _require(params, "filename", stage_type),
            _require(params, "isolabel", stage_type),
            context.arch,
            _optional(
                params,
                "isolinux",
                stage_type,
                context.arch in ISOLINUX_ARCHITECTURES,
                bool,
            ),
        ),
    )


# ==============================================================================
# Disk and bootloader stages
# ==============================================================================


@register("org.osbuild.sfdisk")
def _sfdisk(context: BuildContext, params: Params) -> Stage:
    pt = _partition_table(context, "org.osbuild.sfdisk")
    return Stage("org.osbuild.sfdisk", disk.sfdisk_stage_options(pt))


@register("org.osbuild.copy")
def _copy(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.copy"
    pt = _partition_table(context, stage_type)
    device = _optional(params, "device", stage_type, None, dict)
    if device is None:
        device = disk.loopback_device(_require(params, "filename", stage_type))
    return disk.copy_stage(
        _optional(params, "input_name", stage_type, "root-tree"),
        _require(params, "pipeline", stage_type),
        pt,
        device,
    )


@register("org.osbuild.grub2")
def _grub2(context: BuildContext, params: Params) -> Stage:
    stage_type = bootloader.GRUB2_STAGE
    pt = _partition_table(context, stage_type)
    return Stage(
        stage_type,
        bootloader.grub2_stage_options(
            pt.root_partition(),
            pt.boot_partition(),
            _optional(params, "kernel_options", stage_type, ""),
            context.customizations.kernel,
            _optional(params, "kernel_version", stage_type, ""),
            uefi=_optional(params, "uefi", stage_type, False, bool),
            legacy=_optional(params, "legacy", stage_type, ""),
            vendor=_optional(params, "vendor", stage_type, ""),
            install=_optional(params, "install", stage_type, False, bool),
        ),
    )


@register("org.osbuild.grub2.inst")
def _grub2_inst(context: BuildContext, params: Params) -> Stage:
    stage_type = bootloader.GRUB2_INST_STAGE
    return Stage(
        stage_type,
        bootloader.grub2_inst_stage_options(
            _require(params, "filename", stage_type),
            _partition_table(context, stage_type),
            _require(params, "platform", stage_type),
        ),
    )


@register("org.osbuild.zipl.inst")
def _zipl_inst(context: BuildContext, params: Params) -> Stage:
    stage_type = bootloader.ZIPL_INST_STAGE
    return Stage(
        stage_type,
        bootloader.zipl_inst_stage_options(
            _require(params, "kernel", stage_type),
            _partition_table(context, stage_type),
        ),
    )


@register("org.osbuild.kernel-cmdline")
def _kernel_cmdline(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.kernel-cmdline"
    root_uuid = _optional(params, "root_fs_uuid", stage_type, None)
    if root_uuid is None:
        root = _partition_table(context, stage_type).root_partition()
        if root is None or root.filesystem is None:
            raise MissingPartitionError(stage_type, "/")
        root_uuid = root.filesystem.uuid
    return Stage(
        stage_type,
        bootloader.kernel_cmdline_stage_options(
            root_uuid, _optional(params, "kernel_options", stage_type, "")
        ),
    )


@register("org.osbuild.qemu")
def _qemu(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.qemu"
    return Stage(
        stage_type,
        qemu.qemu_stage_options(
            _require(params, "filename", stage_type),
            _require(params, "format", stage_type),
            _optional(params, "compat", stage_type, ""),
        ),
    )


# ==============================================================================
# Container and OSTree stages
# ==============================================================================


@register("org.osbuild.nginx.conf")
def _nginx_conf(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.nginx.conf"
    return Stage(
        stage_type,
        containers.nginx_config_stage_options(
            _require(params, "path", stage_type),
            _require(params, "html_root", stage_type),
            _require(params, "listen", stage_type),
        ),
    )


@register("org.osbuild.chmod")
def _chmod(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.chmod"
    return Stage(
        stage_type,
        containers.chmod_stage_options(
            _require(params, "path", stage_type),
            _require(params, "mode", stage_type),
            _optional(params, "recursive", stage_type, False, bool),
        ),
    )


@register("org.osbuild.ostree.config")
def _ostree_config(context: BuildContext, params: Params) -> Stage:
    stage_type = "org.osbuild.ostree.config"
    return Stage(
        stage_type,
        containers.ostree_config_stage_options(
            _require(params, "repo", stage_type),
            _optional(params, "read_only", stage_type, True, bool),
        ),
    )


@register("org.osbuild.mkdir")
def _efi_mkdir(context: BuildContext, params: Params) -> Stage:
    return Stage("org.osbuild.mkdir", containers.efi_mkdir_stage_options())


# ==============================================================================
# Dispatch
# ==============================================================================


def build_stage(
    stage_type: str, context: BuildContext, params: Optional[Params] = None
) -> Stage:
    """Render one stage.

    Raises:
        UnknownStageError: If no builder is registered for stage_type
        InvalidInputError: If the request data is malformed
        InvariantViolationError: If the build context is inconsistent
    """
    builder = STAGE_BUILDERS.get(stage_type)
    if builder is None:
        raise UnknownStageError(stage_type)
    return builder(context, params or {})


def build_stages(
    context: BuildContext, requests: Iterable[Mapping[str, Any]]
) -> list[Stage]:
    """Render a list of ``{"type": ..., "params": {...}}`` requests.

    All or nothing: the first failing stage raises and nothing is returned.
    """
    log = LoggerFactory.for_registry()
    stages: list[Stage] = []
    for request in requests:
        stage_type = request.get("type")
        if not stage_type or not isinstance(stage_type, str):
            raise InvalidRequestError("Stage request without a type", field="type")
        params = request.get("params")
        if params is not None and not isinstance(params, Mapping):
            raise InvalidRequestError(
                f"{stage_type} params must be an object", field="params"
            )
        stage = build_stage(stage_type, context, params)
        log.debug(f"Rendered {stage_type}")
        log.bind(tags=["registry", "dump"]).trace(f"{stage_type}: {stage.options}")
        stages.append(stage)
    return stages


def known_stage_types() -> list[str]:
    return sorted(STAGE_BUILDERS)
