"""Tests for stage dispatch by type."""

import pytest

from stagegen.domain.models import Customizations
from stagegen.stages import registry
from stagegen.stages.exceptions import (
    InvalidRequestError,
    MissingPartitionError,
    UnknownStageError,
    UnsupportedArchitectureError,
)
from stagegen.stages.registry import BuildContext, build_stage, build_stages

from conftest import ROOT_UUID


class TestBuildStage:
    """Test single stage dispatch."""

    def test_unknown_stage(self, build_context):
        with pytest.raises(UnknownStageError):
            build_stage("org.osbuild.nope", build_context)

    def test_grub2_uses_context(self, build_context):
        stage = build_stage(
            "org.osbuild.grub2",
            build_context,
            {"kernel_options": "ro", "kernel_version": "5.14.0", "uefi": True, "vendor": "redhat"},
        )
        assert stage.type == "org.osbuild.grub2"
        assert stage.options["root_fs_uuid"] == ROOT_UUID
        assert stage.options["kernel_opts"] == "ro nosmt=force"
        assert stage.options["uefi"] == {"vendor": "redhat", "install": False}

    def test_missing_parameter(self, build_context):
        with pytest.raises(InvalidRequestError) as exc_info:
            build_stage("org.osbuild.qemu", build_context, {"filename": "disk.qcow2"})
        assert exc_info.value.field == "format"

    def test_missing_partition_table(self):
        context = BuildContext(arch="x86_64")
        with pytest.raises(InvalidRequestError):
            build_stage("org.osbuild.sfdisk", context)

    def test_kickstart_flavor_selection(self, build_context):
        live = build_stage("org.osbuild.kickstart", build_context, {"tar_url": "file:///a.tar"})
        ostree = build_stage(
            "org.osbuild.kickstart",
            build_context,
            {"ostree_url": "file:///repo", "ostree_ref": "rhel/8/x86_64/edge"},
        )
        assert "liveimg" in live.options
        assert ostree.options["ostree"]["ref"] == "rhel/8/x86_64/edge"

    @pytest.mark.parametrize(
        "params",
        [{}, {"tar_url": "file:///a.tar", "ostree_url": "file:///repo", "ostree_ref": "r"}],
    )
    def test_kickstart_requires_one_flavor(self, build_context, params):
        with pytest.raises(InvalidRequestError):
            build_stage("org.osbuild.kickstart", build_context, params)

    def test_firewall_requires_customization(self, boot_pt):
        context = BuildContext(arch="x86_64", partition_table=boot_pt)
        with pytest.raises(InvalidRequestError):
            build_stage("org.osbuild.firewall", context)

    def test_xorrisofs_isolinux_defaults_from_arch(self, build_context, boot_pt):
        params = {"filename": "a.iso", "isolabel": "L-%s"}
        x86 = build_stage("org.osbuild.xorrisofs", build_context, params)
        arm = build_stage(
            "org.osbuild.xorrisofs", BuildContext(arch="aarch64", partition_table=boot_pt), params
        )
        assert "boot" in x86.options
        assert "boot" not in arm.options

    def test_kernel_cmdline_from_root(self, build_context):
        stage = build_stage("org.osbuild.kernel-cmdline", build_context, {"kernel_options": "ro"})
        assert stage.options == {"root_fs_uuid": ROOT_UUID, "kernel_opts": "ro"}

    def test_kernel_cmdline_without_root(self, unmountable_pt):
        context = BuildContext(arch="x86_64", partition_table=unmountable_pt)
        with pytest.raises(MissingPartitionError):
            build_stage("org.osbuild.kernel-cmdline", context)

    def test_copy_stage(self, build_context):
        stage = build_stage(
            "org.osbuild.copy", build_context, {"filename": "disk.raw", "pipeline": "os"}
        )
        assert stage.inputs["root-tree"]["references"] == ["name:os"]
        assert [m["target"] for m in stage.mounts] == ["/", "/boot", "/boot/efi"]

    def test_first_boot(self, build_context):
        stage = build_stage("org.osbuild.first-boot", build_context)
        assert stage.options["commands"][-1] == "restorecon -rvF /var/home"

    def test_every_registered_type_is_known(self):
        assert registry.known_stage_types() == sorted(registry.STAGE_BUILDERS)
        assert "org.osbuild.grub2.inst" in registry.known_stage_types()


class TestBuildStages:
    """Test batch rendering."""

    def test_renders_in_request_order(self, build_context):
        stages = build_stages(
            build_context,
            [
                {"type": "org.osbuild.sfdisk"},
                {"type": "org.osbuild.grub2.inst", "params": {"filename": "d", "platform": "i386-pc"}},
                {"type": "org.osbuild.anaconda"},
            ],
        )
        assert [stage.type for stage in stages] == [
            "org.osbuild.sfdisk",
            "org.osbuild.grub2.inst",
            "org.osbuild.anaconda",
        ]

    def test_all_or_nothing(self, build_context):
        context = BuildContext(
            arch="s390x",
            partition_table=build_context.partition_table,
            customizations=Customizations(),
        )
        with pytest.raises(UnsupportedArchitectureError):
            build_stages(
                context,
                [
                    {"type": "org.osbuild.anaconda"},
                    {
                        "type": "org.osbuild.bootiso.mono",
                        "params": {
                            "kernel_version": "4.18.0",
                            "vendor": "redhat",
                            "product": "RHEL",
                            "version": "8.6",
                            "isolabel": "L",
                        },
                    },
                ],
            )

    def test_request_without_type(self, build_context):
        with pytest.raises(InvalidRequestError):
            build_stages(build_context, [{"params": {}}])

    def test_deterministic(self, build_context):
        requests = [
            {"type": "org.osbuild.dracut", "params": {"kernel_version": "5.14.0"}},
            {"type": "org.osbuild.systemd", "params": {"enabled_services": ["sshd"]}},
            {"type": "org.osbuild.users"},
        ]
        first = [stage.to_dict() for stage in build_stages(build_context, requests)]
        second = [stage.to_dict() for stage in build_stages(build_context, requests)]
        assert first == second


class TestStageRecord:
    def test_to_dict_omits_unset_sections(self, build_context):
        stage = build_stage("org.osbuild.anaconda", build_context)
        assert list(stage.to_dict()) == ["type", "options"]


class TestParameterTypes:
    """Test that wrongly typed request values are rejected as bad input."""

    @pytest.mark.parametrize(
        "stage_type, params, field",
        [
            ("org.osbuild.dracut", {"kernel_version": "5.14.0", "additional_modules": 5}, "additional_modules"),
            ("org.osbuild.dracut", {"kernel_version": "5.14.0", "additional_modules": [1]}, "additional_modules"),
            ("org.osbuild.dracut", {"kernel_version": 5}, "kernel_version"),
            ("org.osbuild.systemd", {"enabled_services": "sshd"}, "enabled_services"),
            ("org.osbuild.grub2", {"uefi": "yes"}, "uefi"),
            ("org.osbuild.copy", {"device": "loop0", "pipeline": "os"}, "device"),
            ("org.osbuild.qemu", {"filename": "d", "format": "qcow2", "compat": 1.1}, "compat"),
        ],
    )
    def test_wrong_type(self, build_context, stage_type, params, field):
        with pytest.raises(InvalidRequestError) as exc_info:
            build_stage(stage_type, build_context, params)
        assert exc_info.value.field == field

    def test_params_must_be_an_object(self, build_context):
        with pytest.raises(InvalidRequestError) as exc_info:
            build_stages(build_context, [{"type": "org.osbuild.selinux", "params": ["x"]}])
        assert exc_info.value.field == "params"

    def test_type_must_be_a_string(self, build_context):
        with pytest.raises(InvalidRequestError):
            build_stages(build_context, [{"type": ["org.osbuild.selinux"]}])


SAMPLE_PARAMS = {
    "org.osbuild.rpm": {},
    "org.osbuild.selinux": {"label_cp": True},
    "org.osbuild.users": {},
    "org.osbuild.first-boot": {},
    "org.osbuild.groups": {},
    "org.osbuild.firewall": {},
    "org.osbuild.systemd": {"enabled_services": ["sshd"], "default_target": "multi-user.target"},
    "org.osbuild.buildstamp": {"product": "Red Hat Enterprise Linux", "version": "8.6"},
    "org.osbuild.anaconda": {},
    "org.osbuild.lorax-script": {},
    "org.osbuild.dracut": {"kernel_version": "5.14.0", "additional_modules": ["nfs"]},
    "org.osbuild.kickstart": {"ostree_url": "file:///repo", "ostree_ref": "rhel/8/x86_64/edge"},
    "org.osbuild.bootiso.mono": {
        "kernel_version": "4.18.0",
        "vendor": "redhat",
        "product": "RHEL",
        "version": "8.6",
        "isolabel": "RHEL-8-6-0-BaseOS-x86_64",
    },
    "org.osbuild.grub2.iso": {
        "install_device": "/dev/vda",
        "kernel_version": "4.18.0",
        "vendor": "redhat",
        "product": "RHEL",
        "version": "8.6",
        "isolabel": "RHEL-8-6-0-BaseOS-x86_64",
    },
    "org.osbuild.discinfo": {},
    "org.osbuild.xorrisofs": {"filename": "installer.iso", "isolabel": "RHEL-8-6-0-BaseOS-%s"},
    "org.osbuild.sfdisk": {},
    "org.osbuild.copy": {"filename": "disk.raw", "pipeline": "os"},
    "org.osbuild.grub2": {"kernel_options": "ro", "kernel_version": "5.14.0", "legacy": "i386-pc"},
    "org.osbuild.grub2.inst": {"filename": "disk.raw", "platform": "i386-pc"},
    "org.osbuild.zipl.inst": {"kernel": "5.14.0"},
    "org.osbuild.kernel-cmdline": {"kernel_options": "ro"},
    "org.osbuild.qemu": {"filename": "disk.qcow2", "format": "qcow2", "compat": "1.1"},
    "org.osbuild.nginx.conf": {"path": "/etc/nginx.conf", "html_root": "/usr/share/nginx/html", "listen": "8080"},
    "org.osbuild.chmod": {"path": "/etc/nginx.conf", "mode": "a+rwX", "recursive": True},
    "org.osbuild.ostree.config": {"repo": "/ostree/repo", "read_only": True},
    "org.osbuild.mkdir": {},
}


class TestEveryBuilder:
    def test_sample_for_every_registered_type(self):
        assert sorted(SAMPLE_PARAMS) == registry.known_stage_types()

    @pytest.mark.parametrize("stage_type", sorted(SAMPLE_PARAMS))
    def test_same_input_same_output(self, build_context, stage_type):
        params = SAMPLE_PARAMS[stage_type]
        first = build_stage(stage_type, build_context, params).to_dict()
        second = build_stage(stage_type, build_context, params).to_dict()

        assert first == second
        assert first["type"] == stage_type
