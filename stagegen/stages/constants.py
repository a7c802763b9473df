"""Fixed lists and literals shared by the stage generators.

Values here are part of the contract with the build engine and the installer
tooling; changing one changes what the produced image does at boot.
"""

from __future__ import annotations

# Architecture names as used by the distro catalog
X86_64 = "x86_64"
AARCH64 = "aarch64"
PPC64LE = "ppc64le"
S390X = "s390x"

# Unattended install file, read by anaconda from the ISO root
KICKSTART_PATH = "/osbuild.ks"

ANACONDA_KICKSTART_MODULES: tuple[str, ...] = (
    "org.fedoraproject.Anaconda.Modules.Network",
    "org.fedoraproject.Anaconda.Modules.Payloads",
    "org.fedoraproject.Anaconda.Modules.Storage",
)

DRACUT_BASE_MODULES: tuple[str, ...] = (
    "bash",
    "systemd",
    "fips",
    "systemd-initrd",
    "modsign",
    "nss-softokn",
    "rdma",
    "rngd",
    "i18n",
    "convertfs",
    "network-manager",
    "network",
    "ifcfg",
    "url-lib",
    "drm",
    "plymouth",
    "prefixdevname",
    "prefixdevname-tools",
    "crypt",
    "dm",
    "dmsquash-live",
    "kernel-modules",
    "kernel-modules-extra",
    "kernel-network-modules",
    "livenet",
    "lvm",
    "mdraid",
    "multipath",
    "qemu",
    "qemu-net",
    "fcoe",
    "fcoe-uefi",
    "iscsi",
    "lunmask",
    "nfs",
    "resume",
    "rootfs-block",
    "terminfo",
    "udev-rules",
    "dracut-systemd",
    "pollcdrom",
    "usrmount",
    "base",
    "fs-lib",
    "img-lib",
    "shutdown",
    "uefi-lib",
)

# Extra dracut modules keyed by architecture
DRACUT_ARCH_MODULES: dict[str, tuple[str, ...]] = {
    X86_64: ("biosdevname",),
}

BUILDSTAMP_PATH = "/.buildstamp"

EFI_ARCHITECTURES: dict[str, tuple[str, ...]] = {
    X86_64: ("IA32", "X64"),
    AARCH64: ("AA64",),
}

# Architectures that get an ISOLINUX legacy boot loader on installer ISOs
ISOLINUX_ARCHITECTURES = frozenset({X86_64})

# xz branch/call/jump filters for squashfs compression
BCJ_FILTERS: dict[str, str] = {
    X86_64: "x86",
    AARCH64: "arm",
    PPC64LE: "powerpc",
}

ISO_ROOTFS_SIZE = 9216
ISO_ROOTFS_COMPRESSION = "xz"
ISO_EFI_BOOT_IMAGE = "images/efiboot.img"
ISO_SYSID = "LINUX"
ISOLINUX_BOOT_IMAGE = "isolinux/isolinux.bin"
ISOLINUX_BOOT_CATALOG = "isolinux/boot.cat"
ISOHYBRID_MBR = "/usr/share/syslinux/isohdpfx.bin"

GRUB_ISO_KERNEL_OPTS: tuple[str, ...] = (
    "rd.neednet=1",
    "console=tty0",
    "console=ttyS0",
    "systemd.log_target=console",
    "systemd.journald.forward_to_console=1",
)
GRUB_ISO_KERNEL_OPTS_TRAILER: tuple[str, ...] = (
    "coreos.inst.image_file=/run/media/iso/disk.img.xz",
    "coreos.inst.insecure",
)

# grub2 picks the newest kernel when the saved entry carries this machine id
SAVED_ENTRY_MACHINE_ID = "f" * 32

SELINUX_FILE_CONTEXTS = "etc/selinux/targeted/contexts/files/file_contexts"
SELINUX_INSTALL_EXEC_LABELS: dict[str, str] = {
    "/usr/bin/cp": "system_u:object_r:install_exec_t:s0",
    "/usr/bin/tar": "system_u:object_r:install_exec_t:s0",
}

# Prefixes of password hashes accepted as already crypted
CRYPTED_PASSWORD_PREFIXES: tuple[str, ...] = ("$y$", "$6$", "$5$", "$2b$")

# glibc crypt default, hashes at this cost carry no rounds= field
SHA512_CRYPT_ROUNDS = 5000

# OSTree deployments keep home directories below /var
OSTREE_HOME_ROOT = "/var/home"

NGINX_PID_FILE = "/tmp/nginx.pid"
EFI_MOUNTPOINT = "/boot/efi"
EFI_MOUNTPOINT_MODE = 0o700
