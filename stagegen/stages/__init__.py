"""Stage option generators.

Modules:
    - disk: partition table to loopback devices, mounts and sfdisk options
    - bootloader: grub2, grub2.inst, zipl.inst and kernel-cmdline options
    - installer: kickstart, anaconda, lorax-script, dracut and buildstamp
    - iso: bootiso.mono, grub2.iso, discinfo and xorrisofs options
    - qemu: disk image format conversion
    - users: users, groups and the first-boot SSH key workaround
    - system: rpm GPG keys, selinux, firewall and systemd
    - containers: nginx, chmod, ostree config and EFI mkdir literals
    - registry: dispatch by stage type (import it explicitly)
"""
