"""User and group provisioning options.

Passwords are hashed here so plaintext from the blueprint never reaches a
stage record. SSH keys for OSTree images are injected by a first-boot
script because the users stage cannot write into /var/home at build time.
"""

from __future__ import annotations

import posixpath
import shlex
from typing import Any, Iterable

from passlib.hash import sha512_crypt

from stagegen.domain.models import GroupCustomization, UserCustomization
from stagegen.logging import LoggerFactory

from .constants import CRYPTED_PASSWORD_PREFIXES, OSTREE_HOME_ROOT, SHA512_CRYPT_ROUNDS
from .exceptions import PasswordHashError
from .records import omit_unset

log = LoggerFactory.for_users()

SHA512_CRYPT = sha512_crypt.using(rounds=SHA512_CRYPT_ROUNDS)


def password_is_crypted(password: str) -> bool:
    return password.startswith(CRYPTED_PASSWORD_PREFIXES)


def crypt_password(user_name: str, password: str) -> str:
    """Hash a plaintext password into a SHA-512 crypt(3) string ($6$).

    Uses the glibc default of 5000 rounds, so the hash carries no rounds
    field and the whole password is significant whatever its length.

    Raises:
        PasswordHashError: If the password cannot be hashed (NUL bytes,
            longer than passlib accepts)
    """
    try:
        return SHA512_CRYPT.hash(password)
    except ValueError as error:
        raise PasswordHashError(user_name, str(error)) from error


def users_stage_options(users: Iterable[UserCustomization]) -> dict[str, Any]:
    """Options for the users stage, keyed by user name.

    Raises:
        PasswordHashError: If a plaintext password cannot be hashed
    """
    stage_users: dict[str, dict[str, Any]] = {}
    for user in users:
        password = user.password
        if password is not None and not password_is_crypted(password):
            log.debug(f"Hashing plaintext password for {user.name}")
            password = crypt_password(user.name, password)

        stage_users[user.name] = omit_unset(
            {
                "uid": user.uid,
                "gid": user.gid,
                "groups": list(user.groups) if user.groups is not None else None,
                "description": user.description,
                "home": user.home,
                "shell": user.shell,
                "password": password,
                "key": user.key,
            }
        )
    return {"users": stage_users}


def users_first_boot_options(users_options: dict[str, Any]) -> dict[str, Any]:
    """First-boot commands adding each user's SSH key to authorized_keys."""
    commands: list[str] = []
    for name, user in users_options["users"].items():
        key = user.get("key")
        if not key:
            continue
        ssh_dir = posixpath.join(OSTREE_HOME_ROOT, name, ".ssh")
        authorized_keys = posixpath.join(ssh_dir, "authorized_keys")
        append_key = f"echo {shlex.quote(key)} >> {shlex.quote(authorized_keys)}"
        commands.append(f"mkdir -p {ssh_dir}")
        commands.append(f"sh -c {shlex.quote(append_key)}")
        commands.append(f"chown {name}:{name} -Rc {ssh_dir}")
    commands.append(f"restorecon -rvF {OSTREE_HOME_ROOT}")
    return {
        "commands": commands,
        "wait_for_network": False,
    }


def groups_stage_options(groups: Iterable[GroupCustomization]) -> dict[str, Any]:
    return {
        "groups": {
            group.name: omit_unset({"name": group.name, "gid": group.gid})
            for group in groups
        }
    }
