"""Custom exceptions for stage option generation.

Errors come in two severities. Invalid input is recoverable: the caller sent
data that cannot be used (an unparsable UUID, a password that cannot be
hashed) and the build request should be rejected with a readable message.
Invariant violations are fatal: the static distro data handed to a generator
is inconsistent (no boot partition, an unknown filesystem or architecture)
and generation must abort instead of emitting a possibly unbootable image.

Exception Hierarchy:
    StageGenError (base)
        ├── InvalidInputError
        │   ├── InvalidIdentifierError
        │   ├── PasswordHashError
        │   ├── InvalidRequestError
        │   └── UnknownStageError
        └── InvariantViolationError
            ├── MissingPartitionError
            ├── UnsupportedFilesystemError
            ├── UnsupportedFormatError
            ├── UnsupportedArchitectureError
            └── InvalidDeviceError

Usage:
    from stagegen.stages.exceptions import MissingPartitionError

    if root_partition is None:
        raise MissingPartitionError("org.osbuild.grub2", "/")
"""


class StageGenError(Exception):
    """Base exception for all stage generation errors."""


class InvalidInputError(StageGenError):
    """Caller supplied data is malformed; the request can be rejected."""


class InvalidIdentifierError(InvalidInputError):
    """An identifier (UUID) could not be parsed."""

    def __init__(self, value: str, reason: str = ""):
        self.value = value
        self.reason = reason
        msg = f"Invalid identifier: {value!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PasswordHashError(InvalidInputError):
    """A plaintext password could not be hashed."""

    def __init__(self, user_name: str, reason: str):
        self.user_name = user_name
        self.reason = reason
        super().__init__(f"Cannot hash password for user {user_name}: {reason}")


class InvalidRequestError(InvalidInputError):
    """A build request document is missing fields or has the wrong shape."""

    def __init__(self, message: str, field: str = None):
        self.field = field
        super().__init__(message)


class UnknownStageError(InvalidInputError):
    """No generator is registered for the requested stage type."""

    def __init__(self, stage_type: str):
        self.stage_type = stage_type
        super().__init__(f"Unknown stage type: {stage_type}")


class InvariantViolationError(StageGenError):
    """Static configuration is inconsistent; generation must abort."""


class MissingPartitionError(InvariantViolationError):
    """A partition required by a stage is absent from the partition table."""

    def __init__(self, stage_type: str, mountpoint: str):
        self.stage_type = stage_type
        self.mountpoint = mountpoint
        super().__init__(
            f"No partition mounted at {mountpoint} found for {stage_type} stage"
        )


class UnsupportedFilesystemError(InvariantViolationError):
    """Filesystem type has no mount constructor."""

    def __init__(self, fs_type: str, mountpoint: str = ""):
        self.fs_type = fs_type
        self.mountpoint = mountpoint
        msg = f"Unknown filesystem type: {fs_type}"
        if mountpoint:
            msg += f" (mountpoint {mountpoint})"
        super().__init__(msg)


class UnsupportedFormatError(InvariantViolationError):
    """Disk image format is not one the qemu stage can produce."""

    def __init__(self, image_format: str):
        self.image_format = image_format
        super().__init__(f"Unknown format in qemu stage: {image_format}")


class UnsupportedArchitectureError(InvariantViolationError):
    """Architecture has no EFI mapping for ISO generation."""

    def __init__(self, arch: str, stage_type: str = ""):
        self.arch = arch
        self.stage_type = stage_type
        msg = f"Unsupported architecture: {arch}"
        if stage_type:
            msg += f" for {stage_type} stage"
        super().__init__(msg)


class InvalidDeviceError(InvariantViolationError):
    """Backing device for a copy stage is not a loopback device."""

    def __init__(self, device_type: str):
        self.device_type = device_type
        super().__init__(
            f"Copy stage requires a loopback device, got {device_type or '(none)'}"
        )
