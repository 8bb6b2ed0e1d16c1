"""Marking of mounts whose source lives inside the VM."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

_VM_LOCAL_MOUNT_TYPE_PREFIX = "vm:"


@dataclass
class Mount:
    """A mount description: type, source, target and options."""

    type: str
    source: str
    target: str = ""
    options: list[str] = field(default_factory=list)


def is_local_mount(mount: Optional[Mount]) -> bool:
    """Return True if the mount source is inside the VM rather than on the host."""
    return mount is not None and mount.type.startswith(_VM_LOCAL_MOUNT_TYPE_PREFIX)


def add_local_mount_identifier(mount: Mount) -> Mount:
    """Return a copy of ``mount`` marked as VM-local; the target is not carried over."""
    return Mount(
        type=_VM_LOCAL_MOUNT_TYPE_PREFIX + mount.type,
        source=mount.source,
        options=list(mount.options),
    )


def strip_local_mount_identifier(mount: Mount) -> Mount:
    """Return a copy of ``mount`` with the VM-local marker removed."""
    return Mount(
        type=mount.type.replace(_VM_LOCAL_MOUNT_TYPE_PREFIX, "", 1),
        source=mount.source,
        target=mount.target,
        options=list(mount.options),
    )