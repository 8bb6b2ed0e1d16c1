"""Helpers for container bundle directories, inside the VM and on the host."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from typing import BinaryIO

from fcshim.common import (
    BUNDLE_ROOTFS_NAME,
    OCI_CONFIG_NAME,
    SHIM_ADDR_FILE_NAME,
    SHIM_LOG_FIFO_NAME,
)

_VM_BUNDLE_ROOT = "/container"


def vm_bundle_dir(task_id: str) -> BundleDir:
    """Return the bundle directory inside a VM for the given task."""
    return BundleDir(posixpath.normpath(posixpath.join(_VM_BUNDLE_ROOT, task_id)))


class BundleDir(str):
    """The root of a container bundle directory; the string is its path."""

    def root_path(self) -> str:
        """Return the top-level directory of the bundle."""
        return str(self)

    def addr_file_path(self) -> str:
        """Return the path of the shim address file in the bundle."""
        return os.path.join(self.root_path(), SHIM_ADDR_FILE_NAME)

    def log_fifo_path(self) -> str:
        """Return the path of the shim log FIFO in the bundle."""
        return os.path.join(self.root_path(), SHIM_LOG_FIFO_NAME)

    def rootfs_path(self) -> str:
        """Return the path of the bundle's rootfs directory."""
        return os.path.join(self.root_path(), BUNDLE_ROOTFS_NAME)

    def oci_config_path(self) -> str:
        """Return the path of the bundle's config.json."""
        return os.path.join(self.root_path(), OCI_CONFIG_NAME)

    def oci_config(self) -> OCIConfig:
        """Return a wrapper around the bundle's config.json."""
        return OCIConfig(self.oci_config_path())


@dataclass(frozen=True)
class OCIConfig:
    """File operations on a bundle's config.json."""

    path: str

    def open(self) -> BinaryIO:
        """Open config.json read-only in binary mode."""
        return open(self.path, "rb")

    def read_bytes(self) -> bytes:
        """Return the contents of config.json."""
        with self.open() as config:
            return config.read()

    def write(self, contents: bytes) -> None:
        """Create or overwrite config.json with ``contents``."""
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o700)
        with os.fdopen(fd, "wb") as config:
            config.write(contents)