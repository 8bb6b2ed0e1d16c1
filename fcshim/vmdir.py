"""Per-VM shim directories holding sockets, FIFOs and bundle links."""

from __future__ import annotations

import json
import os
import re

from fcshim.bundle import BundleDir
from fcshim.common import (
    FIRECRACKER_LOG_FIFO_NAME,
    FIRECRACKER_METRICS_FIFO_NAME,
    FIRECRACKER_SOCK_NAME,
    FIRECRACKER_VSOCK_NAME,
    SHIM_ADDR_FILE_NAME,
    SHIM_LOG_FIFO_NAME,
)

_IDENTIFIER_MAX_LENGTH = 76
_IDENTIFIER_PATTERN = r"^[A-Za-z0-9]+(?:[._-](?:[A-Za-z0-9]+))*$"
_IDENTIFIER_RE = re.compile(_IDENTIFIER_PATTERN)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def validate_identifier(identifier: str) -> None:
    """Raise ValueError unless ``identifier`` is a valid containerd identifier."""
    if not identifier:
        raise ValueError("identifier must not be empty")
    if len(identifier) > _IDENTIFIER_MAX_LENGTH:
        raise ValueError(
            f"identifier {_quote(identifier)} greater than maximum length "
            f"({_IDENTIFIER_MAX_LENGTH} characters)"
        )
    if not _IDENTIFIER_RE.fullmatch(identifier):
        raise ValueError(
            f"identifier {_quote(identifier)} must match {_IDENTIFIER_PATTERN}"
        )


def shim_dir(shim_base_dir: str, namespace: str, vm_id: str) -> VMDir:
    """Return the directory of the shim managing ``vm_id`` in ``namespace``.

    The base directory must exist; symlinks in it are resolved.
    """
    try:
        validate_identifier(namespace)
    except ValueError as exc:
        raise ValueError(f"invalid namespace: {exc}") from exc
    try:
        validate_identifier(vm_id)
    except ValueError as exc:
        raise ValueError(f"invalid vm id: {exc}") from exc

    try:
        resolved = os.path.realpath(shim_base_dir, strict=True)
    except OSError as exc:
        raise OSError(
            exc.errno,
            f"failed evaluating any symlinks in path {_quote(str(shim_base_dir))}: {exc.strerror}",
        ) from exc

    return VMDir(os.path.join(resolved, f"{namespace}#{vm_id}"))


def _create_symlink(old_path: str, new_path: str, name: str) -> None:
    try:
        os.symlink(old_path, new_path)
    except OSError as exc:
        raise OSError(
            exc.errno,
            f'failed to create {name} symlink from "{new_path}"->"{old_path}": {exc.strerror}',
        ) from exc


def _rel_path_to(abs_path: str) -> str:
    return os.path.relpath(abs_path, os.getcwd())


class VMDir(str):
    """The root of a VM directory; the string is its path."""

    def root_path(self) -> str:
        """Return the top-level directory of the VM dir."""
        return str(self)

    def mkdir(self) -> None:
        """Create the directory with owner-only permissions; no-op if it exists."""
        os.makedirs(self.root_path(), mode=0o700, exist_ok=True)

    def addr_file_path(self) -> str:
        """Return the path of the shim address file."""
        return os.path.join(self.root_path(), SHIM_ADDR_FILE_NAME)

    def log_fifo_path(self) -> str:
        """Return the path of the FIFO the shim writes its logs to."""
        return os.path.join(self.root_path(), SHIM_LOG_FIFO_NAME)

    def firecracker_sock_path(self) -> str:
        """Return the path of the Firecracker API socket."""
        return os.path.join(self.root_path(), FIRECRACKER_SOCK_NAME)

    def firecracker_sock_rel_path(self) -> str:
        """Return the Firecracker API socket path relative to the working directory."""
        return _rel_path_to(self.firecracker_sock_path())

    def firecracker_vsock_path(self) -> str:
        """Return the path of the vsock unix socket used to reach the agent."""
        return os.path.join(self.root_path(), FIRECRACKER_VSOCK_NAME)

    def firecracker_vsock_rel_path(self) -> str:
        """Return the vsock socket path relative to the working directory."""
        return _rel_path_to(self.firecracker_vsock_path())

    def firecracker_log_fifo_path(self) -> str:
        """Return the path of the FIFO Firecracker writes its logs to."""
        return os.path.join(self.root_path(), FIRECRACKER_LOG_FIFO_NAME)

    def firecracker_metrics_fifo_path(self) -> str:
        """Return the path of the FIFO Firecracker writes metrics to."""
        return os.path.join(self.root_path(), FIRECRACKER_METRICS_FIFO_NAME)

    def bundle_link(self, container_id: str) -> BundleDir:
        """Return the path of the symlink to the bundle dir of ``container_id``."""
        try:
            validate_identifier(container_id)
        except ValueError as exc:
            raise ValueError(f"invalid container id {_quote(container_id)}: {exc}") from exc
        return BundleDir(os.path.join(self.root_path(), container_id))

    def create_bundle_link(self, container_id: str, bundle_dir: BundleDir) -> None:
        """Symlink the bundle link of ``container_id`` to ``bundle_dir``."""
        link = self.bundle_link(container_id)
        _create_symlink(BundleDir(bundle_dir).root_path(), link.root_path(), "bundle")

    def create_address_link(self, container_id: str) -> None:
        """Symlink the bundle's address file to this dir's address file."""
        link = self.bundle_link(container_id)
        _create_symlink(self.addr_file_path(), link.addr_file_path(), "shim address file")

    def create_shim_log_fifo_link(self, container_id: str) -> None:
        """Symlink this dir's log FIFO to the log FIFO of the container's bundle."""
        link = self.bundle_link(container_id)
        _create_symlink(link.log_fifo_path(), self.log_fifo_path(), "shim log fifo")

    def write_address(self, shim_socket_address: str) -> None:
        """Atomically write the shim socket address to the address file."""
        path = os.path.abspath(self.addr_file_path())
        tmp_path = os.path.join(os.path.dirname(path), "." + os.path.basename(path))
        flags = os.O_RDWR | os.O_CREAT | os.O_EXCL | getattr(os, "O_SYNC", 0)
        fd = os.open(tmp_path, flags, 0o666)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as out:
                out.write(shim_socket_address)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise