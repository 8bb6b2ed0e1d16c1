"""Shared constants and the stub-drive format used between runtime and agent."""

from __future__ import annotations

from typing import BinaryIO

STDIN_PORT = 11000
STDOUT_PORT = 11001
STDERR_PORT = 11002
DEFAULT_BUFFER_SIZE = 1024

FIRECRACKER_SOCK_NAME = "firecracker.sock"
FIRECRACKER_VSOCK_NAME = "firecracker.vsock"
FIRECRACKER_LOG_FIFO_NAME = "fc-logs.fifo"
FIRECRACKER_METRICS_FIFO_NAME = "fc-metrics.fifo"

SHIM_ADDR_FILE_NAME = "address"
SHIM_LOG_FIFO_NAME = "log"
OCI_CONFIG_NAME = "config.json"
BUNDLE_ROOTFS_NAME = "rootfs"
VMID_ENV_VAR_KEY = "FIRECRACKER_VM_ID"
FC_SOCKET_FD_ENV_KEY = "FCCONTROL_SOCKET_FD"
SHIM_BINARY_NAME = "containerd-shim-aws-firecracker"

MAGIC_STUB_BYTES = bytes([214, 244, 216, 245, 215, 177, 177, 177])

_MAX_ID_LENGTH = 0xFF


def is_stub_drive(reader: BinaryIO) -> bool:
    """Return True when the stream starts with the magic stub bytes.

    Any read error, or a short read, is treated as "not a stub drive".
    """
    try:
        head = reader.read(len(MAGIC_STUB_BYTES))
    except (OSError, ValueError):
        return False
    if not head or len(head) != len(MAGIC_STUB_BYTES):
        return False
    return bytes(head) == MAGIC_STUB_BYTES


def _read_or_eof(reader: BinaryIO, size: int) -> bytes:
    data = reader.read(size)
    if size and not data:
        raise EOFError("unexpected end of stub content")
    return bytes(data)


def parse_stub_content(reader: BinaryIO) -> str:
    """Read a stub drive's header and return the length-encoded id it carries."""
    _read_or_eof(reader, len(MAGIC_STUB_BYTES))
    size = _read_or_eof(reader, 1)[0]
    id_bytes = _read_or_eof(reader, size)
    return id_bytes.decode("utf-8", errors="surrogateescape")


def generate_stub_content(drive_id: str) -> bytes:
    """Build stub content: the magic bytes, one length byte, then the id."""
    encoded = drive_id.encode("utf-8", errors="surrogateescape")
    length = len(encoded)
    if length > _MAX_ID_LENGTH:
        raise ValueError(
            f"Length of drive id, {length}, is too long and is limited to {_MAX_ID_LENGTH} bytes"
        )
    return MAGIC_STUB_BYTES + bytes([length]) + encoded