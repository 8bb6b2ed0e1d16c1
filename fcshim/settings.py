"""Environment-driven settings for running against a firecracker-containerd setup."""

from __future__ import annotations

import os

FIRECRACKER_RUNTIME = "aws.firecracker"

DEFAULT_CONTAINERD_SOCK_PATH = "/run/firecracker-containerd/containerd.sock"
DEFAULT_NUMBER_OF_VMS = 5
DEFAULT_SHIM_BASE_DIR = "/srv/firecracker_containerd_tests"

_CONTAINERD_SOCK_PATH_ENV_VAR = "CONTAINERD_SOCKET"
_NUMBER_OF_VMS_ENV_VAR = "NUMBER_OF_VMS"
_SHIM_BASE_DIR_ENV_VAR = "SHIM_BASE_DIR"


def containerd_sock_path() -> str:
    """Return the containerd socket path, from CONTAINERD_SOCKET if set."""
    return os.environ.get(_CONTAINERD_SOCK_PATH_ENV_VAR) or DEFAULT_CONTAINERD_SOCK_PATH


def number_of_vms() -> int:
    """Return the number of VMs to use, from NUMBER_OF_VMS if set.

    A value that is not an integer gives 0.
    """
    value = os.environ.get(_NUMBER_OF_VMS_ENV_VAR)
    if not value:
        return DEFAULT_NUMBER_OF_VMS
    try:
        return int(value)
    except ValueError:
        return 0


def shim_base_dir() -> str:
    """Return the shim base directory, from SHIM_BASE_DIR if set."""
    return os.environ.get(_SHIM_BASE_DIR_ENV_VAR) or DEFAULT_SHIM_BASE_DIR