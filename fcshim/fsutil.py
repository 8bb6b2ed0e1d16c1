"""Filesystem helpers: image and loop device creation, /proc/mounts parsing."""

from __future__ import annotations

import contextlib
import os
import subprocess
import tempfile
from dataclasses import dataclass, field
from typing import Iterator

_MIB = 1024 * 1024


@dataclass(frozen=True)
class FSImgFile:
    """A file to place in a filesystem image at ``subpath`` with ``contents``."""

    subpath: str
    contents: str


@dataclass
class MountInfo:
    """Data parsed from one line of /proc/mounts."""

    source_path: str
    dest_path: str
    type: str
    options: list[str] = field(default_factory=list)


def _run(cmd: list[str]) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.STDOUT)


def _output_text(result: subprocess.CompletedProcess) -> str:
    output = result.stdout or b""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def create_fs_img(fs_type: str, *files: FSImgFile) -> str:
    """Create a filesystem image of ``fs_type`` holding ``files``; return its path."""
    if fs_type != "ext4":
        raise ValueError(f"unsupported fs type {fs_type!r}")
    return _create_ext_img(fs_type, files)


def _create_ext_img(ext_name: str, files: tuple[FSImgFile, ...]) -> str:
    tempdir = tempfile.mkdtemp()
    for img_file in files:
        dest = os.path.join(tempdir, img_file.subpath)
        os.makedirs(os.path.dirname(dest), mode=0o750, exist_ok=True)
        with open(dest, "w", encoding="utf-8") as out:
            out.write(img_file.contents)
        os.chmod(dest, 0o750)

    fd, img_path = tempfile.mkstemp()
    os.close(fd)

    result = _run([f"mkfs.{ext_name}", "-d", tempdir, img_path, "65536"])
    if result.returncode != 0:
        raise RuntimeError(f"failed to create ext img, command output:\n {_output_text(result)}")
    return img_path


@contextlib.contextmanager
def create_block_device() -> Iterator[str]:
    """Create a loop-backed ext4 block device; yield its path and detach on exit."""
    fd, backing = tempfile.mkstemp()
    try:
        os.ftruncate(fd, 32 * _MIB)
    finally:
        os.close(fd)

    result = _run(["mkfs.ext4", "-v", backing])
    if result.returncode != 0:
        os.remove(backing)
        raise RuntimeError(f"failed to create ext img, command out:{_output_text(result)} \n")

    result = _run(["losetup", "--show", "--find", backing])
    if result.returncode != 0:
        os.remove(backing)
        raise RuntimeError(f"losetup failed: {_output_text(result)}")
    device = _output_text(result).rstrip("\n")

    try:
        os.chmod(device, 0o600)
        yield device
    finally:
        detach = _run(["losetup", "--detach", device])
        with contextlib.suppress(FileNotFoundError):
            os.remove(backing)
        if detach.returncode != 0:
            raise RuntimeError(f"losetup --detach: {_output_text(detach)}")


def parse_proc_mount_lines(*lines: str) -> list[MountInfo]:
    """Parse lines read from /proc/mounts into MountInfo objects; empty lines are skipped."""
    mounts = []
    for line in lines:
        if line == "":
            continue
        fields = line.split()
        if len(fields) < 6:
            raise ValueError(f"failed to parse /proc/mount line {line!r}: too few fields")
        source, dest, fstype, options = fields[:4]
        try:
            int(fields[4])
            int(fields[5])
        except ValueError as exc:
            raise ValueError(f"failed to parse /proc/mount line {line!r}: {exc}") from exc
        mounts.append(MountInfo(source, dest, fstype, options.split(",")))
    return mounts