import os
import shutil
import subprocess
from unittest import mock

import pytest

from fcshim.fsutil import (
    FSImgFile,
    MountInfo,
    create_block_device,
    create_fs_img,
    parse_proc_mount_lines,
)


def test_parse_single_line():
    result = parse_proc_mount_lines("proc /proc proc rw,nosuid,nodev 0 0")
    assert result == [MountInfo("proc", "/proc", "proc", ["rw", "nosuid", "nodev"])]


def test_parse_skips_empty_lines():
    result = parse_proc_mount_lines(
        "",
        "/dev/vda / ext4 rw 0 1",
        "",
        "tmpfs /tmp tmpfs rw,size=1024k 0 0",
    )
    assert [m.dest_path for m in result] == ["/", "/tmp"]
    assert result[1].options == ["rw", "size=1024k"]


def test_parse_no_lines():
    assert parse_proc_mount_lines() == []


@pytest.mark.parametrize(
    "line",
    ["proc /proc proc rw", "proc /proc proc rw x 0", "   "],
)
def test_parse_invalid_line(line):
    with pytest.raises(ValueError):
        parse_proc_mount_lines(line)


def test_create_fs_img_unsupported():
    with pytest.raises(ValueError):
        create_fs_img("xfs")


def test_create_fs_img_ext4_builds_directory_and_runs_mkfs():
    seen = {}

    def fake_run(cmd, **_kwargs):
        seen["cmd"] = cmd
        src = cmd[cmd.index("-d") + 1]
        seen["src"] = src
        with open(os.path.join(src, "dir", "a.txt"), encoding="utf-8") as f:
            seen["a"] = f.read()
        with open(os.path.join(src, "b.txt"), encoding="utf-8") as f:
            seen["b"] = f.read()
        return subprocess.CompletedProcess(cmd, 0, stdout=b"")

    with mock.patch("fcshim.fsutil.subprocess.run", side_effect=fake_run):
        img = create_fs_img(
            "ext4",
            FSImgFile("dir/a.txt", "alpha"),
            FSImgFile("b.txt", "beta"),
        )
    try:
        assert seen["cmd"][0] == "mkfs.ext4"
        assert seen["cmd"][-2:] == [img, "65536"]
        assert seen["a"] == "alpha"
        assert seen["b"] == "beta"
        assert os.path.exists(img)
    finally:
        os.remove(img)
        shutil.rmtree(seen["src"], ignore_errors=True)


def test_create_fs_img_failure_raises():
    def fake_run(cmd, **_kwargs):
        shutil.rmtree(cmd[cmd.index("-d") + 1], ignore_errors=True)
        os.remove(cmd[3])
        return subprocess.CompletedProcess(cmd, 1, stdout=b"boom")

    with mock.patch("fcshim.fsutil.subprocess.run", side_effect=fake_run):
        with pytest.raises(RuntimeError, match="boom"):
            create_fs_img("ext4")


def test_create_block_device_attaches_and_detaches():
    calls = []

    def fake_run(cmd, **_kwargs):
        calls.append(cmd)
        out = b"/dev/loop7\n" if cmd[:2] == ["losetup", "--show"] else b""
        return subprocess.CompletedProcess(cmd, 0, stdout=out)

    with mock.patch("fcshim.fsutil.subprocess.run", side_effect=fake_run), \
            mock.patch("fcshim.fsutil.os.chmod") as chmod:
        with create_block_device() as device:
            assert device == "/dev/loop7"
            assert [c[0] for c in calls] == ["mkfs.ext4", "losetup"]
        chmod.assert_called_once_with("/dev/loop7", 0o600)

    assert calls[-1] == ["losetup", "--detach", "/dev/loop7"]
    backing = calls[0][-1]
    assert not os.path.exists(backing)