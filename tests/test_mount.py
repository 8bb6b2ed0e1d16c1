from fcshim.mount import (
    Mount,
    add_local_mount_identifier,
    is_local_mount,
    strip_local_mount_identifier,
)


def _bind_mount():
    return Mount(type="bind", source="/tmp/snapshots/1/fs", options=["rbind"])


def test_is_local_mount():
    assert is_local_mount(_bind_mount()) is False


def test_is_local_mount_none():
    assert is_local_mount(None) is False


def test_add_local_mount_identifier():
    mnt = _bind_mount()
    local = add_local_mount_identifier(mnt)
    assert is_local_mount(mnt) is False
    assert is_local_mount(local) is True
    assert local.source == mnt.source
    assert local.options == ["rbind"]


def test_strip_local_mount_identifier():
    local = add_local_mount_identifier(_bind_mount())
    assert is_local_mount(local) is True
    stripped = strip_local_mount_identifier(local)
    assert is_local_mount(stripped) is False
    assert stripped.type == "bind"
    assert stripped.source == "/tmp/snapshots/1/fs"


def test_strip_copies_options_and_keeps_target():
    local = Mount(type="vm:ext4", source="/dev/vdb", target="/mnt", options=["ro"])
    stripped = strip_local_mount_identifier(local)
    stripped.options.append("noexec")
    assert local.options == ["ro"]
    assert stripped.target == "/mnt"