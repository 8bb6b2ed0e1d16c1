from fcshim.settings import containerd_sock_path, number_of_vms, shim_base_dir


def test_containerd_sock_path_default(monkeypatch):
    monkeypatch.delenv("CONTAINERD_SOCKET", raising=False)
    assert containerd_sock_path() == "/run/firecracker-containerd/containerd.sock"


def test_containerd_sock_path_from_env(monkeypatch):
    monkeypatch.setenv("CONTAINERD_SOCKET", "/tmp/other.sock")
    assert containerd_sock_path() == "/tmp/other.sock"


def test_containerd_sock_path_empty_env_uses_default(monkeypatch):
    monkeypatch.setenv("CONTAINERD_SOCKET", "")
    assert containerd_sock_path() == "/run/firecracker-containerd/containerd.sock"


def test_number_of_vms_default(monkeypatch):
    monkeypatch.delenv("NUMBER_OF_VMS", raising=False)
    assert number_of_vms() == 5


def test_number_of_vms_from_env(monkeypatch):
    monkeypatch.setenv("NUMBER_OF_VMS", "12")
    assert number_of_vms() == 12


def test_number_of_vms_invalid_is_zero(monkeypatch):
    monkeypatch.setenv("NUMBER_OF_VMS", "many")
    assert number_of_vms() == 0


def test_shim_base_dir_default(monkeypatch):
    monkeypatch.delenv("SHIM_BASE_DIR", raising=False)
    assert shim_base_dir() == "/srv/firecracker_containerd_tests"


def test_shim_base_dir_from_env(monkeypatch):
    monkeypatch.setenv("SHIM_BASE_DIR", "/var/run/shims")
    assert shim_base_dir() == "/var/run/shims"