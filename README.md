# fcshim

Helpers shared by a container runtime shim on the host and the agent running
inside a microVM: stub drive content, per-VM and bundle directory layouts,
log level parsing, stdio proxying between connections and task bookkeeping.

## Modules

- `fcshim.common` — constants shared by host and guest (vsock ports, socket
  and FIFO names, `MAGIC_STUB_BYTES`) and the stub drive format.
  `generate_stub_content(drive_id)` returns bytes: the magic bytes, one length
  byte, then the id; an id longer than 255 bytes raises `ValueError`.
  `is_stub_drive(reader)` returns `True` when a binary stream starts with the
  magic bytes, and `False` on a short read or read error.
  `parse_stub_content(reader)` returns the id and raises `EOFError` when the
  stream ends too early.
- `fcshim.cpu_template` — `support_cpu_template()` returns `True` only on an
  x86_64 host whose `/proc/cpuinfo` reports `GenuineIntel` (the answer is
  cached). `find_first_vendor_id(lines)` returns the first `vendor_id` value
  in cpuinfo-style text, or `""`.
- `fcshim.cpuset` — an immutable `Builder` with `add_cpu`, `add_cpu_range`,
  `add_mem` and `add_mem_range`; `build()` returns a `CPUSet` whose `cpus`
  and `mems` strings list single values first, then `min-max` ranges.
- `fcshim.debug` — `Helper(*log_levels, shim_debug=False)` parses levels such
  as `debug`, `firecracker:info`, `firecracker:output`,
  `firecracker-go-sdk:warning` or `firecracker-containerd:error`.
  `firecracker_log_level()`, `log_firecracker_output()`,
  `firecracker_sdk_log_level()` and `firecracker_containerd_log_level()`
  report the effective setting per component (the last two as `logging`
  levels, or `None`). Unknown levels raise `InvalidLogLevelError`; a second
  level for the same component raises `LogLevelAlreadySetError`,
  `FCLogLevelAlreadySetError`, `FCSDKLogLevelAlreadySetError` or
  `FCContainerdLogLevelAlreadySetError`, all subclasses of `LogLevelError`
  (itself a `ValueError`).
- `fcshim.bundle` — `BundleDir` (a `str`) gives the address file, log FIFO,
  rootfs and `config.json` paths of an OCI bundle; `vm_bundle_dir(task_id)`
  is the bundle directory under `/container` inside the VM. `OCIConfig` opens,
  reads and writes `config.json`.
- `fcshim.vmdir` — `validate_identifier` checks namespaces, VM ids and
  container ids; `shim_dir(base, namespace, vm_id)` resolves the base
  directory (which must exist) and returns a `VMDir` named
  `namespace#vm_id`. `VMDir` gives socket and FIFO paths (absolute and
  relative to the working directory), creates the directory, creates bundle,
  address and log FIFO symlinks, and writes the address file atomically.
- `fcshim.mount` — `Mount` plus `is_local_mount`,
  `add_local_mount_identifier` and `strip_local_mount_identifier`, which add
  or remove a `vm:` prefix on the mount type.
- `fcshim.agent` — `is_agent_only_io(stdout)` is `True` for `binary://` and
  `file://` targets.
- `fcshim.ioproxy` — `IOConnectorPair.proxy` opens a read and a write side and
  copies between them in a background thread, returning two futures: one for
  setup, one for the copy. `IOConnectorProxy` does this for stdin, stdout and
  stderr of a `Proc`; once the process finishes, stdin is closed at once and
  stdout/stderr after a five-second flush timeout. `NullIOProxy` does nothing.
- `fcshim.task` — `TaskManager` creates tasks, starts execs and deletes them
  through a `TaskService` you implement, starting each process's IO proxy,
  waiting for its exit in the background and waiting for its IO to drain on
  delete. `shutdown_if_empty()` refuses new tasks once none are left;
  `attach_io` and `is_proxy_open` manage a process's proxy.
- `fcshim.processes` — polling helpers built on psutil:
  `wait_for_process_to_exist`, `wait_for_pid_to_exit` (both raise
  `concurrent.futures.CancelledError` when their cancel event is set) and
  `average_cpu_deltas`, which returns a `CPUTimes` of average change per
  sample interval.
- `fcshim.fsutil` — `parse_proc_mount_lines` parses `/proc/mounts` lines into
  `MountInfo`; `create_fs_img("ext4", *FSImgFile(...))` builds an image with
  `mkfs.ext4`, and `create_block_device()` is a context manager yielding a
  loop device made with `losetup`, detached on exit.
- `fcshim.settings` — `containerd_sock_path()`, `number_of_vms()` and
  `shim_base_dir()` read `CONTAINERD_SOCKET`, `NUMBER_OF_VMS` and
  `SHIM_BASE_DIR`, with defaults.

## Examples

```python
import io
from fcshim.cpuset import Builder
from fcshim.common import generate_stub_content, parse_stub_content

cset = Builder().add_cpu(0).add_cpu_range(2, 3).add_mem(0).build()
print(cset.cpus, cset.mems)   # 0,2-3 0

stub = generate_stub_content("drive1")
print(parse_stub_content(io.BytesIO(stub)))   # drive1
```

Connectors are callables taking an event and a logger and returning a future
of `IOConnectorResult`:

```python
import threading
from concurrent.futures import Future
from fcshim.ioproxy import IOConnectorPair, IOConnectorResult

def file_connector(path, mode):
    def connect(io_done, logger):
        future = Future()
        try:
            future.set_result(IOConnectorResult(stream=open(path, mode)))
        except OSError as exc:
            future.set_result(IOConnectorResult(error=exc))
        return future
    return connect

pair = IOConnectorPair(file_connector("in.txt", "rb"), file_connector("out.txt", "wb"))
init_done, copy_done = pair.proxy(threading.Event(), 0)
init_done.result()
copy_done.result()
```

## What it does not do

The package is a library only: it has no command and does not run a shim,
agent or server. It ships no vsock or FIFO connectors and no concrete
`TaskService`; those are supplied by the caller.

## Running the tests

```
pip install -e .[test]
pytest
```