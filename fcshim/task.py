"""Synchronized creation, deletion and stdio handling of tasks and execs."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future, wait
from dataclasses import dataclass
from typing import Any, Callable, Optional

from fcshim.ioproxy import IOProxy, Proc

_log = logging.getLogger(__name__)


@dataclass
class CreateTaskRequest:
    """Request to create a task; its initial process has an empty exec id."""

    id: str
    bundle: str = ""
    stdin: str = ""
    stdout: str = ""
    stderr: str = ""
    terminal: bool = False


@dataclass
class ExecProcessRequest:
    """Request to start an additional process in an existing task."""

    id: str
    exec_id: str
    stdin: str = ""
    stdout: str = ""
    stderr: str = ""
    terminal: bool = False


@dataclass
class DeleteRequest:
    """Request to delete a task (empty exec id) or one of its execs."""

    id: str
    exec_id: str = ""


@dataclass
class WaitRequest:
    """Request to wait for a task or exec to exit."""

    id: str
    exec_id: str = ""


class TaskService(ABC):
    """The service that actually runs tasks and execs."""

    @abstractmethod
    def create(self, request: CreateTaskRequest) -> Any:
        """Create a task and return the service's response."""

    @abstractmethod
    def exec(self, request: ExecProcessRequest) -> Any:
        """Start an exec and return the service's response."""

    @abstractmethod
    def delete(self, request: DeleteRequest) -> Any:
        """Delete a task or exec and return the service's response."""

    @abstractmethod
    def wait(self, request: WaitRequest) -> Any:
        """Block until the task or exec exits and return its exit information."""


def _close_proxy(proc: Proc) -> None:
    if proc.proxy is not None:
        proc.proxy.close()
    proc.logger.debug("closed proxy")


class TaskManager:
    """Tracks tasks and their execs, keeping their lifecycle and stdio in step."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger if logger is not None else _log
        self._lock = threading.Lock()
        self._tasks: dict[str, dict[str, Proc]] = {}
        self._is_shutdown = False

    def _new_proc(self, task_id: str, exec_id: str) -> Proc:
        with self._lock:
            if self._is_shutdown:
                raise RuntimeError(
                    f"cannot create new exec {exec_id!r} in task {task_id!r} after shutdown"
                )
            procs = self._tasks.get(task_id)
            if procs is None:
                if exec_id:
                    raise LookupError(
                        f"cannot add exec {exec_id!r} to non-existent task {task_id!r}"
                    )
                procs = self._tasks[task_id] = {}
            if exec_id in procs:
                raise ValueError(f"exec {exec_id!r} already exists")

            logger = logging.LoggerAdapter(
                self._logger, {"TaskID": task_id, "ExecID": exec_id}
            )
            proc = Proc(task_id=task_id, exec_id=exec_id, logger=logger)
            procs[exec_id] = proc
            return proc

    def _delete_proc(self, task_id: str, exec_id: str) -> Proc:
        with self._lock:
            procs = self._tasks.get(task_id)
            if procs is None:
                raise LookupError(
                    f"cannot delete exec {exec_id!r} from non-existent task {task_id!r}"
                )
            proc = procs.pop(exec_id, None)
            if proc is None:
                raise LookupError(
                    f"cannot delete non-existent exec {exec_id!r} from task {task_id!r}"
                )
            if not procs:
                del self._tasks[task_id]
            return proc

    def _find_proc(self, task_id: str, exec_id: str) -> Proc:
        """Look up a proc; the caller must hold the lock."""
        procs = self._tasks.get(task_id)
        if procs is None:
            raise LookupError(
                f"cannot find exec {exec_id!r} from non-existent task {task_id!r}"
            )
        proc = procs.get(exec_id)
        if proc is None:
            raise LookupError(
                f"cannot find non-existent exec {exec_id!r} from task {task_id!r}"
            )
        if proc.proxy is None:
            raise LookupError(
                f"exec {exec_id!r} and task {task_id!r} are present, but no proxy"
            )
        return proc

    def shutdown_if_empty(self) -> bool:
        """Shut down if no tasks remain, refusing any new ones afterwards.

        Returns whether the manager shut down as a result of the call.
        """
        with self._lock:
            if not self._tasks:
                self._is_shutdown = True
                return True
            return False

    def _start(
        self,
        task_id: str,
        exec_id: str,
        io_proxy: IOProxy,
        call: Callable[[], Any],
    ) -> tuple[Proc, Any, Future]:
        proc = self._new_proc(task_id, exec_id)
        proc.proxy = io_proxy
        try:
            # Start stdio setup without blocking on it, so the service call can
            # let the setup complete.
            init_done, copy_done = io_proxy.start(proc)
            proc.io_copy_done = copy_done
            response = call()
            init_done.result()
        except BaseException:
            proc.cancel()
            try:
                self._delete_proc(task_id, exec_id)
            except LookupError:
                pass
            raise
        return proc, response, copy_done

    def _monitor(self, proc: Proc, task_service: TaskService, copy_done: Future) -> None:
        threading.Thread(
            target=self._monitor_exit, args=(proc, task_service), daemon=True
        ).start()
        copy_done.add_done_callback(lambda _future: _close_proxy(proc))

    def create_task(
        self,
        request: CreateTaskRequest,
        task_service: TaskService,
        io_proxy: IOProxy,
    ) -> Any:
        """Create and start managing a task, proxying its stdio through ``io_proxy``."""
        proc, response, copy_done = self._start(
            request.id, "", io_proxy, lambda: task_service.create(request)
        )
        proc.logger.info(
            "successfully created task (pid_in_vm=%s)", getattr(response, "pid", None)
        )
        self._monitor(proc, task_service, copy_done)
        return response

    def exec_process(
        self,
        request: ExecProcessRequest,
        task_service: TaskService,
        io_proxy: IOProxy,
    ) -> Any:
        """Start and manage an exec in a task already managed here."""
        proc, response, copy_done = self._start(
            request.id, request.exec_id, io_proxy, lambda: task_service.exec(request)
        )
        self._monitor(proc, task_service, copy_done)
        return response

    def delete_process(self, request: DeleteRequest, task_service: TaskService) -> Any:
        """Delete a task or exec, then wait for its stdio to be flushed and closed."""
        response = task_service.delete(request)
        proc = self._delete_proc(request.id, request.exec_id)
        # IO errors are already logged by the proxy; only completion matters here.
        if proc.io_copy_done is not None:
            wait([proc.io_copy_done])
        return response

    def _monitor_exit(self, proc: Proc, task_service: TaskService) -> None:
        try:
            response = task_service.wait(WaitRequest(id=proc.task_id, exec_id=proc.exec_id))
        except Exception as exc:  # noqa: BLE001 - reported, the process is gone either way
            proc.cancel()
            proc.logger.error("error waiting for exit: %s", exc)
            return
        proc.cancel()
        proc.logger.info(
            "exited (exit_status=%s, exited_at=%s)",
            getattr(response, "exit_status", None),
            getattr(response, "exited_at", None),
        )

    def is_proxy_open(self, task_id: str, exec_id: str) -> bool:
        """Return True if the task or exec has an IO proxy that is still open."""
        with self._lock:
            proc = self._find_proc(task_id, exec_id)
            return proc.proxy.is_open()

    def attach_io(self, task_id: str, exec_id: str, io_proxy: IOProxy) -> None:
        """Attach ``io_proxy`` to a managed task or exec."""
        with self._lock:
            proc = self._find_proc(task_id, exec_id)
            init_done, copy_done = io_proxy.start(proc)
            proc.proxy = io_proxy

        def on_init(future: Future) -> None:
            if future.exception() is not None:
                proc.logger.error("failed to initialize an io proxy")
                io_proxy.close()

        init_done.add_done_callback(on_init)
        copy_done.add_done_callback(lambda _future: _close_proxy(proc))