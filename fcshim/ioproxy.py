"""Proxying of a VM process's stdio between pairs of IO connectors."""

from __future__ import annotations

import errno
import logging
import threading
from abc import ABC, abstractmethod
from concurrent.futures import FIRST_COMPLETED, Future, wait
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence, Union

from fcshim.common import DEFAULT_BUFFER_SIZE

_log = logging.getLogger(__name__)

# Once a process exits, wait this long for stdout/stderr to drain before
# forcibly closing them.
DEFAULT_IO_FLUSH_TIMEOUT = 5.0


@dataclass
class IOConnectorResult:
    """Outcome of establishing one IO connection: a stream or an error."""

    stream: Any = None
    error: Optional[BaseException] = None


# A connector starts opening a stream and returns a future that resolves to an
# IOConnectorResult. It receives an event that is set once the IO is finished
# (or the process is gone) and a logger.
IOConnector = Callable[[threading.Event, logging.Logger], "Future[IOConnectorResult]"]

_LoggerLike = Union[logging.Logger, logging.LoggerAdapter]


@dataclass(eq=False)
class Proc:
    """A task or exec running in the VM, as seen by the IO proxies."""

    task_id: str
    exec_id: str = ""
    logger: _LoggerLike = _log
    io_copy_done: Optional[Future] = None
    proxy: Optional[IOProxy] = None
    done: threading.Event = field(default_factory=threading.Event)
    _callbacks: list = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def cancel(self) -> None:
        """Mark the process as finished and run the registered callbacks once."""
        with self._lock:
            if self.done.is_set():
                return
            self.done.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        """Call ``callback`` when the process finishes, or now if it already has."""
        with self._lock:
            if not self.done.is_set():
                self._callbacks.append(callback)
                return
        callback()


def _log_close(*streams: Any) -> None:
    errors = []
    for stream in streams:
        if stream is None:
            continue
        try:
            stream.close()
        except Exception as exc:  # noqa: BLE001 - every close failure is reported
            errors.append(exc)
    if errors:
        _log.error("error closing io stream: %s", "; ".join(str(e) for e in errors))


def _copy(reader: Any, writer: Any) -> int:
    read = getattr(reader, "read1", None) or reader.read
    total = 0
    while True:
        chunk = read(DEFAULT_BUFFER_SIZE)
        if not chunk:
            break
        writer.write(chunk)
        total += len(chunk)
    flush = getattr(writer, "flush", None)
    if flush is not None:
        flush()
    return total


def _is_closed_error(exc: BaseException) -> bool:
    if isinstance(exc, ValueError):
        return True
    return isinstance(exc, OSError) and exc.errno == errno.EBADF


def _resolved(error: Optional[BaseException] = None) -> Future:
    future: Future = Future()
    if error is None:
        future.set_result(None)
    else:
        future.set_exception(error)
    return future


def _gather(
    futures: Sequence[Future],
    on_error: Optional[Callable[[], None]] = None,
) -> Future:
    """Resolve once every future is done, failing with the first error seen."""
    result: Future = Future()
    if not futures:
        result.set_result(None)
        return result

    lock = threading.Lock()
    state: dict[str, Any] = {"pending": len(futures), "error": None}

    def on_done(future: Future) -> None:
        exc = future.exception()
        first_error = False
        with lock:
            if exc is not None and state["error"] is None:
                state["error"] = exc
                first_error = True
            state["pending"] -= 1
            finished = state["pending"] == 0
        if first_error and on_error is not None:
            on_error()
        if finished:
            if state["error"] is None:
                result.set_result(None)
            else:
                result.set_exception(state["error"])

    for future in futures:
        future.add_done_callback(on_done)
    return result


@dataclass
class IOConnectorPair:
    """The read and write side of an IO stream to be proxied."""

    read_connector: IOConnector
    write_connector: IOConnector

    def proxy(
        self,
        proc_done: threading.Event,
        timeout_after_exit: float,
    ) -> tuple[Future, Future]:
        """Connect both sides and copy from reader to writer in the background.

        Returns ``(init_done, copy_done)``. ``init_done`` resolves to None once
        both streams are open, or fails with the first connection error.
        ``copy_done`` resolves to None when copying ends cleanly, or fails with
        the copy error. Once ``proc_done`` is set the streams are closed after
        ``timeout_after_exit`` seconds.
        """
        init_done: Future = Future()
        copy_done: Future = Future()
        io_done = threading.Event()

        pending = {
            self.read_connector(io_done, _log.getChild("read")): "read",
            self.write_connector(io_done, _log.getChild("write")): "write",
        }

        def run() -> None:
            streams: dict[str, Any] = {"read": None, "write": None}
            init_error: Optional[BaseException] = None
            copy_error: Optional[BaseException] = None
            try:
                remaining = dict(pending)
                while remaining:
                    finished, _ = wait(list(remaining), return_when=FIRST_COMPLETED)
                    for future in finished:
                        side = remaining.pop(future)
                        try:
                            outcome = future.result()
                            error = outcome.error
                        except Exception as exc:  # noqa: BLE001
                            outcome, error = None, exc
                        if error is None and outcome is not None:
                            streams[side] = outcome.stream
                        elif error is not None and init_error is None:
                            init_error = OSError(f"error initializing io: {error}")
                            init_error.__cause__ = error
                            _log.error("%s", init_error)

                if init_error is not None:
                    init_done.set_exception(init_error)
                    _log_close(streams["read"], streams["write"])
                    return
                init_done.set_result(None)

                reader, writer = streams["read"], streams["write"]

                def close_after_exit() -> None:
                    proc_done.wait()
                    if io_done.is_set():
                        return
                    timer = threading.Timer(
                        timeout_after_exit, _log_close, args=(reader, writer)
                    )
                    timer.daemon = True
                    timer.start()

                threading.Thread(target=close_after_exit, daemon=True).start()

                _log.debug("begin copying io")
                try:
                    size = _copy(reader, writer)
                    _log.debug("copied %d", size)
                except Exception as exc:  # noqa: BLE001
                    copy_error = exc
                    if _is_closed_error(exc):
                        _log.info("connection was closed: %s", exc)
                    else:
                        _log.error("error copying io: %s", exc)
                _log.debug("end copying io")
                _log_close(reader, writer)
            finally:
                if not init_done.done():
                    init_done.set_result(None)
                if copy_error is None:
                    copy_done.set_result(None)
                else:
                    copy_done.set_exception(copy_error)
                io_done.set()

        threading.Thread(target=run, daemon=True).start()
        return init_done, copy_done


class IOProxy(ABC):
    """Sets up and copies the stdio of a process running in a VM."""

    @abstractmethod
    def start(self, proc: Proc) -> tuple[Future, Future]:
        """Begin proxying for ``proc``; return the init and copy futures."""

    @abstractmethod
    def close(self) -> None:
        """Close the proxy."""

    @abstractmethod
    def is_open(self) -> bool:
        """Return True if the proxy has not been closed."""


class IOConnectorProxy(IOProxy):
    """Proxies stdin, stdout and stderr through optional connector pairs."""

    def __init__(
        self,
        stdin: Optional[IOConnectorPair],
        stdout: Optional[IOConnectorPair],
        stderr: Optional[IOConnectorPair],
    ) -> None:
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self._lock = threading.Lock()
        self._closed = False

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def is_open(self) -> bool:
        with self._lock:
            return not self._closed

    def start(self, proc: Proc) -> tuple[Future, Future]:
        """Start proxying each configured stream of ``proc``.

        A copy failure on one stream signals the others to close, as does the
        process finishing.
        """
        stop = threading.Event()
        proc.add_done_callback(stop.set)

        init_futures: list[Future] = []
        copy_futures: list[Future] = []
        streams = (
            ("stdin", self.stdin, 0.0),
            ("stdout", self.stdout, DEFAULT_IO_FLUSH_TIMEOUT),
            ("stderr", self.stderr, DEFAULT_IO_FLUSH_TIMEOUT),
        )
        for name, pair, timeout in streams:
            if pair is None:
                proc.logger.debug("skipping proxy io for unset %s", name)
                continue
            init_future, copy_future = pair.proxy(stop, timeout)
            init_futures.append(init_future)
            copy_futures.append(copy_future)

        init_done = _gather(init_futures)
        copy_done = _gather(copy_futures, on_error=stop.set)
        return init_done, copy_done


class NullIOProxy(IOProxy):
    """A proxy that does nothing, for IO handled entirely inside the VM."""

    def start(self, proc: Proc) -> tuple[Future, Future]:
        return _resolved(), _resolved()

    def close(self) -> None:
        """Closing is a no-op."""

    def is_open(self) -> bool:
        return True