"""Polling helpers over running processes and CPU time counters."""

from __future__ import annotations

import threading
from concurrent.futures import CancelledError
from dataclasses import dataclass, fields
from typing import Callable, Optional, Protocol

import psutil


class _Waitable(Protocol):
    def wait(self, timeout: Optional[float] = None) -> bool: ...


@dataclass(frozen=True)
class CPUTimes:
    """Aggregate CPU times, in seconds, by category."""

    user: float = 0.0
    system: float = 0.0
    idle: float = 0.0
    nice: float = 0.0
    iowait: float = 0.0
    irq: float = 0.0
    softirq: float = 0.0
    steal: float = 0.0
    guest: float = 0.0
    guest_nice: float = 0.0


def _event(cancel: Optional[_Waitable]) -> _Waitable:
    return cancel if cancel is not None else threading.Event()


def wait_for_process_to_exist(
    query_interval: float,
    matcher: Callable[[psutil.Process], bool],
    cancel: Optional[_Waitable] = None,
) -> list[psutil.Process]:
    """Poll every ``query_interval`` seconds until ``matcher`` accepts a process.

    Returns every matching process of the first poll that has any.
    Raises CancelledError once ``cancel`` is set.
    """
    event = _event(cancel)
    while not event.wait(query_interval):
        matches = [proc for proc in psutil.process_iter() if matcher(proc)]
        if matches:
            return matches
    raise CancelledError("wait for process to exist was cancelled")


def wait_for_pid_to_exit(
    query_interval: float,
    pid: int,
    cancel: Optional[_Waitable] = None,
) -> None:
    """Poll every ``query_interval`` seconds until ``pid`` no longer exists.

    Raises CancelledError once ``cancel`` is set.
    """
    event = _event(cancel)
    while not event.wait(query_interval):
        if not psutil.pid_exists(pid):
            return
    raise CancelledError("wait for pid to exit was cancelled")


def _sample() -> CPUTimes:
    times = psutil.cpu_times(percpu=False)
    return CPUTimes(**{f.name: float(getattr(times, f.name, 0.0)) for f in fields(CPUTimes)})


def average_cpu_deltas(sample_interval: float, stop: _Waitable) -> CPUTimes:
    """Sample CPU times every ``sample_interval`` seconds until ``stop`` is set.

    Returns the average change per interval between the first and last sample.
    """
    first: Optional[CPUTimes] = None
    last: Optional[CPUTimes] = None
    count = 0
    while not stop.wait(sample_interval):
        sample = _sample()
        if first is None:
            first = sample
        else:
            last = sample
            count += 1

    if first is None:
        raise RuntimeError("sample channel closed before first data point")
    if last is None:
        raise RuntimeError("only got one data point, cannot calculate average")

    return CPUTimes(
        **{
            f.name: (getattr(last, f.name) - getattr(first, f.name)) / count
            for f in fields(CPUTimes)
        }
    )