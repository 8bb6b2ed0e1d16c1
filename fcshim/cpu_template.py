"""Detection of whether Firecracker CPU templates apply to this host."""

from __future__ import annotations

import functools
import platform
import re
from typing import Iterable

_CPUINFO_PATH = "/proc/cpuinfo"
_VENDOR_ID = re.compile(r"^vendor_id\s*:\s*(.+)$")
_AMD64_MACHINES = frozenset({"x86_64", "amd64", "AMD64"})


@functools.lru_cache(maxsize=None)
def support_cpu_template() -> bool:
    """Return True if Firecracker supports CPU templates on this machine.

    Templates exist only for Intel x86_64 processors.
    """
    if platform.machine() not in _AMD64_MACHINES:
        return False
    with open(_CPUINFO_PATH, encoding="utf-8") as cpuinfo:
        return find_first_vendor_id(cpuinfo) == "GenuineIntel"


def find_first_vendor_id(reader: Iterable[str]) -> str:
    """Return the first vendor_id value in cpuinfo-style text, or ''."""
    for line in reader:
        match = _VENDOR_ID.match(line.rstrip("\r\n"))
        if match:
            return match.group(1)
    return ""