"""Builder for cpuset.cpus and cpuset.mems strings."""

from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class CPUSet:
    """The cpuset.cpus and cpuset.mems values for a process."""

    cpus: str = ""
    mems: str = ""


@dataclass(frozen=True)
class Builder:
    """Immutable builder; every add method returns a new Builder."""

    cpus: tuple[int, ...] = ()
    cpu_ranges: tuple[tuple[int, int], ...] = ()
    mems: tuple[int, ...] = ()
    mem_ranges: tuple[tuple[int, int], ...] = ()

    def add_cpu(self, cpu: int) -> Builder:
        """Add a physical CPU the process may run on."""
        return replace(self, cpus=self.cpus + (cpu,))

    def add_cpu_range(self, minimum: int, maximum: int) -> Builder:
        """Add an inclusive range of physical CPUs."""
        return replace(self, cpu_ranges=self.cpu_ranges + ((minimum, maximum),))

    def add_mem(self, mem: int) -> Builder:
        """Add a memory node."""
        return replace(self, mems=self.mems + (mem,))

    def add_mem_range(self, minimum: int, maximum: int) -> Builder:
        """Add an inclusive range of memory nodes."""
        return replace(self, mem_ranges=self.mem_ranges + ((minimum, maximum),))

    def build(self) -> CPUSet:
        """Construct the CPUSet: single values first, then ranges."""
        return CPUSet(
            cpus=_stringify(self.cpus, self.cpu_ranges),
            mems=_stringify(self.mems, self.mem_ranges),
        )


def _stringify(elems: tuple[int, ...], ranges: tuple[tuple[int, int], ...]) -> str:
    parts = [str(e) for e in elems]
    parts.extend(f"{lo}-{hi}" for lo, hi in ranges)
    return ",".join(parts)