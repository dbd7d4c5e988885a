"""Data models for machineinfo."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class IdentityInfo:
    """Hostname and operating system identity."""

    hostname: str
    os_name: str  # 'linux', 'darwin', 'windows', ...
    os_arch: str  # 'x86_64', 'aarch64', ...


@dataclass(slots=True, frozen=True)
class RawSysinfo:
    """Aggregate kernel statistics as the host reports them."""

    uptime: float  # Seconds since boot
    loads: tuple[float, float, float]
    total_ram: int  # Bytes
    free_ram: int
    shared_ram: int
    buffer_ram: int
    total_swap: int
    free_swap: int
    total_high: int
    free_high: int
    procs: int


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Kernel statistics scaled for display."""

    uptime: int  # Whole seconds
    loads: tuple[float, float, float]
    total_ram: int  # Megabytes
    free_ram: int
    shared_ram: int
    buffer_ram: int
    total_swap: int
    free_swap: int
    total_high: int
    free_high: int
    procs: int


@dataclass(slots=True, frozen=True)
class CPURecord:
    """Descriptor of one logical CPU."""

    cpu: int
    vendor_id: str
    family: str
    model: str
    stepping: int
    physical_id: str
    core_id: str
    cores: int
    model_name: str
    mhz: float
    cache_size: int  # KB
    flags: tuple[str, ...]
    microcode: str


@dataclass(slots=True, frozen=True)
class NetworkInterfaceRecord:
    """One configured network interface."""

    index: int
    name: str
    hardware_addr: str
    flags: tuple[str, ...]
    mtu: int
    addresses: tuple[str, ...]  # 'addr/prefix'


@dataclass(slots=True, frozen=True)
class SectionResult:
    """Outcome of running one report section."""

    name: str
    lines: tuple[str, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True when the section produced its report."""
        return self.error is None
