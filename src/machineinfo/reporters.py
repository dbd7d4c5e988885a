"""Report sections: query the host probe and render text lines."""

from collections.abc import Callable

from machineinfo.models import (
    CPURecord,
    NetworkInterfaceRecord,
    SystemSnapshot,
)
from machineinfo.probe import HostProbe

MEM_UNIT = 1024 * 1024  # Bytes per MB


def get_host_name(probe: HostProbe) -> str:
    """Return the hostname; raises QueryError if the host has none."""
    return probe.hostname()


def get_os_name(probe: HostProbe) -> tuple[str, str]:
    """Return (os name, architecture)."""
    return probe.platform()


def _megabytes(size: int) -> int:
    return max(0, int(size)) // MEM_UNIT


def get_sys_info(probe: HostProbe) -> SystemSnapshot:
    """Query kernel statistics once and scale them for display."""
    raw = probe.sysinfo()
    return SystemSnapshot(
        uptime=max(0, int(raw.uptime)),
        loads=tuple(max(0.0, float(load)) for load in raw.loads),
        total_ram=_megabytes(raw.total_ram),
        free_ram=_megabytes(raw.free_ram),
        shared_ram=_megabytes(raw.shared_ram),
        buffer_ram=_megabytes(raw.buffer_ram),
        total_swap=_megabytes(raw.total_swap),
        free_swap=_megabytes(raw.free_swap),
        total_high=_megabytes(raw.total_high),
        free_high=_megabytes(raw.free_high),
        procs=max(0, int(raw.procs)),
    )


def _to_int(value: str | None, default: int = 0) -> int:
    if not value:
        return default
    # '512 KB' -> 512
    token = value.split()[0]
    try:
        return int(token)
    except ValueError:
        return default


def _to_float(value: str | None) -> float | None:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def cpu_record_from_block(block: dict[str, str], fallback_mhz: float = 0.0) -> CPURecord:
    """Build a CPURecord from one /proc/cpuinfo style key/value block."""
    mhz = _to_float(block.get("cpu MHz"))
    flags = block.get("flags") or block.get("Features") or ""
    return CPURecord(
        cpu=_to_int(block.get("processor")),
        vendor_id=block.get("vendor_id") or block.get("CPU implementer", ""),
        family=block.get("cpu family", ""),
        model=block.get("model", ""),
        stepping=_to_int(block.get("stepping")),
        physical_id=block.get("physical id", ""),
        core_id=block.get("core id", ""),
        cores=_to_int(block.get("cpu cores"), default=1),
        model_name=block.get("model name", ""),
        mhz=fallback_mhz if mhz is None else mhz,
        cache_size=_to_int(block.get("cache size")),
        flags=tuple(flags.split()),
        microcode=block.get("microcode", ""),
    )


def get_cpu_info(probe: HostProbe) -> list[CPURecord]:
    """Return one record per logical CPU, in kernel enumeration order."""
    blocks = probe.cpu_blocks()
    freqs: list[float] = []
    if any("cpu MHz" not in block for block in blocks):
        freqs = probe.cpu_frequencies()

    records = []
    for position, block in enumerate(blocks):
        fallback = freqs[position] if position < len(freqs) else 0.0
        records.append(cpu_record_from_block(block, fallback_mhz=fallback))
    return records


def get_network_interfaces(probe: HostProbe) -> list[NetworkInterfaceRecord]:
    """Return the configured interfaces ordered by OS index."""
    return sorted(probe.interfaces(), key=lambda iface: (iface.index, iface.name))


def format_uptime(seconds: int) -> str:
    """Format uptime seconds as 'N days, HH:MM:SS'."""
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_interface(iface: NetworkInterfaceRecord) -> str:
    hw = iface.hardware_addr or "-"
    flags = "|".join(iface.flags) or "-"
    addrs = ",".join(iface.addresses) or "-"
    return f"{iface.index}: {iface.name} mtu {iface.mtu} hw {hw} flags {flags} addrs {addrs}"


def report_hostname(probe: HostProbe) -> list[str]:
    return [f"hostname:\t{get_host_name(probe)}"]


def report_os_name(probe: HostProbe) -> list[str]:
    os_name, os_arch = get_os_name(probe)
    return [f"OS name:\t{os_name}", f"OS arch:\t{os_arch}"]


def report_sys_info(probe: HostProbe) -> list[str]:
    snap = get_sys_info(probe)
    load1, load5, load15 = snap.loads
    return [
        f"sys uptime:\t{snap.uptime} ({format_uptime(snap.uptime)})",
        f"sys load avg:\t{load1:.2f}, {load5:.2f}, {load15:.2f}",
        f"sys totalRam:\t{snap.total_ram} MB",
        f"sys freeRam:\t{snap.free_ram} MB",
        f"sys sharedRam:\t{snap.shared_ram} MB",
        f"sys bufferRam:\t{snap.buffer_ram} MB",
        f"sys totalSwap:\t{snap.total_swap} MB",
        f"sys freeSwap:\t{snap.free_swap} MB",
        f"sys totalHigh:\t{snap.total_high} MB",
        f"sys freeHigh:\t{snap.free_high} MB",
        f"sys procs:\t{snap.procs}",
    ]


def report_cpu_info(probe: HostProbe) -> list[str]:
    lines = []
    for rec in get_cpu_info(probe):
        lines.extend(
            [
                f"cpuID:\t{rec.cpu}",
                f"--vendorID:\t{rec.vendor_id}",
                f"--family:\t{rec.family}",
                f"--model:\t{rec.model}",
                f"--stepping:\t{rec.stepping}",
                f"--physicalID:\t{rec.physical_id}",
                f"--coreID:\t{rec.core_id}",
                f"--cores:\t{rec.cores}",
                f"--modelName:\t{rec.model_name}",
                f"--MHz:\t\t{rec.mhz:g}",
                f"--cacheSize:\t{rec.cache_size}",
                f"--flags:\t{' '.join(rec.flags)}",
                f"--microcode:\t{rec.microcode}",
            ]
        )
    return lines


def report_network(probe: HostProbe) -> list[str]:
    ifaces = get_network_interfaces(probe)
    if not ifaces:
        return ["interfaces:\tno interfaces found"]
    lines = [f"interfaces:\t{format_interface(ifaces[0])}"]
    lines.extend(f"\t\t{format_interface(iface)}" for iface in ifaces[1:])
    return lines


# Section name -> renderer
SECTIONS: dict[str, Callable[[HostProbe], list[str]]] = {
    "hostname": report_hostname,
    "network": report_network,
    "osname": report_os_name,
    "sysinfo": report_sys_info,
    "cpu": report_cpu_info,
}
