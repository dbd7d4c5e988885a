"""Operating system queries for machineinfo."""

import ipaddress
import logging
import platform
import socket
import time
from pathlib import Path

import psutil

from machineinfo.models import NetworkInterfaceRecord, RawSysinfo

logger = logging.getLogger("machineinfo")

CPUINFO_PATH = Path("/proc/cpuinfo")
MEMINFO_PATH = Path("/proc/meminfo")


class QueryError(Exception):
    """An operating system query failed."""

    def __init__(self, query: str, reason: str) -> None:
        super().__init__(f"{query}: {reason}")
        self.query = query
        self.reason = reason


def split_cpuinfo(text: str) -> tuple[list[dict[str, str]], dict[str, str]]:
    """
    Split /proc/cpuinfo content into per-CPU blocks and shared keys.

    A block with a 'processor' key describes one logical CPU. Keys from any
    other block (the board summary on ARM, the header on s390) are shared
    by every CPU.
    """
    blocks: list[dict[str, str]] = []
    shared: dict[str, str] = {}
    current: dict[str, str] = {}
    for line in text.splitlines() + [""]:
        if not line.strip():
            if "processor" in current:
                blocks.append(current)
            else:
                shared.update(current)
            current = {}
            continue
        key, sep, value = line.partition(":")
        if sep:
            current[key.strip()] = value.strip()
    return blocks, shared


def parse_cpuinfo(text: str) -> list[dict[str, str]]:
    """Return one key/value dict per logical CPU, shared keys filled in."""
    blocks, shared = split_cpuinfo(text)
    return [{**shared, **block} for block in blocks]


def parse_meminfo_high(text: str) -> tuple[int, int]:
    """Return (HighTotal, HighFree) in bytes, zero when the kernel omits them."""
    values = {"HighTotal": 0, "HighFree": 0}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        if sep and key in values:
            fields = rest.split()
            if fields:
                values[key] = int(fields[0]) * 1024  # kB
    return values["HighTotal"], values["HighFree"]


def netmask_prefix(netmask: str | None) -> int | None:
    """Convert a dotted or colon netmask to a prefix length."""
    if not netmask:
        return None
    try:
        return bin(int(ipaddress.ip_address(netmask))).count("1")
    except ValueError:
        return None


class HostProbe:
    """
    Reads machine state from the local operating system.

    Each method performs one query and raises QueryError when the
    underlying call fails; nothing is cached between calls.
    """

    def hostname(self) -> str:
        """Return the configured hostname."""
        logger.debug("querying hostname")
        try:
            name = socket.gethostname()
        except OSError as exc:
            raise QueryError("hostname", str(exc)) from exc
        if not name:
            raise QueryError("hostname", "the host has no hostname configured")
        return name

    def platform(self) -> tuple[str, str]:
        """Return (os name, architecture)."""
        return platform.system().lower(), platform.machine()

    def sysinfo(self) -> RawSysinfo:
        """Collect aggregate memory, swap, load and process statistics."""
        logger.debug("querying system statistics")
        try:
            mem = psutil.virtual_memory()
            swap = psutil.swap_memory()
            load_avg = psutil.getloadavg()
            uptime = time.time() - psutil.boot_time()
            procs = len(psutil.pids())
            total_high, free_high = self._high_memory()
        except (OSError, psutil.Error) as exc:
            raise QueryError("sysinfo", str(exc)) from exc

        return RawSysinfo(
            uptime=uptime,
            loads=tuple(load_avg),
            total_ram=mem.total,
            free_ram=mem.free,
            # Not every platform reports shared/buffers
            shared_ram=getattr(mem, "shared", 0),
            buffer_ram=getattr(mem, "buffers", 0),
            total_swap=swap.total,
            free_swap=swap.free,
            total_high=total_high,
            free_high=free_high,
            procs=procs,
        )

    def _high_memory(self) -> tuple[int, int]:
        if not MEMINFO_PATH.exists():
            return 0, 0
        return parse_meminfo_high(MEMINFO_PATH.read_text())

    def cpu_blocks(self) -> list[dict[str, str]]:
        """
        Return the per-CPU descriptor table as key/value dicts.

        Uses /proc/cpuinfo where the kernel provides one block per logical
        CPU, otherwise builds one sparse block per logical CPU from psutil
        and platform, keeping any keys /proc/cpuinfo shares across CPUs.
        """
        logger.debug("querying cpu descriptors")
        try:
            shared: dict[str, str] = {}
            if CPUINFO_PATH.exists():
                blocks, shared = split_cpuinfo(CPUINFO_PATH.read_text())
                count = psutil.cpu_count(logical=True) or 0
                if blocks and len(blocks) >= count:
                    return [{**shared, **block} for block in blocks]
                logger.debug("cpuinfo lists %d cpus, expected %d", len(blocks), count)
            return [{**shared, **block} for block in self._synthesized_cpu_blocks()]
        except (OSError, psutil.Error) as exc:
            raise QueryError("cpuinfo", str(exc)) from exc

    def _synthesized_cpu_blocks(self) -> list[dict[str, str]]:
        count = psutil.cpu_count(logical=True) or 1
        physical = psutil.cpu_count(logical=False) or count
        return [
            {
                "processor": str(i),
                "model name": platform.processor(),
                "cpu cores": str(physical),
            }
            for i in range(count)
        ]

    def cpu_frequencies(self) -> list[float]:
        """Return the current frequency of each logical CPU in MHz, if known."""
        if not hasattr(psutil, "cpu_freq"):
            logger.debug("cpu frequency not available on this platform")
            return []
        try:
            freqs = psutil.cpu_freq(percpu=True) or []
        except (OSError, psutil.Error, NotImplementedError):
            logger.debug("cpu frequency not available on this platform")
            return []
        return [f.current for f in freqs]

    def interfaces(self) -> list[NetworkInterfaceRecord]:
        """Enumerate configured network interfaces."""
        logger.debug("querying network interfaces")
        try:
            addrs = psutil.net_if_addrs()
            stats = psutil.net_if_stats()
            indexes = {name: index for index, name in socket.if_nameindex()}
        except (OSError, psutil.Error) as exc:
            raise QueryError("interfaces", str(exc)) from exc

        records = []
        for name in sorted(set(addrs) | set(stats)):
            hardware_addr = ""
            addresses = []
            for addr in addrs.get(name, []):
                if addr.family == psutil.AF_LINK:
                    hardware_addr = addr.address
                elif addr.family in (socket.AF_INET, socket.AF_INET6):
                    prefix = netmask_prefix(addr.netmask)
                    addresses.append(addr.address if prefix is None else f"{addr.address}/{prefix}")

            stat = stats.get(name)
            if stat is None:
                flags: tuple[str, ...] = ()
                mtu = 0
            else:
                # psutil only reports the full flag set on recent versions
                raw_flags = getattr(stat, "flags", "")
                flags = tuple(f for f in raw_flags.split(",") if f)
                if not flags:
                    flags = ("up",) if stat.isup else ("down",)
                mtu = stat.mtu

            records.append(
                NetworkInterfaceRecord(
                    index=indexes.get(name, 0),
                    name=name,
                    hardware_addr=hardware_addr,
                    flags=flags,
                    mtu=mtu,
                    addresses=tuple(addresses),
                )
            )
        return records
