"""Tests for the report sections."""

import pytest

from fakes import MB, FakeProbe
from machineinfo.models import RawSysinfo, SystemSnapshot
from machineinfo.probe import HostProbe, QueryError
from machineinfo.reporters import (
    SECTIONS,
    cpu_record_from_block,
    format_uptime,
    get_cpu_info,
    get_host_name,
    get_network_interfaces,
    get_os_name,
    get_sys_info,
    report_cpu_info,
    report_hostname,
    report_network,
    report_os_name,
    report_sys_info,
)


class TestIdentity:
    """Tests for the identity reporter."""

    def test_get_host_name(self):
        """Test the hostname comes straight from the probe."""
        assert get_host_name(FakeProbe(hostname="box01")) == "box01"

    def test_get_os_name(self):
        """Test OS name and architecture come from the probe."""
        assert get_os_name(FakeProbe(platform=("darwin", "arm64"))) == ("darwin", "arm64")

    def test_hostname_failure_propagates(self):
        """Test a failing hostname query raises QueryError."""
        with pytest.raises(QueryError):
            get_host_name(FakeProbe(failing={"hostname"}))

    def test_report_lines(self):
        """Test hostname and OS name rendering."""
        assert report_hostname(FakeProbe(hostname="box01")) == ["hostname:\tbox01"]
        assert report_os_name(FakeProbe()) == ["OS name:\tlinux", "OS arch:\tx86_64"]


class TestSysInfo:
    """Tests for the system statistics reporter."""

    def test_scaling_to_megabytes(self):
        """Test byte counts are truncated to whole megabytes."""
        snap = get_sys_info(FakeProbe())

        assert isinstance(snap, SystemSnapshot)
        assert snap.total_ram == 16 * 1024
        assert snap.free_ram == 4 * 1024
        assert snap.shared_ram == 256
        assert snap.buffer_ram == 512
        assert snap.total_swap == 2048
        assert snap.free_swap == 2048
        assert snap.total_high == 0
        assert snap.free_high == 0

    def test_uptime_loads_and_procs(self):
        """Test uptime truncation and pass-through of loads and procs."""
        snap = get_sys_info(FakeProbe())

        assert snap.uptime == 93784
        assert snap.loads == (0.5, 0.25, 0.125)
        assert snap.procs == 321

    def test_fields_non_negative(self):
        """Test memory fields are non-negative ints and loads non-negative floats."""
        raw = RawSysinfo(
            uptime=-1.0,
            loads=(-0.1, 0, 1),
            total_ram=-MB,
            free_ram=MB - 1,
            shared_ram=0,
            buffer_ram=0,
            total_swap=0,
            free_swap=0,
            total_high=0,
            free_high=0,
            procs=-3,
        )
        snap = get_sys_info(FakeProbe(sysinfo=raw))

        memory = [
            snap.total_ram,
            snap.free_ram,
            snap.shared_ram,
            snap.buffer_ram,
            snap.total_swap,
            snap.free_swap,
            snap.total_high,
            snap.free_high,
        ]
        assert all(isinstance(v, int) and v >= 0 for v in memory)
        assert all(isinstance(v, float) and v >= 0.0 for v in snap.loads)
        assert snap.uptime == 0
        assert snap.procs == 0

    def test_single_query(self):
        """Test the probe is queried exactly once."""
        probe = FakeProbe()
        get_sys_info(probe)
        assert probe.calls == ["sysinfo"]

    def test_report_lines(self):
        """Test every statistic is rendered in order."""
        lines = report_sys_info(FakeProbe())

        assert len(lines) == 11
        assert lines[0] == "sys uptime:\t93784 (1 days, 02:03:04)"
        assert lines[1].startswith("sys load avg:\t0.50, 0.25, ")
        assert lines[2] == "sys totalRam:\t16384 MB"
        assert lines[3] == "sys freeRam:\t4096 MB"
        assert lines[5] == "sys bufferRam:\t512 MB"
        assert lines[-1] == "sys procs:\t321"

    def test_real_host(self):
        """Test the reporter against the running host."""
        snap = get_sys_info(HostProbe())
        assert snap.total_ram > 0
        assert all(load >= 0.0 for load in snap.loads)


class TestFormatUptime:
    """Tests for uptime formatting."""

    def test_under_a_day(self):
        """Test uptime below one day has no day count."""
        assert format_uptime(3725) == "01:02:05"

    def test_days(self):
        """Test uptime over a day includes the day count."""
        assert format_uptime(2 * 86400 + 59) == "2 days, 00:00:59"


class TestCPUInfo:
    """Tests for the CPU reporter."""

    def test_records_from_cpuinfo(self):
        """Test records are built from the descriptor table."""
        records = get_cpu_info(FakeProbe())

        assert len(records) == 2
        first = records[0]
        assert first.cpu == 0
        assert first.vendor_id == "GenuineIntel"
        assert first.family == "6"
        assert first.model == "142"
        assert first.stepping == 10
        assert first.physical_id == "0"
        assert first.core_id == "0"
        assert first.cores == 2
        assert first.mhz == 1992.002
        assert first.cache_size == 8192
        assert first.flags == ("fpu", "vme", "de", "pse", "sse", "sse2")
        assert first.microcode == "0xf4"

    def test_count_matches_and_ids_unique(self):
        """Test one record per logical CPU with unique ids."""
        blocks = [{"processor": str(i), "cpu MHz": "1000"} for i in range(8)]
        records = get_cpu_info(FakeProbe(cpu_blocks=blocks))

        assert len(records) == 8
        assert len({r.cpu for r in records}) == 8
        assert [r.cpu for r in records] == list(range(8))

    def test_frequency_fallback(self):
        """Test blocks without 'cpu MHz' take the psutil frequency."""
        blocks = [{"processor": "0"}, {"processor": "1"}]
        probe = FakeProbe(cpu_blocks=blocks, cpu_frequencies=[1500.0, 1800.0])

        records = get_cpu_info(probe)

        assert [r.mhz for r in records] == [1500.0, 1800.0]
        assert "cpufreq" in probe.calls

    def test_frequency_not_queried_when_present(self):
        """Test psutil frequency is only consulted when needed."""
        probe = FakeProbe()
        get_cpu_info(probe)
        assert "cpufreq" not in probe.calls

    def test_arm_block(self):
        """Test ARM style keys map to vendor and flags."""
        record = cpu_record_from_block(
            {"processor": "3", "CPU implementer": "0x41", "Features": "fp asimd"}
        )

        assert record.cpu == 3
        assert record.vendor_id == "0x41"
        assert record.flags == ("fp", "asimd")
        assert record.cores == 1
        assert record.mhz == 0.0
        assert record.cache_size == 0

    def test_failure_propagates(self):
        """Test a failing descriptor query raises QueryError."""
        with pytest.raises(QueryError):
            get_cpu_info(FakeProbe(failing={"cpuinfo"}))

    def test_report_lines(self):
        """Test each CPU is rendered with its labelled fields."""
        lines = report_cpu_info(FakeProbe())

        assert len(lines) == 2 * 13
        assert lines[0] == "cpuID:\t0"
        assert lines[13] == "cpuID:\t1"
        assert "--MHz:\t\t1992" in lines[9]
        assert lines[10] == "--cacheSize:\t8192"
        assert lines[11] == "--flags:\tfpu vme de pse sse sse2"


class TestNetwork:
    """Tests for the network reporter."""

    def test_ordered_by_index(self):
        """Test interfaces are ordered by OS index."""
        names = [iface.name for iface in get_network_interfaces(FakeProbe())]
        assert names == ["lo", "eth0"]

    def test_report_lines(self):
        """Test the first interface heads the section and the rest are indented."""
        lines = report_network(FakeProbe())

        assert lines[0].startswith("interfaces:\t1: lo mtu 65536 hw - ")
        assert lines[1].startswith("\t\t2: eth0 mtu 1500 hw 52:54:00:12:34:56 ")
        assert "flags up|broadcast|running|multicast" in lines[1]
        assert "addrs 10.0.2.15/24,fe80::5054:ff:fe12:3456/64" in lines[1]

    def test_no_interfaces(self):
        """Test a host without interfaces is reported, not a crash."""
        assert report_network(FakeProbe(interfaces=[])) == ["interfaces:\tno interfaces found"]

    def test_failure_propagates(self):
        """Test a failing interface query raises QueryError."""
        with pytest.raises(QueryError):
            get_network_interfaces(FakeProbe(failing={"interfaces"}))


def test_sections_registry():
    """Test every report section is registered."""
    assert set(SECTIONS) == {"hostname", "network", "osname", "sysinfo", "cpu"}
