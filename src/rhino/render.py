"""Text rendering of a Snapshot."""

from rhino.models import CpuInfo, DiskInfo, GpuInfo, HostInfo, MemoryInfo, Snapshot

RULE = "-" * 52
NOT_AVAILABLE = "N/A"
NO_TEMPERATURE = "[Requires Admin Privileges]"
BYTES_PER_GB = 1_000_000_000


def percent(used: float, total: float) -> float:
    """Return used/total as a percentage, 0.0 when total is zero."""
    if not total:
        return 0.0
    return used / total * 100.0


def gigabytes(size: int) -> float:
    return size / BYTES_PER_GB


def format_usage(used: int, total: int) -> str:
    """Format a used/total byte pair as '1.00G/4.00G, 25.0%'."""
    return f"{gigabytes(used):.2f}G/{gigabytes(total):.2f}G, {percent(used, total):.1f}%"


def _number(value: float | None, unit: str) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.1f}{unit}"


def _section(title: str, lines: list[str]) -> list[str]:
    return [title, RULE, *lines]


def host_lines(host: HostInfo, cpu: CpuInfo, gpu: GpuInfo) -> list[str]:
    return [
        f"System Name: {host.hostname}",
        f"OS: {host.os_name} Version: {host.os_version}",
        f"CPU Name: {cpu.name}",
        f"Available CPU Cores: {cpu.core_count}",
        f"GPU Name: {gpu.name} ({gpu.architecture})",
        f"Cuda Version: {gpu.cuda_version}",
    ]


def cpu_lines(cpu: CpuInfo) -> list[str]:
    lines = [f"CPU Utilization: {cpu.utilization:.1f}%"]
    if not cpu.temperatures:
        lines.append(f"CPU Temperature(°C): {NO_TEMPERATURE}")
    else:
        # One line per temperature component
        lines.extend(f"CPU Temperature(°C): {temp:.1f}°C" for temp in cpu.temperatures)
    return lines


def gpu_lines(gpu: GpuInfo) -> list[str]:
    if gpu.memory_used is None or gpu.memory_total is None:
        vram = NOT_AVAILABLE
    else:
        vram = format_usage(gpu.memory_used, gpu.memory_total)
    return [
        f"GPU Utilization: {_number(gpu.utilization, '%')}",
        f"GPU Temperature(°C): {_number(gpu.temperature, '°C')}",
        f"GPU Clock Speed: {_number(gpu.core_clock, 'MHz')}",
        f"VRAM:{vram}",
        f"VRAM Clock Speed: {_number(gpu.memory_clock, 'MHz')}",
    ]


def memory_lines(memory: MemoryInfo) -> list[str]:
    return [f"RAM:{format_usage(memory.used, memory.total)}"]


def disk_line(disk: DiskInfo) -> str:
    return f"({disk.kind}) Disk Name: {disk.name}, {format_usage(disk.used, disk.total)}"


def render(snapshot: Snapshot) -> str:
    """
    Format a snapshot as the dashboard report.

    The output depends only on the snapshot, so rendering the same snapshot
    twice gives identical text.
    """
    lines = [
        *_section("System Info", host_lines(snapshot.host, snapshot.cpu, snapshot.gpu)),
        "",
        *_section("CPU Info", cpu_lines(snapshot.cpu)),
        "",
        *_section("GPU Info", gpu_lines(snapshot.gpu)),
        "",
        *_section("Memory Info", memory_lines(snapshot.memory)),
        "",
        *_section("Disk Info", [disk_line(disk) for disk in snapshot.disks]),
    ]
    return "\n".join(lines) + "\n"
