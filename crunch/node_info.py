# crunch/node_info.py
"""
Describes the node a search runs on. Read once, before partitioning.
Failure here is fatal to startup.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
import os
import platform
import socket

import psutil

from .contracts import NodeInfo

CPUINFO_PATH = "/proc/cpuinfo"


class NodeInfoError(RuntimeError):
    pass


def host_info() -> Dict[str, Any]:
    uname = platform.uname()
    return {
        "hostname": socket.gethostname(),
        "os": uname.system.lower(),
        "platform": platform.platform(),
        "kernelVersion": uname.release,
        "kernelArch": uname.machine,
        "hostId": os.getenv("HOSTNAME") or uname.node,
        "python": platform.python_version(),
    }


def _parse_cpuinfo(text: str) -> List[Dict[str, Any]]:
    """One dict per logical CPU block of /proc/cpuinfo."""
    cpus: List[Dict[str, Any]] = []
    for block in text.strip().split("\n\n"):
        entry: Dict[str, Any] = {}
        for line in block.splitlines():
            key, sep, value = line.partition(":")
            if not sep:
                continue
            key = key.strip()
            value = value.strip()
            if key == "processor":
                entry["cpu"] = int(value)
            elif key == "vendor_id":
                entry["vendorId"] = value
            elif key == "model name":
                entry["modelName"] = value
            elif key == "cpu MHz":
                entry["mhz"] = float(value)
            elif key == "cpu cores":
                entry["cores"] = int(value)
        if "cpu" in entry:
            cpus.append(entry)
    return cpus


def cpu_info(count: int) -> List[Dict[str, Any]]:
    if os.path.exists(CPUINFO_PATH):
        with open(CPUINFO_PATH, "r", encoding="utf-8", errors="replace") as f:
            cpus = _parse_cpuinfo(f.read())
        if cpus:
            return cpus
    # no /proc: model from platform, clocks and cores from psutil
    model = platform.processor() or platform.machine()
    freqs = psutil.cpu_freq(percpu=True) or []
    cores = psutil.cpu_count(logical=False)
    cpus = []
    for i in range(count):
        entry: Dict[str, Any] = {"cpu": i, "modelName": model}
        if i < len(freqs):
            entry["mhz"] = float(freqs[i].current)
        elif freqs:
            entry["mhz"] = float(freqs[0].current)
        if cores:
            entry["cores"] = cores
        cpus.append(entry)
    return cpus


def describe_node(workers: Optional[int] = None) -> NodeInfo:
    """
    workers defaults to the logical CPU count. Raises NodeInfoError when
    the host cannot be described.
    """
    count = os.cpu_count()
    if not count:
        raise NodeInfoError("cannot determine cpu count")
    if workers is not None and workers < 1:
        raise NodeInfoError(f"workers must be >= 1, got {workers}")
    try:
        host = host_info()
        cpus = cpu_info(count)
    except (OSError, ValueError) as exc:
        raise NodeInfoError(f"cannot get node or cpu info: {exc}") from exc
    return NodeInfo(host_info=host, cpu_info=cpus, workers=workers or count)
