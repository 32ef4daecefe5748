"""
Static hardware catalog used to describe newly discovered render nodes.

Descriptors are picked deterministically from the last octet of the node
address so the same address always yields the same GPU, system and region.
"""

from __future__ import annotations

import random
from typing import List

from admin.models import GpuInfo, NodeMetrics, SystemInfo
from shared.network import last_octet

GPU_TYPES: List[GpuInfo] = [
    GpuInfo(name="NVIDIA RTX 4090", memory="24GB", temperature="65°C", utilization="45%"),
    GpuInfo(name="NVIDIA RTX 3080", memory="10GB", temperature="72°C", utilization="67%"),
    GpuInfo(name="NVIDIA RTX 3070", memory="8GB", temperature="68°C", utilization="52%"),
    GpuInfo(name="NVIDIA A100", memory="40GB", temperature="58°C", utilization="89%"),
    GpuInfo(name="NVIDIA RTX 4080", memory="16GB", temperature="63°C", utilization="41%"),
]

SYSTEM_CONFIGS: List[SystemInfo] = [
    SystemInfo(os="Ubuntu 22.04 LTS", cpu="Intel i9-13900K", ram="64GB", uptime="15d 4h 23m"),
    SystemInfo(os="Ubuntu 20.04 LTS", cpu="AMD Ryzen 9 5900X", ram="32GB", uptime="8d 12h 45m"),
    SystemInfo(os="Ubuntu 22.04 LTS", cpu="Intel i7-12700K", ram="32GB", uptime="3d 18h 12m"),
    SystemInfo(os="CentOS 8", cpu="AMD Ryzen 7 5800X", ram="48GB", uptime="22d 6h 33m"),
]

REGIONS = ["us-east-1", "us-west-2", "eu-west-1", "ap-southeast-1"]


def region_for(ip: str) -> str:
    return REGIONS[last_octet(ip) % len(REGIONS)]


def gpu_for(ip: str) -> GpuInfo:
    return GPU_TYPES[last_octet(ip) % len(GPU_TYPES)].model_copy()


def system_for(ip: str) -> SystemInfo:
    return SYSTEM_CONFIGS[last_octet(ip) % len(SYSTEM_CONFIGS)].model_copy()


def initial_metrics(rng: random.Random) -> NodeMetrics:
    return NodeMetrics(
        cpu_percent=rng.randint(10, 89),
        gpu_percent=rng.randint(5, 94),
        memory_percent=rng.randint(20, 89),
        memory_used_gb=round(rng.uniform(8.0, 28.0), 1),
        disk_percent=rng.randint(30, 89),
    )
