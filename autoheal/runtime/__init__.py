"""
Runtime package: the control loop, its dashboard projection and wiring.
"""

from autoheal.runtime.dashboard import DashboardSnapshot, calculate_system_health
from autoheal.runtime.loop import LoopState, MonitoringLoop
from autoheal.runtime.bootstrap import build_loop, build_sources, build_executors

__all__ = [
    "DashboardSnapshot",
    "calculate_system_health",
    "LoopState",
    "MonitoringLoop",
    "build_loop",
    "build_sources",
    "build_executors",
]
