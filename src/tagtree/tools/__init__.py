"""Developer tools for tagtree.

Currently provides parse profiling with wall-time and memory measurements.
"""

from .profiling import (
    ParseProfiler,
    PerformanceReport,
    ProfilingSession,
    StagePerformance,
    benchmark_presets,
)

__all__ = [
    "ParseProfiler",
    "PerformanceReport",
    "ProfilingSession",
    "StagePerformance",
    "benchmark_presets",
]
