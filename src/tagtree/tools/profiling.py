"""Performance profiling tools for tagtree.

Measures wall time and resident memory around loading and tree building, and
summarizes repeated runs into a report that can be printed or saved as JSON.
"""

import json
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import psutil

from tagtree.api import parse_file, parse_string
from tagtree.shared import ParserConfig, get_logger
from tagtree.tree import ParseResult

BYTES_PER_MB = 1024 * 1024


@dataclass
class StagePerformance:
    """Performance metrics for one stage of a parse (load, build, render)."""

    stage_name: str
    start_time: float
    end_time: float
    memory_start: int  # bytes
    memory_end: int  # bytes
    operations_count: int = 0

    @property
    def duration_ms(self) -> float:
        """Processing duration in milliseconds."""
        return (self.end_time - self.start_time) * 1000

    @property
    def memory_delta(self) -> int:
        """Memory usage change in bytes."""
        return self.memory_end - self.memory_start

    @property
    def ops_per_second(self) -> float:
        duration_s = self.end_time - self.start_time
        return self.operations_count / duration_s if duration_s > 0 else 0.0


@dataclass
class ProfilingSession:
    """Container for a complete profiling session."""

    session_id: str
    start_time: float
    end_time: float
    input_size: int  # bytes
    stages: List[StagePerformance] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_duration_ms(self) -> float:
        """Total session duration in milliseconds."""
        return (self.end_time - self.start_time) * 1000

    @property
    def throughput_mb_per_s(self) -> float:
        """Processing throughput in MB/s."""
        duration_s = self.end_time - self.start_time
        if duration_s <= 0:
            return 0.0
        return (self.input_size / BYTES_PER_MB) / duration_s

    @property
    def memory_delta(self) -> int:
        """Sum of positive per-stage memory growth in bytes."""
        return sum(stage.memory_delta for stage in self.stages if stage.memory_delta > 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "input_size": self.input_size,
            "total_duration_ms": self.total_duration_ms,
            "throughput_mb_s": self.throughput_mb_per_s,
            "memory_delta": self.memory_delta,
            "metadata": self.metadata,
            "stages": [
                {
                    "stage_name": stage.stage_name,
                    "duration_ms": stage.duration_ms,
                    "memory_delta": stage.memory_delta,
                    "operations_count": stage.operations_count,
                    "ops_per_second": stage.ops_per_second,
                }
                for stage in self.stages
            ],
        }


@dataclass
class PerformanceReport:
    """Summary of a set of profiling sessions."""

    sessions: List[ProfilingSession]
    generation_time: float

    @property
    def session_count(self) -> int:
        return len(self.sessions)

    @property
    def average_duration_ms(self) -> float:
        """Average processing duration across sessions."""
        if not self.sessions:
            return 0.0
        return sum(s.total_duration_ms for s in self.sessions) / len(self.sessions)

    @property
    def average_throughput_mb_per_s(self) -> float:
        """Average throughput across sessions."""
        if not self.sessions:
            return 0.0
        return sum(s.throughput_mb_per_s for s in self.sessions) / len(self.sessions)

    @property
    def peak_memory_delta(self) -> int:
        """Largest memory growth seen in any single session, in bytes."""
        return max((s.memory_delta for s in self.sessions), default=0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generation_time": self.generation_time,
            "summary": {
                "session_count": self.session_count,
                "average_duration_ms": self.average_duration_ms,
                "average_throughput_mb_s": self.average_throughput_mb_per_s,
                "peak_memory_delta": self.peak_memory_delta,
            },
            "sessions": [session.to_dict() for session in self.sessions],
        }

    def format_summary(self) -> str:
        """Human-readable multi-line summary, one line per session."""
        lines = [
            f"Profiled {self.session_count} documents: "
            f"average {self.average_duration_ms:.2f}ms, "
            f"{self.average_throughput_mb_per_s:.2f} MB/s, "
            f"peak memory delta {self.peak_memory_delta} bytes"
        ]
        for session in self.sessions:
            stage_text = ", ".join(
                f"{stage.stage_name} {stage.duration_ms:.2f}ms" for stage in session.stages
            )
            lines.append(f"  {session.session_id}: {session.total_duration_ms:.2f}ms ({stage_text})")
        return "\n".join(lines)


class ParseProfiler:
    """Profiler for tagtree parsing operations.

    Examples:
        Whole-document profiling:
        >>> profiler = ParseProfiler()
        >>> result = profiler.profile_text("<a>hi</a>")
        >>> profiler.generate_report().session_count
        1

        Stage-level profiling:
        >>> session = profiler.start_session("manual")
        >>> with profiler.profile_stage(session, "build"):
        ...     result = parse_string("<a></a>")
        >>> profiler.end_session(session)
    """

    def __init__(self, enable_memory_tracking: bool = True) -> None:
        """Initialize the profiler.

        Args:
            enable_memory_tracking: Whether to sample resident memory around stages
        """
        self.enable_memory_tracking = enable_memory_tracking
        self.sessions: List[ProfilingSession] = []
        self.current_session: Optional[ProfilingSession] = None
        self.logger = get_logger(__name__, None, "parse_profiler")
        self._process = psutil.Process() if enable_memory_tracking else None

    def memory_rss(self) -> int:
        """Resident set size of this process, or 0 with tracking disabled."""
        if self._process is None:
            return 0
        return self._process.memory_info().rss

    def start_session(self, session_id: str, input_size: int = 0) -> ProfilingSession:
        """Start a new profiling session."""
        session = ProfilingSession(
            session_id=session_id,
            start_time=time.time(),
            end_time=0.0,
            input_size=input_size,
        )
        self.current_session = session
        self.logger.debug(
            "Started profiling session",
            extra={
                "session_id": session_id,
                "input_size": input_size,
                "memory_tracking": self.enable_memory_tracking,
            }
        )
        return session

    def end_session(self, session: ProfilingSession) -> None:
        """End a profiling session and store it."""
        session.end_time = time.time()
        self.sessions.append(session)
        if self.current_session is session:
            self.current_session = None

        self.logger.info(
            "Ended profiling session",
            extra={
                "session_id": session.session_id,
                "duration_ms": session.total_duration_ms,
                "throughput_mb_s": session.throughput_mb_per_s,
                "stage_count": len(session.stages),
            }
        )

    def profile_stage(self, session: ProfilingSession, stage_name: str) -> "StageProfiler":
        """Context manager timing one stage inside ``session``."""
        return StageProfiler(self, session, stage_name)

    def profile_parsing(self, session_id: str) -> "ParsingProfiler":
        """Context manager wrapping a whole session."""
        return ParsingProfiler(self, session_id)

    def profile_text(
        self,
        text: str,
        config: Optional[ParserConfig] = None,
        session_id: Optional[str] = None
    ) -> ParseResult:
        """Parse ``text`` inside a new session and return the parse result."""
        session_id = session_id or f"text_{len(self.sessions)}"
        with self.profile_parsing(session_id) as session:
            session.input_size = len(text.encode("utf-8"))
            with self.profile_stage(session, "parse") as stage:
                result = parse_string(text, config=config)
                stage.operations_count = result.node_count
            self._record_outcome(session, result)
        return result

    def profile_file(
        self,
        file_path: Union[str, Path],
        config: Optional[ParserConfig] = None
    ) -> ParseResult:
        """Load and parse ``file_path`` inside a new session."""
        path = Path(file_path)
        with self.profile_parsing(str(path)) as session:
            if path.is_file():
                session.input_size = path.stat().st_size
            with self.profile_stage(session, "parse") as stage:
                result = parse_file(path, config=config)
                stage.operations_count = result.node_count
            self._record_outcome(session, result)
        return result

    def _record_outcome(self, session: ProfilingSession, result: ParseResult) -> None:
        session.metadata["success"] = result.success
        session.metadata["element_count"] = result.element_count
        if result.document is not None:
            session.metadata["max_depth"] = result.document.max_depth
        if result.error is not None:
            session.metadata["error"] = result.error.kind

    def add_stage_performance(
        self,
        session: ProfilingSession,
        stage_perf: StagePerformance
    ) -> None:
        """Attach finished stage metrics to ``session``."""
        session.stages.append(stage_perf)
        self.logger.debug(
            "Added stage performance data",
            extra={
                "session_id": session.session_id,
                "stage_name": stage_perf.stage_name,
                "duration_ms": stage_perf.duration_ms,
                "memory_delta": stage_perf.memory_delta,
            }
        )

    def generate_report(self) -> PerformanceReport:
        return PerformanceReport(
            sessions=self.sessions.copy(),
            generation_time=time.time(),
        )

    def save_report(self, report: PerformanceReport, output_path: Path) -> None:
        """Save ``report`` as JSON at ``output_path``."""
        output_path.write_text(json.dumps(report.to_dict(), indent=2))
        self.logger.info(
            "Saved performance report",
            extra={
                "output_path": str(output_path),
                "session_count": report.session_count,
            }
        )

    def clear_sessions(self) -> None:
        """Clear all stored profiling sessions."""
        session_count = len(self.sessions)
        self.sessions.clear()
        self.current_session = None
        self.logger.info(
            "Cleared profiling sessions",
            extra={"cleared_count": session_count}
        )


class StageProfiler:
    """Context manager for profiling one processing stage."""

    def __init__(self, profiler: ParseProfiler, session: ProfilingSession, stage_name: str):
        self.profiler = profiler
        self.session = session
        self.stage_name = stage_name
        self.stage_perf: Optional[StagePerformance] = None

    def __enter__(self) -> StagePerformance:
        self.stage_perf = StagePerformance(
            stage_name=self.stage_name,
            start_time=time.time(),
            end_time=0.0,
            memory_start=self.profiler.memory_rss(),
            memory_end=0,
        )
        return self.stage_perf

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.stage_perf is None:
            return
        self.stage_perf.end_time = time.time()
        self.stage_perf.memory_end = self.profiler.memory_rss()
        self.profiler.add_stage_performance(self.session, self.stage_perf)


class ParsingProfiler:
    """Context manager for profiling complete parsing operations."""

    def __init__(self, profiler: ParseProfiler, session_id: str):
        self.profiler = profiler
        self.session_id = session_id
        self.session: Optional[ProfilingSession] = None

    def __enter__(self) -> ProfilingSession:
        self.session = self.profiler.start_session(self.session_id)
        return self.session

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            self.profiler.end_session(self.session)


def benchmark_presets(text: str, iterations: int = 10) -> Dict[str, PerformanceReport]:
    """Profile ``text`` repeatedly under each configuration preset.

    Args:
        text: Markup to parse
        iterations: Number of runs per preset

    Returns:
        Mapping of preset name to its performance report
    """
    results = {}
    for preset in ("strict", "lenient", "untrusted"):
        config = ParserConfig.from_preset(preset)
        profiler = ParseProfiler()
        for i in range(iterations):
            profiler.profile_text(text, config=config, session_id=f"{preset}_iteration_{i}")
        results[preset] = profiler.generate_report()
    return results
