"""
Performance Monitoring Utilities
===============================

Wall-clock timing for the stages of a route run (checkpoints,
enrichment, scoring, diversity, persistence) and a psutil snapshot of
process memory for the report.

A stage that runs longer than slow_threshold is logged at info level,
longer than very_slow_threshold as a warning.

Classes:
    PerformanceMonitor: Collects stage timings
    TimingStats: Running totals for one stage

Functions:
    measure_time: Decorator that times a function as a stage

Author: Route Recommender Team
"""

import time
import logging
import functools
import threading
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Deque, Dict, Iterator, List, Optional

import psutil

RECENT_WINDOW = 50


@dataclass
class TimingStats:
    name: str
    call_count: int = 0
    total_time: float = 0.0
    min_time: Optional[float] = None
    max_time: float = 0.0
    recent: Deque[float] = field(default_factory=lambda: deque(maxlen=RECENT_WINDOW))
    last_run: Optional[datetime] = None

    @property
    def avg_time(self) -> float:
        return self.total_time / self.call_count if self.call_count else 0.0

    def record(self, seconds: float) -> None:
        self.call_count += 1
        self.total_time += seconds
        self.min_time = seconds if self.min_time is None else min(self.min_time, seconds)
        self.max_time = max(self.max_time, seconds)
        self.recent.append(seconds)
        self.last_run = datetime.now()

    def to_dict(self) -> Dict:
        recent_avg = sum(self.recent) / len(self.recent) if self.recent else 0.0
        return {
            "name": self.name,
            "call_count": self.call_count,
            "total_time": round(self.total_time, 4),
            "min_time": round(self.min_time or 0.0, 4),
            "max_time": round(self.max_time, 4),
            "avg_time": round(self.avg_time, 4),
            "recent_avg_time": round(recent_avg, 4),
            "last_run": self.last_run.isoformat() if self.last_run else None,
        }


class PerformanceMonitor:
    """
    Stage timer shared by one orchestrator

    Args:
        slow_threshold (float): Seconds before a stage is logged as slow
        very_slow_threshold (float): Seconds before a stage is logged as a warning
    """

    def __init__(self, slow_threshold: float = 5.0, very_slow_threshold: float = 10.0):
        self.logger = logging.getLogger(__name__)
        self.slow_threshold = slow_threshold
        self.very_slow_threshold = very_slow_threshold

        self._stages: Dict[str, TimingStats] = {}
        self._lock = threading.Lock()

    def record_timing(self, name: str, seconds: float) -> None:
        with self._lock:
            self._stages.setdefault(name, TimingStats(name)).record(seconds)

        if seconds > self.very_slow_threshold:
            self.logger.warning(f"Very slow stage: {name} took {seconds:.2f}s")
        elif seconds > self.slow_threshold:
            self.logger.info(f"Slow stage: {name} took {seconds:.2f}s")

    @contextmanager
    def track(self, name: str) -> Iterator[None]:
        """Time the enclosed block as stage `name`; a raising block is still timed"""
        started = time.perf_counter()
        try:
            yield
        finally:
            self.record_timing(name, time.perf_counter() - started)

    def get_stats(self, name: Optional[str] = None) -> Dict:
        """One stage's timings, or every stage's keyed by name"""
        with self._lock:
            if name is not None:
                stage = self._stages.get(name)
                return stage.to_dict() if stage else {}
            return {stage.name: stage.to_dict() for stage in self._stages.values()}

    def get_slowest(self, limit: int = 5) -> List[Dict]:
        with self._lock:
            ordered = sorted(self._stages.values(), key=lambda stage: stage.avg_time, reverse=True)
            return [stage.to_dict() for stage in ordered[:limit]]

    def reset_stats(self) -> None:
        with self._lock:
            self._stages.clear()

    def get_memory_usage(self) -> Dict:
        """Resident memory of this process; empty if psutil cannot read it"""
        try:
            process = psutil.Process()
            return {
                "memory_mb": round(process.memory_info().rss / (1024 * 1024), 2),
                "memory_percent": round(process.memory_percent(), 2),
            }
        except psutil.Error as e:
            self.logger.warning(f"Could not read process memory: {e}")
            return {}

    def get_report(self) -> Dict:
        with self._lock:
            calls = sum(stage.call_count for stage in self._stages.values())
            seconds = sum(stage.total_time for stage in self._stages.values())
            stage_count = len(self._stages)

        return {
            "report_timestamp": datetime.now().isoformat(),
            "summary": {
                "stages_monitored": stage_count,
                "total_calls": calls,
                "total_execution_time_seconds": round(seconds, 2),
                "average_call_time": round(seconds / calls, 4) if calls else 0,
            },
            "slowest_stages": self.get_slowest(),
            "resource_usage": self.get_memory_usage(),
        }


def measure_time(monitor: PerformanceMonitor, name: Optional[str] = None) -> Callable:
    """
    Decorator form of PerformanceMonitor.track

    Examples:
        @measure_time(monitor, "geocoding")
        def resolve(text):
            ...
    """
    def decorator(func: Callable) -> Callable:
        stage = name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with monitor.track(stage):
                return func(*args, **kwargs)

        return wrapper

    return decorator
