"""
Observability metrics collection for the colorscan pipeline.

Every pipeline stage (fetch, downscale, clustering, quantize, dominant
colors) records how long it took, how many pixels it touched and, for
clustering, how many clusters and Lloyd iterations it used. The batch runner
reads the aggregated per-stage statistics at the end of a run.
"""

import time
import psutil
from typing import Dict, Any, Optional
from functools import wraps
from dataclasses import dataclass
from contextlib import contextmanager
import threading
from collections import defaultdict, deque
import numpy as np
from loguru import logger


# Samples kept per stage for duration and memory percentiles
STAGE_WINDOW = 100


@dataclass
class PerformanceMetrics:
    """One timed run of a pipeline stage."""
    operation_name: str
    duration_ms: float
    memory_usage_mb: float
    cpu_percent: float
    pixel_count: int
    cluster_count: int
    iterations: int
    timestamp: float
    error: Optional[str] = None


class MetricsCollector:
    """Thread-safe per-stage aggregation of PerformanceMetrics."""

    def __init__(self, window: int = STAGE_WINDOW):
        self.window = window
        self._lock = threading.Lock()
        self._samples: Dict[str, deque] = defaultdict(lambda: deque(maxlen=self.window))
        self._calls = defaultdict(int)
        self._errors = defaultdict(int)
        self._pixels = defaultdict(int)

    def record_performance(self, metrics: PerformanceMetrics) -> None:
        with self._lock:
            name = metrics.operation_name
            self._samples[name].append(metrics)
            self._calls[name] += 1
            self._pixels[name] += metrics.pixel_count
            if metrics.error:
                self._errors[name] += 1

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """Aggregated statistics for one stage, empty if it never ran."""
        with self._lock:
            return self._stage_stats(operation_name)

    def _stage_stats(self, name: str) -> Dict[str, Any]:
        samples = self._samples.get(name)
        if not samples:
            return {}

        durations = [m.duration_ms for m in samples]
        memory = [m.memory_usage_mb for m in samples]

        stats = {
            'operation_name': name,
            'total_calls': self._calls[name],
            'error_count': self._errors[name],
            'error_rate': self._errors[name] / max(1, self._calls[name]),
            'pixels_processed': self._pixels[name],
            'duration_stats': {
                'mean_ms': float(np.mean(durations)),
                'median_ms': float(np.median(durations)),
                'p95_ms': float(np.percentile(durations, 95)),
                'min_ms': float(np.min(durations)),
                'max_ms': float(np.max(durations))
            },
            'memory_stats': {
                'mean_mb': float(np.mean(memory)),
                'peak_mb': float(np.max(memory))
            }
        }

        clustered = [m for m in samples if m.cluster_count > 0]
        if clustered:
            iterations = [m.iterations for m in clustered]
            stats['clustering_stats'] = {
                'max_clusters': max(m.cluster_count for m in clustered),
                'mean_iterations': float(np.mean(iterations)),
                'max_iterations': int(np.max(iterations))
            }

        return stats

    def get_all_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = sum(self._calls.values())
            errors = sum(self._errors.values())
            return {
                'operations': {name: self._stage_stats(name) for name in self._calls},
                'total_operations': total,
                'total_errors': errors,
                'overall_error_rate': errors / max(1, total)
            }

    def reset(self) -> None:
        with self._lock:
            self._samples.clear()
            self._calls.clear()
            self._errors.clear()
            self._pixels.clear()


# Global metrics collector instance
_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return _metrics_collector


def reset_metrics() -> None:
    """Clear all recorded metrics."""
    _metrics_collector.reset()


@contextmanager
def performance_monitor(operation_name: str, pixel_count: int = 0, cluster_count: int = 0):
    """
    Time a pipeline stage and record it with the global collector.

    Yields a dict the stage may update with 'pixel_count', 'cluster_count'
    or 'iterations' once those are known.
    """
    process = psutil.Process()
    start_time = time.time()
    start_memory = process.memory_info().rss / 1024 / 1024  # MB

    details = {'pixel_count': pixel_count, 'cluster_count': cluster_count, 'iterations': 0}
    error_msg = None

    try:
        yield details
    except Exception as e:
        error_msg = str(e)
        raise
    finally:
        end_time = time.time()
        end_memory = process.memory_info().rss / 1024 / 1024  # MB

        metrics = PerformanceMetrics(
            operation_name=operation_name,
            duration_ms=(end_time - start_time) * 1000,
            memory_usage_mb=max(end_memory, start_memory),
            cpu_percent=process.cpu_percent(),
            pixel_count=int(details.get('pixel_count') or 0),
            cluster_count=int(details.get('cluster_count') or 0),
            iterations=int(details.get('iterations') or 0),
            timestamp=end_time,
            error=error_msg
        )

        _metrics_collector.record_performance(metrics)

        if error_msg:
            logger.error(f"Operation {operation_name} failed after {metrics.duration_ms:.1f}ms: {error_msg}")
        else:
            logger.debug(f"Operation {operation_name} completed in {metrics.duration_ms:.1f}ms "
                         f"({metrics.pixel_count} px, memory: {metrics.memory_usage_mb:.1f}MB)")


def performance_tracked(operation_name: str):
    """Decorator recording a stage whose first array argument is the image."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            pixel_count = 0
            for arg in args:
                shape = getattr(arg, 'shape', None)
                if shape is not None and len(shape) >= 2:
                    pixel_count = shape[0] * shape[1]
                    break

            # k=None means "default from config"; the clustering stage records the real value
            cluster_count = kwargs.get('k') or 0

            with performance_monitor(operation_name, pixel_count, cluster_count):
                return func(*args, **kwargs)
        return wrapper
    return decorator


def log_memory_usage(stage_name: str) -> Dict[str, Any]:
    """Log current process memory for a batch stage."""
    memory_mb = psutil.Process().memory_info().rss / 1024 / 1024

    logger.debug(f"Memory usage at {stage_name}: {memory_mb:.1f}MB")

    return {
        'stage': stage_name,
        'memory_mb': memory_mb,
        'timestamp': time.time()
    }
