"""
Quality Analytics Health Monitor

Observational counters and timings for engine operations. The engine
reports into it; nothing reads it back for control flow.
"""

import time
from datetime import datetime
from typing import Dict, List, Optional
from dataclasses import dataclass
from collections import deque
import logging
import json
import threading

LOG = logging.getLogger(__name__)

# Engine operation -> counter name
OPERATION_COUNTERS = {
    'summarize': 'statistical_analysis_total',
    'analyze_trend': 'trend_analysis_total',
    'analyze_correlation': 'correlation_analyses_total',
    'forecast': 'trend_forecasts_total',
    'synthesize': 'insight_syntheses_total',
}


@dataclass
class OperationMetrics:
    """Counts and timings for one operation"""
    total_calls: int = 0
    succeeded: int = 0
    failed: int = 0

    avg_processing_time_ms: float = 0.0
    max_processing_time_ms: float = 0.0
    min_processing_time_ms: float = float('inf')

    def record(self, elapsed_ms: float, success: bool):
        self.total_calls += 1
        if success:
            self.succeeded += 1
        else:
            self.failed += 1

        self.avg_processing_time_ms = (
            (self.avg_processing_time_ms * (self.total_calls - 1) + elapsed_ms)
            / self.total_calls
        )
        self.max_processing_time_ms = max(self.max_processing_time_ms, elapsed_ms)
        self.min_processing_time_ms = min(self.min_processing_time_ms, elapsed_ms)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            'total_calls': self.total_calls,
            'succeeded': self.succeeded,
            'failed': self.failed,
            'success_rate': self.succeeded / max(1, self.total_calls),
            'avg_processing_time_ms': self.avg_processing_time_ms,
            'max_processing_time_ms': self.max_processing_time_ms,
            'min_processing_time_ms': self.min_processing_time_ms if self.min_processing_time_ms != float('inf') else 0.0,
        }


class AnalyticsHealthMonitor:
    """
    Health monitoring for the Quality Analytics Engine.

    Tracks:
        - Operation counts per analysis type
        - Failure counts and success rate
        - Processing times
        - Latest forecast accuracy and insight volume

    Safe to share between threads calling the same engine.
    """

    def __init__(self):
        """Initialize health monitor"""
        self._lock = threading.Lock()
        self.start_time = datetime.now()
        self.operations: Dict[str, OperationMetrics] = {}
        self.global_metrics = OperationMetrics()

        self.analytics_accuracy: Optional[float] = None
        self.insights_generated_total = 0

        # Recent operation history (last 100)
        self.recent_operations: deque = deque(maxlen=100)

        LOG.info("Analytics health monitor initialized")

    def record_operation_start(self, operation: str) -> float:
        """
        Record start of an operation.

        Args:
            operation: Engine operation name

        Returns:
            Start time (for elapsed calculation)
        """
        with self._lock:
            if operation not in self.operations:
                self.operations[operation] = OperationMetrics()
        return time.time()

    def _record(self, operation: str, start_time: float, success: bool, error: Optional[str] = None) -> float:
        elapsed_ms = (time.time() - start_time) * 1000

        with self._lock:
            self.operations.setdefault(operation, OperationMetrics()).record(elapsed_ms, success)
            self.global_metrics.record(elapsed_ms, success)

            entry = {
                'operation': operation,
                'timestamp': datetime.now().isoformat(),
                'success': success,
                'elapsed_ms': elapsed_ms,
            }
            if error is not None:
                entry['error'] = error
            self.recent_operations.append(entry)

        return elapsed_ms

    def record_operation_success(self, operation: str, start_time: float):
        """
        Record successful operation.

        Args:
            operation: Engine operation name
            start_time: Value returned by record_operation_start
        """
        elapsed_ms = self._record(operation, start_time, success=True)
        LOG.debug(f"Operation success: {operation} ({elapsed_ms:.2f}ms)")

    def record_operation_failure(self, operation: str, start_time: float, error: Exception):
        """
        Record failed operation.

        Args:
            operation: Engine operation name
            start_time: Value returned by record_operation_start
            error: Exception raised by the operation
        """
        self._record(operation, start_time, success=False, error=f"{type(error).__name__}: {error}")
        LOG.debug(f"Operation failure: {operation} - {type(error).__name__}")

    def record_forecast_accuracy(self, accuracy: float):
        with self._lock:
            self.analytics_accuracy = accuracy

    def record_insights(self, count: int):
        with self._lock:
            self.insights_generated_total += count

    def get_counters(self) -> Dict[str, int]:
        """
        Get operation counters.

        Returns:
            analytics_operations_total plus one counter per operation
        """
        with self._lock:
            counters = {'analytics_operations_total': self.global_metrics.total_calls}
            for operation, name in OPERATION_COUNTERS.items():
                metrics = self.operations.get(operation)
                counters[name] = metrics.total_calls if metrics else 0
            counters['insights_generated_total'] = self.insights_generated_total
        return counters

    def get_health_status(self) -> Dict:
        """
        Get overall health status.

        Returns:
            Health status dictionary
        """
        uptime = (datetime.now() - self.start_time).total_seconds()

        with self._lock:
            success_rate = self.global_metrics.succeeded / max(1, self.global_metrics.total_calls)
            global_dict = self.global_metrics.to_dict()
            accuracy = self.analytics_accuracy
            recent_count = len(self.recent_operations)

        if success_rate >= 0.80:
            status = "HEALTHY"
        elif success_rate >= 0.50:
            status = "DEGRADED"
        else:
            status = "UNHEALTHY"

        return {
            'status': status,
            'uptime_seconds': uptime,
            'global_metrics': global_dict,
            'counters': self.get_counters(),
            'analytics_accuracy': accuracy,
            'recent_operations_count': recent_count,
            'success_rate': success_rate,
        }

    def get_operation_health(self, operation: str) -> Optional[Dict]:
        """
        Get metrics for one operation.

        Returns:
            Operation metrics dictionary or None if never called
        """
        with self._lock:
            metrics = self.operations.get(operation)
            return metrics.to_dict() if metrics else None

    def get_recent_operations(self, limit: int = 20) -> List[Dict]:
        with self._lock:
            return list(self.recent_operations)[-limit:]

    def export_health_report(self, filepath: str):
        """
        Export health report to JSON file.

        Args:
            filepath: Path to save report
        """
        with self._lock:
            operations = {op: m.to_dict() for op, m in self.operations.items()}

        report = {
            'timestamp': datetime.now().isoformat(),
            'health_status': self.get_health_status(),
            'operations': operations,
            'recent_operations': self.get_recent_operations(50),
        }

        with open(filepath, 'w') as f:
            json.dump(report, f, indent=2)

        LOG.info(f"Health report exported to {filepath}")

    def reset_metrics(self):
        """Reset all metrics (useful for testing)"""
        with self._lock:
            self.operations.clear()
            self.global_metrics = OperationMetrics()
            self.analytics_accuracy = None
            self.insights_generated_total = 0
            self.recent_operations.clear()
            self.start_time = datetime.now()
        LOG.info("Health monitor metrics reset")
