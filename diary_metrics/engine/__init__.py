"""
Engine Module
Aggregates pointer, keyboard and attention-test metrics per submission
"""

from diary_metrics.engine.metrics_engine import (
    MetricsEngine,
    MetricSet,
    CalculatedMetrics
)

__all__ = [
    'MetricsEngine',
    'MetricSet',
    'CalculatedMetrics'
]
