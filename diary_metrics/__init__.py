"""
Behavioral and cognitive-test metrics engine for the symptom diary.

Turns pointer and keyboard event logs into tri-state metric results
(measured / not enough data) and scores the CPT, Trail Making and
Digit Span test runs that come with a submission.
"""

from diary_metrics.data_acquisition import AttentionTestLog, DigitSpanLog, EventLog, TrailMakingLog
from diary_metrics.engine import CalculatedMetrics, MetricSet, MetricsEngine
from diary_metrics.metrics import AttentionTestResult, DigitSpanResult, MetricResult, TrailMakingResult

__version__ = "0.1.0"

__all__ = [
    'AttentionTestLog',
    'AttentionTestResult',
    'CalculatedMetrics',
    'DigitSpanLog',
    'DigitSpanResult',
    'EventLog',
    'MetricResult',
    'MetricSet',
    'MetricsEngine',
    'TrailMakingLog',
    'TrailMakingResult'
]
