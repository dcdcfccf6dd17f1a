"""
Metrics Module

Includes:
- MetricResult - tri-state result (measured / not enough data)
- Pointer metrics - click precision, path efficiency, overshoot, velocity
- Keyboard metrics - typing speed, rhythm, hold times, pauses, corrections, fluency
- Attention-test (CPT) scoring
- Trail Making and Digit Span scoring
"""

from diary_metrics.metrics.metric_result import MetricResult

from diary_metrics.metrics.pointer_metrics import (
    PointerMetricsCalculator,
    PointerMetrics
)

from diary_metrics.metrics.keyboard_metrics import (
    KeyboardMetricsCalculator,
    KeyboardMetrics
)

from diary_metrics.metrics.attention_metrics import (
    AttentionTestScorer,
    AttentionTestResult
)

from diary_metrics.metrics.cognitive_test_metrics import (
    TrailMakingScorer,
    TrailMakingResult,
    DigitSpanScorer,
    DigitSpanResult
)

__all__ = [
    'MetricResult',
    'PointerMetricsCalculator',
    'PointerMetrics',
    'KeyboardMetricsCalculator',
    'KeyboardMetrics',
    'AttentionTestScorer',
    'AttentionTestResult',
    'TrailMakingScorer',
    'TrailMakingResult',
    'DigitSpanScorer',
    'DigitSpanResult'
]
