"""
Trail Making and Digit Span Scorers

Trail Making: per-part completion time and errors, plus the B/A time ratio
(task-switching cost). Digit Span: longest correctly recalled sequence and
trial counts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from diary_metrics.data_acquisition.cognitive_test_log import DigitSpanLog, RawPayload, TrailMakingLog
from diary_metrics.metrics.metric_result import MetricResult
from diary_metrics.utils.logger import get_logger


@dataclass(frozen=True)
class TrailMakingResult:
    """Scored Trail Making run"""
    part_a_completion_time: float
    part_a_errors: int
    part_b_completion_time: float
    part_b_errors: int
    b_to_a_ratio: MetricResult
    click_count: int = 0
    test_start_time: Optional[float] = None
    test_end_time: Optional[float] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'test_start_time': self.test_start_time,
            'test_end_time': self.test_end_time,
            'part_a_completion_time': self.part_a_completion_time,
            'part_a_errors': self.part_a_errors,
            'part_b_completion_time': self.part_b_completion_time,
            'part_b_errors': self.part_b_errors,
            'b_to_a_ratio': self.b_to_a_ratio.to_dict(),
            'click_count': self.click_count,
            'settings': dict(self.settings)
        }


@dataclass(frozen=True)
class DigitSpanResult:
    """Scored Digit Span run"""
    highest_span_achieved: int
    total_trials: int
    correct_trials: int
    test_start_time: Optional[float] = None
    test_end_time: Optional[float] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'test_start_time': self.test_start_time,
            'test_end_time': self.test_end_time,
            'highest_span_achieved': self.highest_span_achieved,
            'total_trials': self.total_trials,
            'correct_trials': self.correct_trials,
            'settings': dict(self.settings)
        }


class TrailMakingScorer:
    """
    Trail Making Test scoring

    Usage:
        result = TrailMakingScorer().score_raw(raw_json)
        if result.b_to_a_ratio.calculated:
            print(result.b_to_a_ratio.value)
    """

    def __init__(self):
        self.logger = get_logger("diary_metrics.trail_making")

    def score(self, log: TrailMakingLog) -> TrailMakingResult:
        """
        Score one test run.

        The B/A ratio needs both parts completed; a part with no completion
        time (not reached or timed out) leaves it uncalculated.
        """
        time_a = max(log.part_a_completion_time, 0.0)
        time_b = max(log.part_b_completion_time, 0.0)
        completed_parts = int(time_a > 0) + int(time_b > 0)

        if completed_parts == 2:
            ratio = MetricResult.measured(time_b / time_a, completed_parts)
        else:
            self.logger.debug(f"B/A ratio not calculated (part A {time_a} ms, part B {time_b} ms)")
            ratio = MetricResult.insufficient(completed_parts)

        return TrailMakingResult(
            test_start_time=log.test_start_time,
            test_end_time=log.test_end_time,
            part_a_completion_time=time_a,
            part_a_errors=max(log.part_a_errors, 0),
            part_b_completion_time=time_b,
            part_b_errors=max(log.part_b_errors, 0),
            b_to_a_ratio=ratio,
            click_count=len(log.clicks),
            settings=dict(log.settings)
        )

    def score_raw(self, raw: RawPayload) -> TrailMakingResult:
        return self.score(TrailMakingLog.from_raw(raw))


class DigitSpanScorer:
    """Digit Span Test scoring"""

    def score(self, log: DigitSpanLog) -> DigitSpanResult:
        # Highest span is 0 when no trial was recalled correctly
        correct_spans = [trial.span for trial in log.trials if trial.correct]
        return DigitSpanResult(
            test_start_time=log.test_start_time,
            test_end_time=log.test_end_time,
            highest_span_achieved=max(correct_spans, default=0),
            total_trials=len(log.trials),
            correct_trials=len(correct_spans),
            settings=dict(log.settings)
        )

    def score_raw(self, raw: RawPayload) -> DigitSpanResult:
        """
        Decode and score raw Digit Span data.

        Raises:
            ValueError: If the data cannot be parsed
        """
        return self.score(DigitSpanLog.from_raw(raw))
