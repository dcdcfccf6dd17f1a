"""
Metrics Engine (aggregation layer)

Runs the pointer and keyboard calculators once for the global scope and
once per question seen in the event log, and scores each cognitive test
(CPT, Trail Making, Digit Span) that was submitted and actually performed.

Scopes are independent: they share only read access to the immutable
EventLog, so they may run on a thread pool with identical results.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from diary_metrics import constants as const
from diary_metrics.data_acquisition.attention_log import AttentionTestLog
from diary_metrics.data_acquisition.cognitive_test_log import DigitSpanLog, TrailMakingLog
from diary_metrics.data_acquisition.event_log import EventLog
from diary_metrics.metrics.attention_metrics import AttentionTestResult, AttentionTestScorer
from diary_metrics.metrics.cognitive_test_metrics import (
    DigitSpanResult,
    DigitSpanScorer,
    TrailMakingResult,
    TrailMakingScorer
)
from diary_metrics.metrics.keyboard_metrics import KeyboardMetrics, KeyboardMetricsCalculator
from diary_metrics.metrics.metric_result import MetricResult
from diary_metrics.metrics.pointer_metrics import PointerMetrics, PointerMetricsCalculator
from diary_metrics.utils.config_loader import get_section
from diary_metrics.utils.logger import get_logger


@dataclass(frozen=True)
class MetricSet:
    """All interaction metrics for one scope (global or a single question)"""
    pointer: PointerMetrics = PointerMetrics()
    keyboard: KeyboardMetrics = KeyboardMetrics()

    def items(self) -> Iterator[Tuple[str, MetricResult]]:
        yield from self.pointer.items()
        yield from self.keyboard.items()

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return {name: result.to_dict() for name, result in self.items()}

    def measurements(self) -> Dict[str, MetricResult]:
        """Only the metrics that were actually calculated"""
        return {name: result for name, result in self.items() if result.calculated}


@dataclass(frozen=True)
class CalculatedMetrics:
    """Engine output for one submission"""
    global_metrics: MetricSet
    question_metrics: Dict[str, MetricSet] = field(default_factory=dict)
    attention: Optional[AttentionTestResult] = None
    trail_making: Optional[TrailMakingResult] = None
    digit_span: Optional[DigitSpanResult] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'global_metrics': self.global_metrics.to_dict(),
            'question_metrics': {
                question_id: metric_set.to_dict()
                for question_id, metric_set in self.question_metrics.items()
            },
            'attention': self.attention.to_dict() if self.attention else None,
            'trail_making': self.trail_making.to_dict() if self.trail_making else None,
            'digit_span': self.digit_span.to_dict() if self.digit_span else None
        }


class MetricsEngine:
    """
    Behavioral and cognitive-test metrics engine

    Usage:
        engine = MetricsEngine.from_config(load_config())
        result = engine.calculate(EventLog.from_dict(payload))
        for name, metric in result.global_metrics.measurements().items():
            print(name, metric.value)
    """

    def __init__(
        self,
        pointer_settings: Optional[Mapping[str, Any]] = None,
        keyboard_settings: Optional[Mapping[str, Any]] = None,
        attention_settings: Optional[Mapping[str, Any]] = None,
        max_workers: int = const.DEFAULT_MAX_WORKERS
    ):
        """
        Initialize the engine.

        Args:
            pointer_settings: Keyword overrides for PointerMetricsCalculator
            keyboard_settings: Keyword overrides for KeyboardMetricsCalculator
            attention_settings: Keyword overrides for AttentionTestScorer
            max_workers: Threads for per-scope fan-out (1 = serial)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.pointer_settings = dict(pointer_settings or {})
        self.keyboard_settings = dict(keyboard_settings or {})
        self.max_workers = max_workers
        self.logger = get_logger("diary_metrics.engine")

        # Constructing once validates the settings
        empty = EventLog()
        try:
            PointerMetricsCalculator(empty, **self.pointer_settings)
            KeyboardMetricsCalculator(empty, **self.keyboard_settings)
            self.attention_scorer = AttentionTestScorer(**dict(attention_settings or {}))
        except TypeError as e:
            raise ValueError(f"Invalid metrics setting: {e}") from e

        self.trail_making_scorer = TrailMakingScorer()
        self.digit_span_scorer = DigitSpanScorer()

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]]) -> 'MetricsEngine':
        """
        Build an engine from a loaded config dict.

        Reads the 'pointer', 'keyboard', 'attention' and 'engine' sections;
        anything missing keeps its default.
        """
        engine_config = get_section(config, 'engine')
        return cls(
            pointer_settings=get_section(config, 'pointer'),
            keyboard_settings=get_section(config, 'keyboard'),
            attention_settings=get_section(config, 'attention'),
            max_workers=int(engine_config.get('max_workers', const.DEFAULT_MAX_WORKERS))
        )

    @staticmethod
    def question_ids(event_log: EventLog) -> Tuple[str, ...]:
        """Questions that get their own scope; events without a question id stay global-only"""
        return event_log.question_ids()

    def calculate_scope(self, event_log: EventLog, question_id: Optional[str] = None) -> MetricSet:
        """
        Pointer and keyboard metrics for one scope.

        Args:
            event_log: Submission log
            question_id: Question to restrict to, or None for global scope
        """
        pointer = PointerMetricsCalculator(event_log, **self.pointer_settings)
        keyboard = KeyboardMetricsCalculator(event_log, **self.keyboard_settings)
        return MetricSet(
            pointer=pointer.calculate(question_id),
            keyboard=keyboard.calculate(question_id)
        )

    def score_attention_test(self, attention_log: AttentionTestLog) -> AttentionTestResult:
        return self.attention_scorer.score(attention_log)

    def score_trail_making_test(self, trail_making_log: TrailMakingLog) -> TrailMakingResult:
        return self.trail_making_scorer.score(trail_making_log)

    def score_digit_span_test(self, digit_span_log: DigitSpanLog) -> DigitSpanResult:
        return self.digit_span_scorer.score(digit_span_log)

    def _score_if_performed(self, test_name: str, log: Any, score: Callable[[Any], Any]) -> Any:
        """Score a submitted test log unless the test was never started"""
        if log is None:
            return None
        if not log.is_performed:
            self.logger.info(f"{test_name} data missing start and end time, skipping scoring")
            return None
        return score(log)

    def calculate(
        self,
        event_log: EventLog,
        attention_log: Optional[AttentionTestLog] = None,
        trail_making_log: Optional[TrailMakingLog] = None,
        digit_span_log: Optional[DigitSpanLog] = None
    ) -> CalculatedMetrics:
        """
        Calculate every metric for one submission.

        Args:
            event_log: Interaction log
            attention_log: CPT log, when an attention test was part of the submission
            trail_making_log: Trail Making log, when submitted
            digit_span_log: Digit Span log, when submitted

        Returns:
            CalculatedMetrics with global, per-question and cognitive-test results
            (a test that was not performed scores as None)
        """
        scopes: List[Optional[str]] = [None]
        scopes.extend(self.question_ids(event_log))

        if self.max_workers > 1 and len(scopes) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(scopes))) as executor:
                metric_sets = list(executor.map(lambda q: self.calculate_scope(event_log, q), scopes))
        else:
            metric_sets = [self.calculate_scope(event_log, q) for q in scopes]

        attention = self._score_if_performed('CPT', attention_log, self.score_attention_test)
        trail_making = self._score_if_performed('Trail Making', trail_making_log, self.score_trail_making_test)
        digit_span = self._score_if_performed('Digit Span', digit_span_log, self.score_digit_span_test)

        global_metrics = metric_sets[0]
        question_metrics = dict(zip(scopes[1:], metric_sets[1:]))

        scored_tests = [
            name for name, result in
            (('CPT', attention), ('Trail Making', trail_making), ('Digit Span', digit_span))
            if result is not None
        ]
        self.logger.info(
            f"Calculated metrics: {len(event_log.movements)} movements, "
            f"{len(event_log.interactions)} clicks, {len(event_log.keyboard_events)} key events, "
            f"{len(question_metrics)} questions, "
            f"{len(global_metrics.measurements())} global metrics measured"
            f"{', scored ' + ', '.join(scored_tests) if scored_tests else ''}"
        )

        return CalculatedMetrics(
            global_metrics=global_metrics,
            question_metrics=question_metrics,
            attention=attention,
            trail_making=trail_making,
            digit_span=digit_span
        )

    def calculate_from_payload(
        self,
        payload: Optional[Mapping[str, Any]],
        attention_payload: Optional[Any] = None,
        trail_making_payload: Optional[Any] = None,
        digit_span_payload: Optional[Any] = None
    ) -> CalculatedMetrics:
        """
        Decode raw submission payloads and calculate.

        Args:
            payload: Interaction payload dict (camelCase keys)
            attention_payload: CPT payload as dict, JSON str or bytes
            trail_making_payload: Trail Making payload as dict, JSON str or bytes
            digit_span_payload: Digit Span payload as dict, JSON str or bytes

        Raises:
            ValueError: If any payload is malformed
        """
        event_log = EventLog.from_dict(payload)
        attention_log = None
        if attention_payload is not None:
            attention_log = AttentionTestLog.from_raw(attention_payload)
        trail_making_log = None
        if trail_making_payload is not None:
            trail_making_log = TrailMakingLog.from_raw(trail_making_payload)
        digit_span_log = None
        if digit_span_payload is not None:
            digit_span_log = DigitSpanLog.from_raw(digit_span_payload)
        return self.calculate(event_log, attention_log, trail_making_log, digit_span_log)
