"""
Keyboard Dynamics Calculator

Derives typing behaviour metrics from key-down / key-up events:
- Typing speed (content characters per second)
- Inter-key interval and rhythm variability, after percentile outlier removal
- Pause rate (dynamic threshold) and deep-thinking pause rate (fixed 5 s)
- Key hold time and key-press variability, after IQR outlier removal
- Correction rate and immediate correction tendency
- Composite keyboard fluency score (0-100)
"""

from dataclasses import dataclass, fields
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from diary_metrics import constants as const
from diary_metrics.data_acquisition.event_log import (
    EventLog,
    KeyboardEvent,
    filter_by_question,
    sorted_by_timestamp
)
from diary_metrics.metrics.metric_result import MetricResult
from diary_metrics.metrics.statistics import (
    coefficient_of_variation,
    iqr_filter,
    mean,
    percentile_cutoff_filter
)
from diary_metrics.utils.logger import get_logger


@dataclass(frozen=True)
class KeyboardMetrics:
    """Keyboard metrics for one scope"""
    typing_speed: MetricResult = MetricResult()
    average_inter_key_interval: MetricResult = MetricResult()
    typing_rhythm_variability: MetricResult = MetricResult()
    average_key_hold_time: MetricResult = MetricResult()
    key_press_variability: MetricResult = MetricResult()
    correction_rate: MetricResult = MetricResult()
    immediate_correction_tendency: MetricResult = MetricResult()
    pause_rate: MetricResult = MetricResult()
    deep_thinking_pause_rate: MetricResult = MetricResult()
    keyboard_fluency: MetricResult = MetricResult()

    def items(self) -> Iterator[Tuple[str, MetricResult]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)


def is_content_key(key: str) -> bool:
    """Visible characters, space and enter count as typed content"""
    return len(key) == 1 or key in const.CONTENT_KEYS


def is_correction_key(key: str) -> bool:
    return key in const.CORRECTION_KEYS


class KeyboardMetricsCalculator:
    """
    Keyboard dynamics over one submission's event log

    Usage:
        calculator = KeyboardMetricsCalculator(event_log)
        metrics = calculator.calculate('q3')
        if metrics.keyboard_fluency.calculated:
            print(metrics.keyboard_fluency.value)
    """

    def __init__(
        self,
        event_log: EventLog,
        min_events: int = const.MIN_KEYBOARD_EVENTS,
        min_keydowns: int = const.MIN_KEYDOWNS,
        min_intervals: int = const.MIN_INTERVALS,
        min_pause_intervals: int = const.MIN_PAUSE_INTERVALS,
        interval_percentile: float = const.INTERVAL_PERCENTILE,
        interval_cutoff_multiplier: float = const.INTERVAL_CUTOFF_MULTIPLIER,
        pause_multiplier: float = const.PAUSE_MULTIPLIER,
        min_pause_ms: float = const.MIN_PAUSE_MS,
        deep_pause_ms: float = const.DEEP_PAUSE_MS,
        min_hold_ms: float = const.MIN_HOLD_MS,
        max_hold_ms: float = const.MAX_HOLD_MS,
        min_holds: int = const.MIN_HOLDS,
        iqr_multiplier: float = const.IQR_MULTIPLIER,
        min_content_chars: int = const.MIN_CONTENT_CHARS,
        immediate_correction_window: int = const.IMMEDIATE_CORRECTION_WINDOW,
        fluency_speed_norm: float = const.FLUENCY_SPEED_NORM,
        fluency_weights: Optional[Mapping[str, float]] = None
    ):
        """
        Initialize keyboard calculator.

        Args:
            event_log: Submission log (read only)
            min_events: Keyboard events needed before anything is attempted
            min_keydowns: Key-downs needed for typing speed and corrections
            min_intervals: Inter-key intervals needed (raw and after filtering)
            min_pause_intervals: Raw intervals needed for pause rates
            interval_percentile: Percentile used for the interval outlier cutoff
            interval_cutoff_multiplier: Cutoff = percentile value * multiplier
            pause_multiplier: Pause threshold = mean interval * multiplier
            min_pause_ms: Lower bound on the pause threshold
            deep_pause_ms: Fixed deep-thinking pause threshold
            min_hold_ms: Shortest plausible key hold
            max_hold_ms: Longest plausible key hold
            min_holds: Holds needed (raw and after IQR filtering)
            iqr_multiplier: IQR fence multiplier
            min_content_chars: Content characters needed for correction rate
            immediate_correction_window: Key-downs within which a correction counts as immediate
            fluency_speed_norm: Typing speed (chars/sec) that scores full marks
            fluency_weights: Weights for 'speed', 'rhythm' and 'correction'
        """
        if min_events < 1:
            raise ValueError(f"min_events must be positive, got {min_events}")
        if not 0 < interval_percentile <= 1:
            raise ValueError(f"interval_percentile must be in (0, 1], got {interval_percentile}")
        if interval_cutoff_multiplier <= 0 or pause_multiplier <= 0 or iqr_multiplier < 0:
            raise ValueError("Outlier and pause multipliers must be positive")
        if min_hold_ms >= max_hold_ms:
            raise ValueError(f"min_hold_ms ({min_hold_ms}) must be below max_hold_ms ({max_hold_ms})")
        if min_intervals < 2 or min_holds < 2:
            raise ValueError("At least two intervals and holds are needed for a sample variance")
        if fluency_speed_norm <= 0:
            raise ValueError(f"fluency_speed_norm must be positive, got {fluency_speed_norm}")

        weights = dict(const.FLUENCY_WEIGHTS)
        if fluency_weights:
            unknown = set(fluency_weights) - set(weights)
            if unknown:
                raise ValueError(f"Unknown fluency weights: {sorted(unknown)}")
            weights.update({k: float(v) for k, v in fluency_weights.items()})
        if any(w < 0 for w in weights.values()) or sum(weights.values()) > 1.0 + 1e-9:
            raise ValueError(f"Fluency weights must be non-negative and sum to at most 1, got {weights}")

        self.event_log = event_log
        self.min_events = min_events
        self.min_keydowns = min_keydowns
        self.min_intervals = min_intervals
        self.min_pause_intervals = min_pause_intervals
        self.interval_percentile = interval_percentile
        self.interval_cutoff_multiplier = interval_cutoff_multiplier
        self.pause_multiplier = pause_multiplier
        self.min_pause_ms = min_pause_ms
        self.deep_pause_ms = deep_pause_ms
        self.min_hold_ms = min_hold_ms
        self.max_hold_ms = max_hold_ms
        self.min_holds = min_holds
        self.iqr_multiplier = iqr_multiplier
        self.min_content_chars = min_content_chars
        self.immediate_correction_window = immediate_correction_window
        self.fluency_speed_norm = fluency_speed_norm
        self.fluency_weights = weights
        self.logger = get_logger("diary_metrics.keyboard")

    # === EVENT PREPARATION ===

    def _events(self, question_id: Optional[str]) -> Tuple[KeyboardEvent, ...]:
        return sorted_by_timestamp(filter_by_question(self.event_log.keyboard_events, question_id))

    @staticmethod
    def _intervals(keydowns: Sequence[KeyboardEvent]) -> List[float]:
        return [keydowns[i].timestamp - keydowns[i - 1].timestamp for i in range(1, len(keydowns))]

    def _hold_times(self, events: Sequence[KeyboardEvent]) -> List[float]:
        """
        Key-down to key-up durations within the plausible range.

        A repeated key-down (auto-repeat) replaces the pending one for
        that key.
        """
        pending: Dict[str, float] = {}
        holds = []
        for event in events:
            if event.is_key_down:
                pending[event.key] = event.timestamp
            elif event.is_key_up and event.key in pending:
                hold = event.timestamp - pending.pop(event.key)
                if self.min_hold_ms <= hold <= self.max_hold_ms:
                    holds.append(hold)
        return holds

    # === INDIVIDUAL METRICS ===

    def _typing_speed(self, keydowns: Sequence[KeyboardEvent]) -> MetricResult:
        """Content characters per second; below the key-down floor the key-downs seen are reported"""
        if len(keydowns) < self.min_keydowns:
            return MetricResult.insufficient(len(keydowns))

        content_keys = sum(1 for e in keydowns if is_content_key(e.key))
        elapsed = (keydowns[-1].timestamp - keydowns[0].timestamp) / 1000.0
        if elapsed <= 0 or content_keys == 0:
            return MetricResult.insufficient(content_keys)
        return MetricResult.measured(content_keys / elapsed, content_keys)

    def _interval_metrics(self, intervals: Sequence[float]) -> Tuple[MetricResult, MetricResult]:
        """Average inter-key interval and rhythm variability after dropping long gaps"""
        if len(intervals) < self.min_intervals:
            insufficient = MetricResult.insufficient(len(intervals))
            return insufficient, insufficient

        filtered = percentile_cutoff_filter(
            intervals, self.interval_percentile, self.interval_cutoff_multiplier
        )
        if len(filtered) < self.min_intervals:
            insufficient = MetricResult.insufficient(len(filtered))
            return insufficient, insufficient

        average = MetricResult.measured(mean(filtered), len(filtered))
        cv = coefficient_of_variation(filtered, ddof=1)
        if cv is None:
            return average, MetricResult.insufficient(len(filtered))
        return average, MetricResult.measured(cv, len(filtered))

    def _pause_metrics(self, intervals: Sequence[float]) -> Tuple[MetricResult, MetricResult]:
        """Pause rate against the dynamic threshold, deep-thinking rate against a fixed one"""
        if len(intervals) < self.min_pause_intervals:
            insufficient = MetricResult.insufficient(len(intervals))
            return insufficient, insufficient

        threshold = max(mean(intervals) * self.pause_multiplier, self.min_pause_ms)
        pauses = sum(1 for i in intervals if i > threshold)
        deep_pauses = sum(1 for i in intervals if i > self.deep_pause_ms)
        total = len(intervals)
        return (
            MetricResult.measured(pauses / total, total),
            MetricResult.measured(deep_pauses / total, total)
        )

    def _hold_metrics(self, holds: Sequence[float]) -> Tuple[MetricResult, MetricResult]:
        """Average hold time and key-press variability after IQR filtering"""
        if len(holds) < self.min_holds:
            insufficient = MetricResult.insufficient(len(holds))
            return insufficient, insufficient

        filtered = iqr_filter(holds, self.iqr_multiplier)
        if len(filtered) < self.min_holds:
            insufficient = MetricResult.insufficient(len(filtered))
            return insufficient, insufficient

        average = MetricResult.measured(mean(filtered), len(filtered))
        cv = coefficient_of_variation(filtered, ddof=1)
        if cv is None:
            return average, MetricResult.insufficient(len(filtered))
        return average, MetricResult.measured(cv, len(filtered))

    def _correction_metrics(self, keydowns: Sequence[KeyboardEvent]) -> Tuple[MetricResult, MetricResult]:
        """Correction rate per content character and share of back-to-back corrections"""
        corrections = 0
        immediate = 0
        content_chars = 0
        last_correction: Optional[int] = None

        for index, event in enumerate(keydowns):
            if is_correction_key(event.key):
                corrections += 1
                if last_correction is not None and index - last_correction <= self.immediate_correction_window:
                    immediate += 1
                last_correction = index
            elif is_content_key(event.key):
                content_chars += 1

        if len(keydowns) < self.min_keydowns or content_chars < self.min_content_chars:
            return MetricResult.insufficient(content_chars), MetricResult.insufficient(corrections)

        rate = MetricResult.measured(corrections / content_chars, content_chars)
        if corrections == 0:
            return rate, MetricResult.insufficient(0)
        return rate, MetricResult.measured(immediate / corrections, corrections)

    def _fluency(
        self,
        typing_speed: MetricResult,
        average_interval: MetricResult,
        rhythm_variability: MetricResult,
        correction_rate: MetricResult
    ) -> MetricResult:
        """Weighted 0-100 composite of speed, rhythm consistency and correction quality"""
        if not (typing_speed.calculated and average_interval.calculated and rhythm_variability.calculated):
            return MetricResult.insufficient(typing_speed.sample_size)

        speed_score = min(1.0, typing_speed.value / self.fluency_speed_norm)
        rhythm_consistency = 1.0 / (1.0 + rhythm_variability.value)
        correction_quality = 1.0
        if correction_rate.calculated:
            correction_quality = 1.0 / (1.0 + correction_rate.value)

        score = 100.0 * (
            self.fluency_weights['speed'] * speed_score +
            self.fluency_weights['rhythm'] * rhythm_consistency +
            self.fluency_weights['correction'] * correction_quality
        )
        score = max(0.0, min(100.0, score))
        return MetricResult.measured(score, typing_speed.sample_size)

    # === SCOPE CALCULATION ===

    def calculate(self, question_id: Optional[str] = None) -> KeyboardMetrics:
        """
        Calculate all keyboard metrics for one scope.

        Args:
            question_id: Question to restrict to, or None for global scope

        Returns:
            KeyboardMetrics (all uncalculated below the event floor)
        """
        events = self._events(question_id)
        if len(events) < self.min_events:
            self.logger.debug(
                f"Keyboard metrics skipped (scope={question_id or const.GLOBAL_SCOPE}, "
                f"events={len(events)} < {self.min_events})"
            )
            return KeyboardMetrics(typing_speed=MetricResult.insufficient(len(events)))

        keydowns = [e for e in events if e.is_key_down]
        intervals = self._intervals(keydowns)

        typing_speed = self._typing_speed(keydowns)
        average_interval, rhythm_variability = self._interval_metrics(intervals)
        pause_rate, deep_pause_rate = self._pause_metrics(intervals)
        average_hold, hold_variability = self._hold_metrics(self._hold_times(events))
        correction_rate, immediate_tendency = self._correction_metrics(keydowns)

        return KeyboardMetrics(
            typing_speed=typing_speed,
            average_inter_key_interval=average_interval,
            typing_rhythm_variability=rhythm_variability,
            average_key_hold_time=average_hold,
            key_press_variability=hold_variability,
            correction_rate=correction_rate,
            immediate_correction_tendency=immediate_tendency,
            pause_rate=pause_rate,
            deep_thinking_pause_rate=deep_pause_rate,
            keyboard_fluency=self._fluency(
                typing_speed, average_interval, rhythm_variability, correction_rate
            )
        )
