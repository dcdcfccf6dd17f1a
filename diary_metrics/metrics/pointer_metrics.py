"""
Pointer Metrics Calculator

Derives pointer behaviour metrics from movement samples and clicks:
- Click precision (click distance from target centre)
- Path efficiency (direct vs. travelled distance to each clicked target)
- Overshoot rate (direction reversals on the way to a target)
- Average velocity and velocity variability (coefficient of variation)

Every metric is a MetricResult; too little data gives calculated=False
instead of a guessed value.
"""

from collections import defaultdict
from dataclasses import dataclass, fields
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from diary_metrics import constants as const
from diary_metrics.data_acquisition.event_log import (
    ClickInteraction,
    EventLog,
    MovementSample,
    filter_by_question,
    sorted_by_timestamp
)
from diary_metrics.metrics.metric_result import MetricResult
from diary_metrics.metrics.statistics import coefficient_of_variation, distance, mean
from diary_metrics.utils.logger import get_logger


@dataclass(frozen=True)
class PointerMetrics:
    """Pointer metrics for one scope"""
    click_precision: MetricResult = MetricResult()
    path_efficiency: MetricResult = MetricResult()
    overshoot_rate: MetricResult = MetricResult()
    average_velocity: MetricResult = MetricResult()
    velocity_variability: MetricResult = MetricResult()

    def items(self) -> Iterator[Tuple[str, MetricResult]]:
        for f in fields(self):
            yield f.name, getattr(self, f.name)


class PointerMetricsCalculator:
    """
    Pointer metrics over one submission's event log

    Usage:
        calculator = PointerMetricsCalculator(event_log)
        metrics = calculator.calculate()            # global scope
        q1 = calculator.calculate('q1')             # one question
    """

    def __init__(
        self,
        event_log: EventLog,
        min_path_samples: int = const.MIN_PATH_SAMPLES,
        min_overshoot_samples: int = const.MIN_OVERSHOOT_SAMPLES,
        min_velocity_samples: int = const.MIN_VELOCITY_SAMPLES
    ):
        """
        Initialize pointer calculator.

        Args:
            event_log: Submission log (read only)
            min_path_samples: Movement samples per target needed for path efficiency
            min_overshoot_samples: Movement samples per target needed for overshoot detection
            min_velocity_samples: Velocity samples needed for velocity variability
        """
        if min_path_samples < 2:
            raise ValueError(f"min_path_samples must be at least 2, got {min_path_samples}")
        if min_overshoot_samples < 3:
            raise ValueError(f"min_overshoot_samples must be at least 3, got {min_overshoot_samples}")
        if min_velocity_samples < 2:
            raise ValueError(f"min_velocity_samples must be at least 2, got {min_velocity_samples}")

        self.event_log = event_log
        self.min_path_samples = min_path_samples
        self.min_overshoot_samples = min_overshoot_samples
        self.min_velocity_samples = min_velocity_samples
        self.logger = get_logger("diary_metrics.pointer")

    def _movements(self, question_id: Optional[str]) -> Tuple[MovementSample, ...]:
        return filter_by_question(self.event_log.movements, question_id)

    def _interactions(self, question_id: Optional[str]) -> Tuple[ClickInteraction, ...]:
        return filter_by_question(self.event_log.interactions, question_id)

    def _movements_by_target(self, question_id: Optional[str]) -> Dict[str, Tuple[MovementSample, ...]]:
        """Timestamp-sorted movement samples per target; untargeted samples are dropped"""
        groups: Dict[str, List[MovementSample]] = defaultdict(list)
        for movement in self._movements(question_id):
            if movement.target_id:
                groups[movement.target_id].append(movement)
        return {target: sorted_by_timestamp(groups[target]) for target in sorted(groups)}

    def click_precision(self, question_id: Optional[str] = None) -> MetricResult:
        """1 - mean normalized click distance from the target centre"""
        interactions = self._interactions(question_id)
        if not interactions:
            return MetricResult.insufficient(0)

        normalized = []
        for interaction in interactions:
            dist = distance(interaction.click_x, interaction.click_y,
                            interaction.target_x, interaction.target_y)
            # Approximates a rectangular target from its centre coordinates
            max_distance = distance(0.0, 0.0, interaction.target_x, interaction.target_y) / 2.0
            if max_distance == 0:
                max_distance = 1.0
            normalized.append(min(1.0, dist / max_distance))

        return MetricResult.measured(1.0 - mean(normalized), len(interactions))

    def path_efficiency(self, question_id: Optional[str] = None) -> MetricResult:
        """
        Mean ratio of direct to travelled distance per clicked target.

        The endpoint is the final click on each target; the path runs from
        the first movement sample through every sample to that click.
        """
        final_clicks: Dict[str, ClickInteraction] = {}
        for interaction in sorted_by_timestamp(self._interactions(question_id)):
            if interaction.target_id:
                final_clicks[interaction.target_id] = interaction

        groups = self._movements_by_target(question_id)
        efficiencies = []
        for target_id, samples in groups.items():
            click = final_clicks.get(target_id)
            if click is None or len(samples) < self.min_path_samples:
                continue

            direct = distance(samples[0].x, samples[0].y, click.click_x, click.click_y)
            actual = sum(
                distance(samples[i - 1].x, samples[i - 1].y, samples[i].x, samples[i].y)
                for i in range(1, len(samples))
            )
            actual += distance(samples[-1].x, samples[-1].y, click.click_x, click.click_y)

            # Pointer never moved: nothing to measure
            if actual <= 0:
                continue
            efficiencies.append(min(1.0, direct / actual))

        if not efficiencies:
            self.logger.debug(
                f"path_efficiency not calculated (scope={question_id or const.GLOBAL_SCOPE}, "
                f"targets={len(groups)}, clicked={len(final_clicks)})"
            )
            return MetricResult.insufficient(0)

        return MetricResult.measured(mean(efficiencies), len(efficiencies))

    @staticmethod
    def _has_reversal(samples: Sequence[MovementSample]) -> bool:
        """True if the x or y step flips sign between two consecutive segments"""
        for i in range(2, len(samples)):
            prev_dx = samples[i - 1].x - samples[i - 2].x
            prev_dy = samples[i - 1].y - samples[i - 2].y
            dx = samples[i].x - samples[i - 1].x
            dy = samples[i].y - samples[i - 1].y
            if dx * prev_dx < 0 or dy * prev_dy < 0:
                return True
        return False

    def overshoot_rate(self, question_id: Optional[str] = None) -> MetricResult:
        """Fraction of targets whose trajectory reverses direction at least once"""
        evaluated = 0
        overshoots = 0
        for samples in self._movements_by_target(question_id).values():
            if len(samples) < self.min_overshoot_samples:
                continue
            evaluated += 1
            if self._has_reversal(samples):
                overshoots += 1

        if evaluated == 0:
            return MetricResult.insufficient(0)
        return MetricResult.measured(overshoots / evaluated, evaluated)

    def _velocities(self, question_id: Optional[str]) -> List[float]:
        """Pixel/second speeds between consecutive samples, skipping non-positive time steps"""
        movements = sorted_by_timestamp(self._movements(question_id))
        velocities = []
        for i in range(1, len(movements)):
            dt = (movements[i].timestamp - movements[i - 1].timestamp) / 1000.0
            if dt <= 0:
                continue
            dist = distance(movements[i - 1].x, movements[i - 1].y, movements[i].x, movements[i].y)
            velocities.append(dist / dt)
        return velocities

    def average_velocity(self, question_id: Optional[str] = None) -> MetricResult:
        return self._average_velocity(self._velocities(question_id))

    def velocity_variability(self, question_id: Optional[str] = None) -> MetricResult:
        return self._velocity_variability(self._velocities(question_id))

    @staticmethod
    def _average_velocity(velocities: Sequence[float]) -> MetricResult:
        if not velocities:
            return MetricResult.insufficient(0)
        return MetricResult.measured(mean(velocities), len(velocities))

    def _velocity_variability(self, velocities: Sequence[float]) -> MetricResult:
        if len(velocities) < self.min_velocity_samples:
            return MetricResult.insufficient(len(velocities))
        cv = coefficient_of_variation(velocities, ddof=0)
        if cv is None:
            # Zero mean velocity: the pointer never moved
            return MetricResult.insufficient(len(velocities))
        return MetricResult.measured(cv, len(velocities))

    def calculate(self, question_id: Optional[str] = None) -> PointerMetrics:
        """
        Calculate all pointer metrics for one scope.

        Args:
            question_id: Question to restrict to, or None for global scope

        Returns:
            PointerMetrics
        """
        velocities = self._velocities(question_id)
        return PointerMetrics(
            click_precision=self.click_precision(question_id),
            path_efficiency=self.path_efficiency(question_id),
            overshoot_rate=self.overshoot_rate(question_id),
            average_velocity=self._average_velocity(velocities),
            velocity_variability=self._velocity_variability(velocities)
        )
