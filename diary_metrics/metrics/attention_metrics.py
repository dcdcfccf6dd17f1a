"""
Attention-Test (CPT) Scorer

Scores one Continuous Performance Test run:
detection, omission and commission rates plus reaction-time statistics
over target hits.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from diary_metrics.data_acquisition.attention_log import AttentionTestLog
from diary_metrics.metrics.metric_result import MetricResult
from diary_metrics.utils.logger import get_logger


@dataclass(frozen=True)
class AttentionTestResult:
    """Scored CPT run, ready for persistence"""
    total_targets: int
    total_non_targets: int
    correct_detections: int
    commission_errors: int
    omission_errors: int
    detection_rate: float
    omission_error_rate: float
    commission_error_rate: float
    average_reaction_time: MetricResult
    reaction_time_sd: MetricResult
    test_start_time: Optional[datetime] = None
    test_end_time: Optional[datetime] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            'test_start_time': self.test_start_time.isoformat() if self.test_start_time else None,
            'test_end_time': self.test_end_time.isoformat() if self.test_end_time else None,
            'total_targets': self.total_targets,
            'total_non_targets': self.total_non_targets,
            'correct_detections': self.correct_detections,
            'commission_errors': self.commission_errors,
            'omission_errors': self.omission_errors,
            'detection_rate': self.detection_rate,
            'omission_error_rate': self.omission_error_rate,
            'commission_error_rate': self.commission_error_rate,
            'average_reaction_time': self.average_reaction_time.to_dict(),
            'reaction_time_sd': self.reaction_time_sd.to_dict(),
            'settings': dict(self.settings)
        }


def _rate(count: int, total: int) -> float:
    """count / total in [0, 1]; 0 when nothing was presented"""
    if total <= 0:
        return 0.0
    return min(1.0, count / total)


class AttentionTestScorer:
    """
    CPT scoring

    Usage:
        scorer = AttentionTestScorer()
        result = scorer.score_raw(raw_json)
        print(result.detection_rate)
    """

    def __init__(self, min_sd_samples: int = 2):
        """
        Args:
            min_sd_samples: Target hits needed for the reaction-time SD
        """
        if min_sd_samples < 2:
            raise ValueError(f"min_sd_samples must be at least 2, got {min_sd_samples}")
        self.min_sd_samples = min_sd_samples
        self.logger = get_logger("diary_metrics.attention")

    def score(self, log: AttentionTestLog) -> AttentionTestResult:
        """
        Score one test run.

        Args:
            log: Decoded CPT log

        Returns:
            AttentionTestResult
        """
        total_targets = log.total_targets
        total_non_targets = log.total_non_targets

        reaction_times = [r.response_time for r in log.responses if r.is_target]
        correct_detections = len(reaction_times)
        commission_errors = len(log.responses) - correct_detections
        omission_errors = max(total_targets - correct_detections, 0)

        if correct_detections > total_targets:
            self.logger.warning(
                f"CPT log has {correct_detections} target hits for {total_targets} targets presented"
            )

        if reaction_times:
            average_rt = MetricResult.measured(float(np.mean(reaction_times)), len(reaction_times))
        else:
            average_rt = MetricResult.insufficient(0)

        if len(reaction_times) >= self.min_sd_samples:
            # Population SD over the hits of this run
            reaction_sd = MetricResult.measured(float(np.std(reaction_times, ddof=0)), len(reaction_times))
        else:
            reaction_sd = MetricResult.insufficient(len(reaction_times))

        return AttentionTestResult(
            test_start_time=AttentionTestLog.to_datetime(log.test_start_time),
            test_end_time=AttentionTestLog.to_datetime(log.test_end_time),
            total_targets=total_targets,
            total_non_targets=total_non_targets,
            correct_detections=correct_detections,
            commission_errors=commission_errors,
            omission_errors=omission_errors,
            detection_rate=_rate(correct_detections, total_targets),
            omission_error_rate=_rate(omission_errors, total_targets),
            commission_error_rate=_rate(commission_errors, total_non_targets),
            average_reaction_time=average_rt,
            reaction_time_sd=reaction_sd,
            settings=dict(log.settings)
        )

    def score_raw(self, raw: Union[str, bytes, bytearray, Mapping[str, Any]]) -> AttentionTestResult:
        """
        Decode and score raw CPT data.

        Raises:
            ValueError: If the data cannot be parsed
        """
        return self.score(AttentionTestLog.from_raw(raw))
