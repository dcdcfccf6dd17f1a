"""
Continuous Performance Test (CPT) log

Stimulus presentations and responses for one completed attention test run,
decoded from the raw JSON the test component submits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from diary_metrics.data_acquisition.cognitive_test_log import RawPayload, decode_raw, is_performed
from diary_metrics.data_acquisition.event_log import require_number


@dataclass(frozen=True)
class StimulusPresentation:
    """Stimulus shown to the participant"""
    value: str
    is_target: bool
    presented_at: float  # ms since test start

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'StimulusPresentation':
        return cls(
            value=str(record.get('value', '')),
            is_target=bool(record.get('isTarget', False)),
            presented_at=require_number(record, 'presentedAt', 'stimulus', default=0.0),
        )


@dataclass(frozen=True)
class ResponseEvent:
    """Participant response to a stimulus"""
    stimulus_value: str
    is_target: bool
    response_time: float  # ms since stimulus onset
    stimulus_index: int = -1

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'ResponseEvent':
        value = record.get('stimulus', record.get('stimulusValue', ''))
        return cls(
            stimulus_value=str(value),
            is_target=bool(record.get('isTarget', False)),
            response_time=require_number(record, 'responseTime', 'response'),
            stimulus_index=int(require_number(record, 'stimulusIndex', 'response', default=-1)),
        )


@dataclass(frozen=True)
class AttentionTestLog:
    """Raw CPT data for one test run"""
    stimuli: Tuple[StimulusPresentation, ...] = field(default_factory=tuple)
    responses: Tuple[ResponseEvent, ...] = field(default_factory=tuple)
    test_start_time: Optional[float] = None  # ms since epoch
    test_end_time: Optional[float] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'stimuli', tuple(self.stimuli))
        object.__setattr__(self, 'responses', tuple(self.responses))

    @property
    def is_performed(self) -> bool:
        """False when the run carries neither a start nor an end time"""
        return is_performed(self.test_start_time, self.test_end_time)

    @property
    def total_targets(self) -> int:
        return sum(1 for s in self.stimuli if s.is_target)

    @property
    def total_non_targets(self) -> int:
        return len(self.stimuli) - self.total_targets

    @staticmethod
    def to_datetime(timestamp_ms: Optional[float]) -> Optional[datetime]:
        """Convert a JavaScript millisecond timestamp to an aware UTC datetime"""
        if timestamp_ms is None:
            return None
        return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'AttentionTestLog':
        """
        Decode the CPT payload.

        Args:
            payload: Dict with 'stimuliPresented', 'responses', and optional
                'testStartTime', 'testEndTime', 'settings'

        Raises:
            ValueError: If the payload or one of its records is malformed
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"CPT payload must be an object, got {type(payload).__name__}")

        stimuli = payload.get('stimuliPresented') or []
        responses = payload.get('responses') or []
        for key, records in (('stimuliPresented', stimuli), ('responses', responses)):
            if not isinstance(records, (list, tuple)):
                raise ValueError(f"'{key}' must be a list, got {type(records).__name__}")
            for index, record in enumerate(records):
                if not isinstance(record, Mapping):
                    raise ValueError(f"'{key}[{index}]' must be an object")

        settings = payload.get('settings') or {}
        if not isinstance(settings, Mapping):
            raise ValueError("'settings' must be an object")

        start = payload.get('testStartTime')
        end = payload.get('testEndTime')
        return cls(
            stimuli=tuple(StimulusPresentation.from_dict(r) for r in stimuli),
            responses=tuple(ResponseEvent.from_dict(r) for r in responses),
            test_start_time=require_number(payload, 'testStartTime', 'CPT payload') if start is not None else None,
            test_end_time=require_number(payload, 'testEndTime', 'CPT payload') if end is not None else None,
            settings=dict(settings),
        )

    @classmethod
    def from_raw(cls, raw: RawPayload) -> 'AttentionTestLog':
        """Decode raw JSON (str/bytes) or an already parsed dict"""
        return cls.from_dict(decode_raw(raw, 'CPT'))
