"""
Trail Making and Digit Span test logs

Raw runs of the two timed cognitive tests, decoded from the JSON the test
components submit. Times are milliseconds on the page clock
(performance.now()), not epoch timestamps.

A run whose start and end times are both missing or zero was never
performed and must not be scored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from diary_metrics.data_acquisition.event_log import require_number

RawPayload = Union[str, bytes, bytearray, Mapping[str, Any]]


def is_performed(start_time: Optional[float], end_time: Optional[float]) -> bool:
    """False when neither a start nor an end time was recorded"""
    return bool(start_time) or bool(end_time)


def decode_raw(raw: RawPayload, test_name: str) -> Mapping[str, Any]:
    """
    Parse a raw test payload.

    Args:
        raw: JSON str/bytes or an already parsed dict
        test_name: Short test name used in error messages

    Raises:
        ValueError: If the data is not valid JSON
    """
    if isinstance(raw, Mapping):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"failed to parse raw {test_name} data: {e}") from e


def _optional_time(payload: Mapping[str, Any], key: str, kind: str) -> Optional[float]:
    if payload.get(key) is None:
        return None
    return require_number(payload, key, kind)


def _object_list(payload: Mapping[str, Any], key: str) -> list:
    records = payload.get(key) or []
    if not isinstance(records, (list, tuple)):
        raise ValueError(f"'{key}' must be a list, got {type(records).__name__}")
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ValueError(f"'{key}[{index}]' must be an object")
    return list(records)


def _settings(payload: Mapping[str, Any]) -> Dict[str, Any]:
    settings = payload.get('settings') or {}
    if not isinstance(settings, Mapping):
        raise ValueError("'settings' must be an object")
    return dict(settings)


@dataclass(frozen=True)
class TrailClick:
    """Click on the trail canvas"""
    x: float
    y: float
    time: float  # ms since test start
    target_item: Optional[int] = None
    part: str = ''

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'TrailClick':
        target = record.get('targetItem')
        return cls(
            x=require_number(record, 'x', 'trail click'),
            y=require_number(record, 'y', 'trail click'),
            time=require_number(record, 'time', 'trail click', default=0.0),
            target_item=int(require_number(record, 'targetItem', 'trail click')) if target is not None else None,
            part=str(record.get('currentPart') or ''),
        )


@dataclass(frozen=True)
class TrailMakingLog:
    """
    Raw Trail Making Test run (Part A: numbers, Part B: alternating numbers and letters)

    Usage:
        log = TrailMakingLog.from_raw(raw_json)
        if log.is_performed:
            ...
    """
    test_start_time: Optional[float] = None
    test_end_time: Optional[float] = None
    part_a_completion_time: float = 0.0
    part_a_errors: int = 0
    part_b_completion_time: float = 0.0
    part_b_errors: int = 0
    clicks: Tuple[TrailClick, ...] = field(default_factory=tuple)
    settings: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'clicks', tuple(self.clicks))

    @property
    def is_performed(self) -> bool:
        return is_performed(self.test_start_time, self.test_end_time)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'TrailMakingLog':
        """
        Decode the Trail Making payload.

        Raises:
            ValueError: If the payload or one of its records is malformed
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"Trail Making payload must be an object, got {type(payload).__name__}")

        kind = 'Trail Making payload'
        return cls(
            test_start_time=_optional_time(payload, 'testStartTime', kind),
            test_end_time=_optional_time(payload, 'testEndTime', kind),
            part_a_completion_time=require_number(payload, 'partACompletionTime', kind, default=0.0),
            part_a_errors=int(require_number(payload, 'partAErrors', kind, default=0)),
            part_b_completion_time=require_number(payload, 'partBCompletionTime', kind, default=0.0),
            part_b_errors=int(require_number(payload, 'partBErrors', kind, default=0)),
            clicks=tuple(TrailClick.from_dict(r) for r in _object_list(payload, 'clicks')),
            settings=_settings(payload),
        )

    @classmethod
    def from_raw(cls, raw: RawPayload) -> 'TrailMakingLog':
        return cls.from_dict(decode_raw(raw, 'Trail Making'))


@dataclass(frozen=True)
class DigitSpanTrial:
    """One recall attempt"""
    span: int
    correct: bool
    trial: int = 1
    sequence: str = ''
    response: str = ''
    timestamp: float = 0.0

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'DigitSpanTrial':
        return cls(
            span=int(require_number(record, 'span', 'digit span trial')),
            correct=bool(record.get('correct', False)),
            trial=int(require_number(record, 'trial', 'digit span trial', default=1)),
            sequence=str(record.get('sequence') or ''),
            response=str(record.get('input') or ''),
            timestamp=require_number(record, 'timestamp', 'digit span trial', default=0.0),
        )


@dataclass(frozen=True)
class DigitSpanLog:
    """Raw Digit Span Test run"""
    trials: Tuple[DigitSpanTrial, ...] = field(default_factory=tuple)
    test_start_time: Optional[float] = None
    test_end_time: Optional[float] = None
    settings: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, 'trials', tuple(self.trials))

    @property
    def is_performed(self) -> bool:
        return is_performed(self.test_start_time, self.test_end_time)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> 'DigitSpanLog':
        """
        Decode the Digit Span payload ('results' holds the trials).

        Raises:
            ValueError: If the payload or one of its records is malformed
        """
        if not isinstance(payload, Mapping):
            raise ValueError(f"Digit Span payload must be an object, got {type(payload).__name__}")

        kind = 'Digit Span payload'
        return cls(
            trials=tuple(DigitSpanTrial.from_dict(r) for r in _object_list(payload, 'results')),
            test_start_time=_optional_time(payload, 'testStartTime', kind),
            test_end_time=_optional_time(payload, 'testEndTime', kind),
            settings=_settings(payload),
        )

    @classmethod
    def from_raw(cls, raw: RawPayload) -> 'DigitSpanLog':
        return cls.from_dict(decode_raw(raw, 'Digit Span'))
