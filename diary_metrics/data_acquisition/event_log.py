"""
Interaction Event Log

Immutable records of the pointer and keyboard activity captured by the
assessment front end, plus decoding from the camelCase submission payload:
- Movement samples (pointer position over time)
- Click interactions (click point vs. target centre)
- Keyboard events (key-down / key-up with timestamps)

Timestamps are milliseconds. Records are never mutated; calculators work
on sorted copies.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple, TypeVar

from diary_metrics.utils.logger import get_logger

logger = get_logger("diary_metrics.events")


class KeyEventType(str, Enum):
    """Keyboard event kind as sent by the browser"""
    KEY_DOWN = 'keydown'
    KEY_UP = 'keyup'


def require_number(record: Mapping[str, Any], key: str, kind: str, default: Optional[float] = None) -> float:
    value = record.get(key, default)
    if value is None:
        raise ValueError(f"{kind} record is missing '{key}': {dict(record)}")
    if isinstance(value, bool):
        raise ValueError(f"{kind} field '{key}' must be numeric, got bool")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{kind} field '{key}' must be numeric, got {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"{kind} field '{key}' must be finite, got {value!r}")
    return number


def _optional_id(record: Mapping[str, Any], key: str) -> Optional[str]:
    value = record.get(key)
    if value is None or value == '':
        return None
    return str(value)


@dataclass(frozen=True)
class MovementSample:
    """Pointer position sample"""
    x: float
    y: float
    timestamp: float
    target_id: Optional[str] = None
    question_id: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'MovementSample':
        return cls(
            x=require_number(record, 'x', 'movement'),
            y=require_number(record, 'y', 'movement'),
            timestamp=require_number(record, 'timestamp', 'movement'),
            target_id=_optional_id(record, 'targetId'),
            question_id=_optional_id(record, 'questionId'),
        )


@dataclass(frozen=True)
class ClickInteraction:
    """Completed click/tap on an answerable element"""
    target_id: str
    click_x: float
    click_y: float
    target_x: float
    target_y: float
    timestamp: float
    target_type: str = ''
    question_id: Optional[str] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'ClickInteraction':
        return cls(
            target_id=str(record.get('targetId') or ''),
            target_type=str(record.get('targetType') or ''),
            question_id=_optional_id(record, 'questionId'),
            click_x=require_number(record, 'clickX', 'interaction'),
            click_y=require_number(record, 'clickY', 'interaction'),
            target_x=require_number(record, 'targetX', 'interaction'),
            target_y=require_number(record, 'targetY', 'interaction'),
            timestamp=require_number(record, 'timestamp', 'interaction'),
        )


@dataclass(frozen=True)
class KeyboardEvent:
    """Single key-down or key-up"""
    type: KeyEventType
    key: str
    timestamp: float
    is_modifier: bool = False
    question_id: Optional[str] = None

    @property
    def is_key_down(self) -> bool:
        return self.type is KeyEventType.KEY_DOWN

    @property
    def is_key_up(self) -> bool:
        return self.type is KeyEventType.KEY_UP

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'KeyboardEvent':
        raw_type = record.get('type')
        try:
            event_type = KeyEventType(raw_type)
        except ValueError:
            raise ValueError(f"Unknown keyboard event type: {raw_type!r}") from None
        return cls(
            type=event_type,
            key=str(record.get('key', '')),
            is_modifier=bool(record.get('isModifier', False)),
            timestamp=require_number(record, 'timestamp', 'keyboard event'),
            question_id=_optional_id(record, 'questionId'),
        )


T = TypeVar('T', MovementSample, ClickInteraction, KeyboardEvent)


def filter_by_question(records: Iterable[T], question_id: Optional[str]) -> Tuple[T, ...]:
    """
    Restrict records to one question.

    Args:
        records: Movement, click or keyboard records
        question_id: Question to keep, or None for global scope (everything)

    Returns:
        New tuple; the input is never modified
    """
    if question_id is None:
        return tuple(records)
    return tuple(r for r in records if r.question_id == question_id)


def sorted_by_timestamp(records: Iterable[T]) -> Tuple[T, ...]:
    """Private, stable, timestamp-ordered copy of the records"""
    return tuple(sorted(records, key=lambda r: r.timestamp))


@dataclass(frozen=True)
class EventLog:
    """
    Raw interaction data for one assessment submission

    Usage:
        log = EventLog.from_dict(payload)
        log.question_ids()
    """
    movements: Tuple[MovementSample, ...] = field(default_factory=tuple)
    interactions: Tuple[ClickInteraction, ...] = field(default_factory=tuple)
    keyboard_events: Tuple[KeyboardEvent, ...] = field(default_factory=tuple)
    start_time: Optional[float] = None

    def __post_init__(self):
        # Accept lists from callers but store tuples so scopes can share the log
        object.__setattr__(self, 'movements', tuple(self.movements))
        object.__setattr__(self, 'interactions', tuple(self.interactions))
        object.__setattr__(self, 'keyboard_events', tuple(self.keyboard_events))

    @classmethod
    def from_dict(cls, payload: Optional[Mapping[str, Any]]) -> 'EventLog':
        """
        Decode the front end's interaction payload.

        Args:
            payload: Dict with 'movements', 'interactions', 'keyboardEvents'
                and optional 'startTime'

        Raises:
            ValueError: If a record is malformed
        """
        if payload is None:
            return cls()
        if not isinstance(payload, Mapping):
            raise ValueError(f"Interaction payload must be an object, got {type(payload).__name__}")

        start_time = payload.get('startTime')
        return cls(
            movements=tuple(MovementSample.from_dict(r) for r in _records(payload, 'movements')),
            interactions=tuple(ClickInteraction.from_dict(r) for r in _records(payload, 'interactions')),
            keyboard_events=tuple(_keyboard_events(payload)),
            start_time=require_number(payload, 'startTime', 'interaction payload') if start_time is not None else None,
        )

    def question_ids(self) -> Tuple[str, ...]:
        """Distinct question ids seen in any stream, sorted for stable output"""
        ids = set()
        for stream in (self.movements, self.interactions, self.keyboard_events):
            ids.update(r.question_id for r in stream if r.question_id)
        return tuple(sorted(ids))

    def is_empty(self) -> bool:
        return not (self.movements or self.interactions or self.keyboard_events)


def _records(payload: Mapping[str, Any], key: str) -> Iterable[Mapping[str, Any]]:
    records = payload.get(key) or []
    if not isinstance(records, (list, tuple)):
        raise ValueError(f"'{key}' must be a list, got {type(records).__name__}")
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ValueError(f"'{key}[{index}]' must be an object, got {type(record).__name__}")
        yield record


def _keyboard_events(payload: Mapping[str, Any]) -> Iterable[KeyboardEvent]:
    """Decode key-downs and key-ups; other browser event types are skipped"""
    known = {t.value for t in KeyEventType}
    skipped = 0
    for record in _records(payload, 'keyboardEvents'):
        if record.get('type') not in known:
            skipped += 1
            continue
        yield KeyboardEvent.from_dict(record)
    if skipped:
        logger.debug(f"Skipped {skipped} keyboard events with an unknown type")
