"""
Data Acquisition Module
Decodes the interaction and cognitive-test logs submitted by the front end
"""

from diary_metrics.data_acquisition.event_log import (
    EventLog,
    MovementSample,
    ClickInteraction,
    KeyboardEvent,
    KeyEventType,
    filter_by_question,
    sorted_by_timestamp
)
from diary_metrics.data_acquisition.attention_log import (
    AttentionTestLog,
    StimulusPresentation,
    ResponseEvent
)
from diary_metrics.data_acquisition.cognitive_test_log import (
    TrailMakingLog,
    TrailClick,
    DigitSpanLog,
    DigitSpanTrial
)

__all__ = [
    'EventLog',
    'MovementSample',
    'ClickInteraction',
    'KeyboardEvent',
    'KeyEventType',
    'filter_by_question',
    'sorted_by_timestamp',
    'AttentionTestLog',
    'StimulusPresentation',
    'ResponseEvent',
    'TrailMakingLog',
    'TrailClick',
    'DigitSpanLog',
    'DigitSpanTrial'
]
