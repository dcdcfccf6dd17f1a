"""
Tests for interaction payload decoding
"""

import pytest

from diary_metrics.data_acquisition.event_log import (
    ClickInteraction,
    EventLog,
    KeyboardEvent,
    KeyEventType,
    MovementSample,
    filter_by_question,
    sorted_by_timestamp
)


class TestRecordDecoding:
    """Tests for single record decoding"""

    def test_movement(self):
        sample = MovementSample.from_dict({'x': 12.5, 'y': 3, 'timestamp': 100, 'targetId': 't1', 'questionId': 'q1'})
        assert sample == MovementSample(12.5, 3.0, 100.0, target_id='t1', question_id='q1')

    def test_movement_empty_ids(self):
        sample = MovementSample.from_dict({'x': 1, 'y': 2, 'timestamp': 3, 'targetId': '', 'questionId': None})
        assert sample.target_id is None
        assert sample.question_id is None

    def test_click(self):
        click = ClickInteraction.from_dict({
            'targetId': 'opt-2', 'targetType': 'radio', 'questionId': 'q4',
            'clickX': 101, 'clickY': 55, 'targetX': 100, 'targetY': 50, 'timestamp': 1234
        })
        assert click.target_id == 'opt-2'
        assert click.target_type == 'radio'
        assert click.click_x == 101.0
        assert click.question_id == 'q4'

    def test_keyboard_event(self):
        event = KeyboardEvent.from_dict({'type': 'keyup', 'key': 'a', 'timestamp': 99, 'isModifier': False})
        assert event.type is KeyEventType.KEY_UP
        assert event.is_key_up
        assert not event.is_key_down

    def test_unknown_key_event_type(self):
        with pytest.raises(ValueError, match='Unknown keyboard event type'):
            KeyboardEvent.from_dict({'type': 'keypress', 'key': 'a', 'timestamp': 1})

    @pytest.mark.parametrize('value', [None, 'abc', True, float('nan'), float('inf')])
    def test_bad_coordinate(self, value):
        with pytest.raises(ValueError):
            MovementSample.from_dict({'x': value, 'y': 0, 'timestamp': 0})

    def test_numeric_string_accepted(self):
        sample = MovementSample.from_dict({'x': '4', 'y': '5.5', 'timestamp': '10'})
        assert (sample.x, sample.y, sample.timestamp) == (4.0, 5.5, 10.0)


class TestEventLog:
    """Tests for whole payload decoding"""

    def test_from_dict(self):
        log = EventLog.from_dict({
            'movements': [{'x': 0, 'y': 0, 'timestamp': 0, 'questionId': 'q2'}],
            'interactions': [],
            'keyboardEvents': [{'type': 'keydown', 'key': 'a', 'timestamp': 5, 'questionId': 'q1'}],
            'startTime': 1700000000000
        })
        assert len(log.movements) == 1
        assert log.interactions == ()
        assert log.start_time == 1700000000000.0
        assert log.question_ids() == ('q1', 'q2')
        assert not log.is_empty()

    def test_unknown_key_event_type_skipped(self):
        """A stray keypress does not cost the rest of the submission"""
        log = EventLog.from_dict({
            'movements': [{'x': 0, 'y': 0, 'timestamp': 0}, {'x': 10, 'y': 0, 'timestamp': 100}],
            'keyboardEvents': [
                {'type': 'keydown', 'key': 'a', 'timestamp': 5},
                {'type': 'keypress', 'key': 'a', 'timestamp': 6},
                {'key': 'b', 'timestamp': 7},
                {'type': 'keyup', 'key': 'a', 'timestamp': 60},
            ]
        })
        assert len(log.movements) == 2
        assert [e.type for e in log.keyboard_events] == [KeyEventType.KEY_DOWN, KeyEventType.KEY_UP]

    def test_missing_streams(self):
        log = EventLog.from_dict({})
        assert log.is_empty()
        assert log.start_time is None

    def test_none_payload(self):
        assert EventLog.from_dict(None) == EventLog()

    def test_stream_not_a_list(self):
        with pytest.raises(ValueError, match="'movements' must be a list"):
            EventLog.from_dict({'movements': {'x': 1}})

    def test_record_not_an_object(self):
        with pytest.raises(ValueError, match=r"'keyboardEvents\[1\]'"):
            EventLog.from_dict({'keyboardEvents': [
                {'type': 'keydown', 'key': 'a', 'timestamp': 1},
                'keyup'
            ]})

    def test_payload_not_an_object(self):
        with pytest.raises(ValueError):
            EventLog.from_dict([1, 2])

    def test_lists_stored_as_tuples(self):
        log = EventLog(movements=[MovementSample(0, 0, 0)])
        assert isinstance(log.movements, tuple)


class TestHelpers:
    """Tests for filtering and ordering helpers"""

    def test_filter_by_question(self):
        samples = [MovementSample(0, 0, 0, question_id='q1'), MovementSample(0, 0, 1)]
        assert filter_by_question(samples, 'q1') == (samples[0],)
        assert filter_by_question(samples, None) == tuple(samples)
        assert filter_by_question(samples, 'q9') == ()

    def test_sorted_copy_is_stable(self):
        samples = [MovementSample(1, 0, 20), MovementSample(2, 0, 10), MovementSample(3, 0, 10)]
        ordered = sorted_by_timestamp(samples)
        assert [s.x for s in ordered] == [2, 3, 1]
        assert [s.x for s in samples] == [1, 2, 3]
