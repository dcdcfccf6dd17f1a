"""
Tests for keyboard dynamics calculation
"""

import pytest

from diary_metrics.data_acquisition.event_log import EventLog, KeyboardEvent, KeyEventType
from diary_metrics.metrics.keyboard_metrics import (
    KeyboardMetrics,
    KeyboardMetricsCalculator,
    is_content_key,
    is_correction_key
)


def _down(key, timestamp, question_id=None):
    return KeyboardEvent(KeyEventType.KEY_DOWN, key, timestamp, question_id=question_id)


def _up(key, timestamp, question_id=None):
    return KeyboardEvent(KeyEventType.KEY_UP, key, timestamp, question_id=question_id)


def _keystrokes(keys, start=0.0, gap=200.0, hold=50.0, question_id=None):
    """Key-down/key-up pairs at a fixed gap"""
    events = []
    for index, key in enumerate(keys):
        pressed = start + index * gap
        events.append(_down(key, pressed, question_id))
        events.append(_up(key, pressed + hold, question_id))
    return events


def _keydowns_at(timestamps, key='a'):
    return [_down(key, t) for t in timestamps]


def _calculate(events, **settings):
    return KeyboardMetricsCalculator(EventLog(keyboard_events=events), **settings).calculate()


class TestKeyClassification:
    """Tests for content/correction key helpers"""

    @pytest.mark.parametrize('key', ['a', 'Z', '7', '.', 'Space', 'Enter'])
    def test_content_keys(self, key):
        assert is_content_key(key)

    @pytest.mark.parametrize('key', ['Shift', 'Tab', 'ArrowLeft', 'Backspace'])
    def test_non_content_keys(self, key):
        assert not is_content_key(key)

    def test_correction_keys(self):
        assert is_correction_key('Backspace')
        assert is_correction_key('Delete')
        assert not is_correction_key('a')


class TestSparseInput:
    """Too few events never produce a measurement"""

    def test_two_events_nothing_calculated(self):
        metrics = _calculate([_down('a', 0), _up('a', 80)])

        assert isinstance(metrics, KeyboardMetrics)
        for name, result in metrics.items():
            assert result.calculated is False, name
            assert result.value == 0.0
        assert metrics.typing_speed.sample_size == 2

    def test_empty_log(self):
        metrics = _calculate([])
        assert all(not result.calculated for _, result in metrics.items())

    def test_four_keydowns_no_speed(self):
        metrics = _calculate(_keydowns_at([0, 200, 400, 600]))
        assert metrics.typing_speed.calculated is False
        assert metrics.typing_speed.sample_size == 4
        assert metrics.keyboard_fluency.calculated is False

    def test_below_keydown_floor_counts_all_keydowns(self):
        """Modifiers count toward the reported sample below the floor"""
        events = [_down('Shift', 0), _down('a', 100), _down('Shift', 200), _down('b', 300)]
        metrics = _calculate(events)
        assert metrics.typing_speed.calculated is False
        assert metrics.typing_speed.sample_size == 4


class TestSteadyTyping:
    """Six keystrokes, 200 ms apart, each held 50 ms"""

    @pytest.fixture
    def metrics(self):
        return _calculate(_keystrokes('abcdef'))

    def test_typing_speed(self, metrics):
        assert metrics.typing_speed.calculated is True
        assert metrics.typing_speed.value == pytest.approx(6.0)
        assert metrics.typing_speed.sample_size == 6

    def test_intervals(self, metrics):
        assert metrics.average_inter_key_interval.value == pytest.approx(200.0)
        assert metrics.average_inter_key_interval.sample_size == 5
        assert metrics.typing_rhythm_variability.calculated is True
        assert metrics.typing_rhythm_variability.value == pytest.approx(0.0)

    def test_holds(self, metrics):
        assert metrics.average_key_hold_time.value == pytest.approx(50.0)
        assert metrics.key_press_variability.value == pytest.approx(0.0)

    def test_no_pauses(self, metrics):
        assert metrics.pause_rate.calculated is True
        assert metrics.pause_rate.value == 0.0
        assert metrics.deep_thinking_pause_rate.value == 0.0

    def test_no_corrections(self, metrics):
        assert metrics.correction_rate.calculated is True
        assert metrics.correction_rate.value == 0.0
        assert metrics.immediate_correction_tendency.calculated is False

    def test_fluency_is_maximal(self, metrics):
        assert metrics.keyboard_fluency.calculated is True
        assert metrics.keyboard_fluency.value == pytest.approx(100.0)


class TestTypingSpeed:
    """Tests for typing speed"""

    def test_modifiers_do_not_count(self):
        events = _keydowns_at([0, 250, 500, 750, 1000])
        events[0] = _down('Shift', 0)
        metrics = _calculate(events)
        assert metrics.typing_speed.value == pytest.approx(4.0)
        assert metrics.typing_speed.sample_size == 4

    def test_zero_elapsed_time(self):
        metrics = _calculate(_keydowns_at([100] * 5))
        assert metrics.typing_speed.calculated is False

    def test_only_non_content_keys(self):
        metrics = _calculate([_down('Shift', t) for t in (0, 100, 200, 300, 400)])
        assert metrics.typing_speed.calculated is False
        assert metrics.typing_speed.sample_size == 0


class TestIntervalFiltering:
    """Long gaps are removed before rhythm statistics"""

    def test_long_gap_dropped(self):
        timestamps = [i * 200.0 for i in range(21)]
        timestamps.append(timestamps[-1] + 10000.0)
        metrics = _calculate(_keydowns_at(timestamps))

        assert metrics.average_inter_key_interval.value == pytest.approx(200.0)
        assert metrics.average_inter_key_interval.sample_size == 20

    def test_too_few_intervals(self):
        metrics = _calculate(_keydowns_at([0, 200, 400]))
        assert metrics.average_inter_key_interval.calculated is False
        assert metrics.typing_rhythm_variability.calculated is False
        assert metrics.average_inter_key_interval.sample_size == 2

    def test_rhythm_uses_sample_sd(self):
        """Intervals 100, 200, 300: sample sd 100, mean 200"""
        metrics = _calculate(_keydowns_at([0, 100, 300, 600]))
        assert metrics.typing_rhythm_variability.value == pytest.approx(0.5)


class TestPauses:
    """Tests for pause and deep-thinking pause rates"""

    def test_single_long_pause(self):
        metrics = _calculate(_keydowns_at([0, 200, 400, 600, 800, 6800]))
        assert metrics.pause_rate.value == pytest.approx(0.2)
        assert metrics.deep_thinking_pause_rate.value == pytest.approx(0.2)
        assert metrics.pause_rate.sample_size == 5

    def test_deep_pause_independent_of_dynamic_threshold(self):
        """Uniformly slow typing: no pause relative to the mean, but every gap is deep"""
        metrics = _calculate(_keydowns_at([i * 5500.0 for i in range(6)]))
        assert metrics.pause_rate.value == 0.0
        assert metrics.deep_thinking_pause_rate.value == pytest.approx(1.0)

    def test_threshold_floor(self):
        """Short gaps never count as pauses because of the 1 s floor"""
        metrics = _calculate(_keydowns_at([0, 10, 20, 30, 40, 900]))
        assert metrics.pause_rate.value == 0.0

    def test_needs_five_intervals(self):
        metrics = _calculate(_keydowns_at([0, 200, 400, 600, 800]))
        assert metrics.pause_rate.calculated is False
        assert metrics.deep_thinking_pause_rate.calculated is False


class TestHoldTimes:
    """Tests for key hold statistics"""

    def _held(self, holds):
        events = []
        for index, hold in enumerate(holds):
            key = chr(ord('a') + index)
            events.append(_down(key, index * 1000.0))
            events.append(_up(key, index * 1000.0 + hold))
        return events

    def test_outlier_leaves_too_few_holds(self):
        """500 ms is outside the IQR fence, leaving four holds"""
        metrics = _calculate(self._held([50, 60, 55, 500, 52]))
        assert metrics.average_key_hold_time.calculated is False
        assert metrics.average_key_hold_time.sample_size == 4
        assert metrics.key_press_variability.calculated is False

    def test_outlier_excluded(self):
        metrics = _calculate(self._held([50, 60, 55, 500, 52, 58]))
        assert metrics.average_key_hold_time.calculated is True
        assert metrics.average_key_hold_time.value == pytest.approx(55.0)
        assert metrics.average_key_hold_time.sample_size == 5

    def test_implausible_holds_ignored(self):
        metrics = _calculate(self._held([50, 50, 10, 1500, 50, 50, 50]))
        assert metrics.average_key_hold_time.sample_size == 5
        assert metrics.average_key_hold_time.value == pytest.approx(50.0)

    def test_unmatched_key_up_ignored(self):
        events = self._held([50] * 5) + [_up('z', 9000)]
        metrics = _calculate(events)
        assert metrics.average_key_hold_time.sample_size == 5

    def test_repeated_key_down_restarts_hold(self):
        events = [
            _down('a', 0), _down('a', 30), _up('a', 80),
            _down('b', 1000), _up('b', 1050),
            _down('c', 2000), _up('c', 2050),
            _down('d', 3000), _up('d', 3050),
            _down('e', 4000), _up('e', 4050),
        ]
        metrics = _calculate(events)
        assert metrics.average_key_hold_time.value == pytest.approx(50.0)


class TestCorrections:
    """Tests for correction rate and immediate correction tendency"""

    @pytest.fixture
    def metrics(self):
        keys = ['h', 'e', 'l', 'Backspace', 'l', 'o', 'Backspace', 'Backspace']
        return _calculate([_down(key, i * 200.0) for i, key in enumerate(keys)])

    def test_correction_rate(self, metrics):
        assert metrics.correction_rate.value == pytest.approx(0.6)
        assert metrics.correction_rate.sample_size == 5

    def test_immediate_tendency(self, metrics):
        """The first correction has no predecessor; the other two follow within three keys"""
        assert metrics.immediate_correction_tendency.value == pytest.approx(2 / 3)
        assert metrics.immediate_correction_tendency.sample_size == 3

    def test_corrections_lower_fluency(self, metrics):
        speed = 5 / 1.4
        expected = 100.0 * (0.4 * min(1.0, speed / 5.0) + 0.4 + 0.2 / 1.6)
        assert metrics.keyboard_fluency.value == pytest.approx(expected)
        assert metrics.keyboard_fluency.value < 100.0

    def test_distant_corrections_not_immediate(self):
        keys = ['Backspace', 'a', 'b', 'c', 'd', 'Delete']
        metrics = _calculate([_down(key, i * 200.0) for i, key in enumerate(keys)])
        assert metrics.immediate_correction_tendency.value == 0.0
        assert metrics.correction_rate.value == pytest.approx(0.5)

    def test_too_little_content(self):
        keys = ['a', 'b', 'Backspace', 'Backspace', 'Shift']
        metrics = _calculate([_down(key, i * 200.0) for i, key in enumerate(keys)])
        assert metrics.correction_rate.calculated is False
        assert metrics.immediate_correction_tendency.calculated is False


class TestFluency:
    """Tests for the composite fluency score"""

    def test_in_range(self):
        timestamps = [0, 50, 900, 1000, 3000, 3100, 3150, 8000]
        metrics = _calculate(_keydowns_at(timestamps))
        assert metrics.keyboard_fluency.calculated is True
        assert 0.0 <= metrics.keyboard_fluency.value <= 100.0

    def test_custom_weights(self):
        metrics = _calculate(
            _keystrokes('abcdef'),
            fluency_weights={'speed': 1.0, 'rhythm': 0.0, 'correction': 0.0}
        )
        assert metrics.keyboard_fluency.value == pytest.approx(100.0)

    def test_unknown_weight_rejected(self):
        with pytest.raises(ValueError):
            KeyboardMetricsCalculator(EventLog(), fluency_weights={'accuracy': 0.5})

    def test_weights_over_one_rejected(self):
        with pytest.raises(ValueError):
            KeyboardMetricsCalculator(EventLog(), fluency_weights={'speed': 0.9})


class TestScoping:
    """Tests for per-question keyboard metrics"""

    def test_question_filter(self):
        events = _keystrokes('abcdef', question_id='q1') + _keystrokes('xy', start=5000, question_id='q2')
        calculator = KeyboardMetricsCalculator(EventLog(keyboard_events=events))

        q1 = calculator.calculate('q1')
        q2 = calculator.calculate('q2')
        assert q1.typing_speed.value == pytest.approx(6.0)
        assert q2.typing_speed.calculated is False
        assert calculator.calculate().typing_speed.sample_size == 8

    def test_out_of_order_events(self):
        events = _keystrokes('abcdef')
        assert _calculate(list(reversed(events))) == _calculate(events)

    def test_invalid_hold_range(self):
        with pytest.raises(ValueError):
            KeyboardMetricsCalculator(EventLog(), min_hold_ms=500, max_hold_ms=100)
