import logging

import pytest

from well_tracker import (
    InputId,
    InputKind,
    InputPoint,
    WellListener,
    WellTracker,
    resolve_input_id,
    strength_for,
)


class RecordingListener(WellListener):
    def __init__(self):
        self.updated = []
        self.removed = []

    def on_well_updated(self, well_id, state):
        self.updated.append((well_id, state))

    def on_well_removed(self, well_id, last_state):
        self.removed.append((well_id, last_state))


class BrokenListener(WellListener):
    def on_well_updated(self, well_id, state):
        raise RuntimeError("audio device gone")


def _touches(count, pressure=None):
    return [InputPoint(id=i, x=10.0 * i, y=5.0 * i, pressure=pressure) for i in range(count)]


@pytest.mark.parametrize("duration, pressure, expected", [
    (0.0, 0.0, 2.0),
    (0.0, None, 2.0),
    (2.0, 0.0, 6.0),
    (1.6, 0.0, 6.0),
    (0.8, 0.0, 4.0),
    (0.0, 1.0, 5.0),
    (10.0, 1.0, 9.0),
    (-3.0, 0.0, 2.0),
    (0.0, 7.0, 5.0),
])
def test_strength_formula(duration, pressure, expected):
    assert strength_for(duration, pressure) == pytest.approx(expected)


def test_input_id_equality():
    assert InputId.touch(3) == InputId.touch(3)
    assert InputId.touch(3) != InputId.touch(4)
    assert InputId.synthetic(3.0, 4.0, 0) != InputId.touch(3)
    assert InputId.POINTER == InputId(InputKind.POINTER)
    assert InputId.POINTER != InputId.touch(0)
    assert len({InputId.touch(1), InputId.touch(1), InputId.POINTER}) == 2


def test_missing_id_resolves_to_synthetic():
    point = InputPoint(id=None, x=12.5, y=7.0)
    resolved = resolve_input_id(point, 2)
    assert resolved.kind is InputKind.SYNTHETIC
    assert resolved == InputId.synthetic(12.5, 7.0, 2)


def test_strength_grows_with_recorded_press_duration(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    tid = InputId.touch(1)
    tracker.begin_input(tid)
    fake_clock.advance(2.0)
    tracker.reconcile([InputPoint(id=1, x=100.0, y=50.0)])

    well = tracker.current_wells()[tid]
    assert well.strength == pytest.approx(6.0)
    assert well.start_time == pytest.approx(10.0)


def test_unrecorded_input_has_zero_duration(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    tracker.reconcile([InputPoint(id=1, x=0.0, y=0.0, pressure=1.0)])
    well = tracker.current_wells()[InputId.touch(1)]
    assert well.strength == pytest.approx(5.0)
    assert well.start_time == pytest.approx(fake_clock())


def test_begin_input_is_idempotent(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    tid = InputId.touch(7)
    tracker.begin_input(tid)
    fake_clock.advance(1.0)
    tracker.begin_input(tid)
    assert tracker.start_time_of(tid) == pytest.approx(10.0)


def test_cap_keeps_first_inputs_in_enumeration_order(fake_clock):
    tracker = WellTracker({"max_wells": 6}, clock=fake_clock)
    tracker.reconcile(_touches(10))
    wells = tracker.current_wells()
    assert len(wells) == 6
    assert set(wells) == {InputId.touch(i) for i in range(6)}


def test_cap_evicts_existing_well_pushed_past_the_limit(fake_clock):
    listener = RecordingListener()
    tracker = WellTracker({"max_wells": 2}, clock=fake_clock, listeners=[listener])
    tracker.reconcile([InputPoint(id=5, x=1.0, y=1.0)])
    tracker.reconcile([InputPoint(id=1, x=0.0, y=0.0), InputPoint(id=2, x=0.0, y=0.0), InputPoint(id=5, x=1.0, y=1.0)])
    assert InputId.touch(5) not in tracker.current_wells()
    assert [well_id for well_id, _ in listener.removed] == [InputId.touch(5)]


def test_absent_input_is_removed_after_one_pass(fake_clock):
    listener = RecordingListener()
    tracker = WellTracker(clock=fake_clock, listeners=[listener])
    tracker.reconcile(_touches(2))
    removed = tracker.reconcile([InputPoint(id=0, x=0.0, y=0.0)])

    assert InputId.touch(1) not in tracker.current_wells()
    assert [w.id for w in removed] == [InputId.touch(1)]
    well_id, last_state = listener.removed[0]
    assert well_id == InputId.touch(1)
    assert (last_state.x, last_state.y) == (10.0, 5.0)


def test_existing_well_is_updated_in_place(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    tid = InputId.touch(4)
    tracker.begin_input(tid)
    tracker.reconcile([InputPoint(id=4, x=1.0, y=2.0)])
    first = tracker.current_wells()[tid]

    fake_clock.advance(0.4)
    tracker.reconcile([InputPoint(id=4, x=30.0, y=40.0)])
    second = tracker.current_wells()[tid]

    assert second is first
    assert (second.x, second.y) == (30.0, 40.0)
    assert second.strength == pytest.approx(3.0)


def test_end_input_keeps_well_until_next_reconcile(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    tid = InputId.touch(1)
    tracker.begin_input(tid)
    tracker.reconcile([InputPoint(id=1, x=0.0, y=0.0)])
    tracker.end_input(tid)

    assert tid in tracker.current_wells()
    assert tracker.start_time_of(tid) is None
    tracker.reconcile([])
    assert tid not in tracker.current_wells()


def test_current_wells_is_read_only(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    with pytest.raises(TypeError):
        tracker.current_wells()[InputId.touch(1)] = None


def test_listener_receives_copies(fake_clock):
    listener = RecordingListener()
    tracker = WellTracker(clock=fake_clock, listeners=[listener])
    tracker.reconcile([InputPoint(id=1, x=0.0, y=0.0)])
    _, state = listener.updated[0]
    state.strength = 99.0
    assert tracker.current_wells()[InputId.touch(1)].strength == pytest.approx(2.0)


def test_pointer_well_has_fixed_strength(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    tracker.begin_input(InputId.POINTER)
    tracker.update_pointer(True, 200.0, 100.0)
    fake_clock.advance(5.0)
    well = tracker.update_pointer(True, 210.0, 90.0)

    assert well.strength == pytest.approx(3.0)
    assert (well.x, well.y) == (210.0, 90.0)
    assert well.start_time == pytest.approx(10.0)


def test_pointer_release_removes_well_immediately(fake_clock):
    listener = RecordingListener()
    tracker = WellTracker(clock=fake_clock, listeners=[listener])
    tracker.update_pointer(True, 5.0, 5.0)
    tracker.update_pointer(False, 5.0, 5.0)
    assert InputId.POINTER not in tracker.current_wells()
    assert [well_id for well_id, _ in listener.removed] == [InputId.POINTER]


def test_pointer_well_survives_empty_reconcile_but_yields_to_touch(fake_clock):
    tracker = WellTracker(clock=fake_clock)
    tracker.update_pointer(True, 5.0, 5.0)
    tracker.reconcile([])
    assert InputId.POINTER in tracker.current_wells()

    tracker.reconcile([InputPoint(id=1, x=0.0, y=0.0)])
    assert InputId.POINTER not in tracker.current_wells()
    assert tracker.update_pointer(True, 5.0, 5.0) is None
    assert list(tracker.current_wells()) == [InputId.touch(1)]


def test_failing_listener_does_not_break_tracking(fake_clock, caplog):
    recorder = RecordingListener()
    tracker = WellTracker(clock=fake_clock, listeners=[BrokenListener(), recorder])
    with caplog.at_level(logging.WARNING, logger="gravity_sandbox"):
        tracker.reconcile([InputPoint(id=1, x=0.0, y=0.0)])
    assert InputId.touch(1) in tracker.current_wells()
    assert len(recorder.updated) == 1
    assert "failed on update" in caplog.text


def test_invalid_max_wells_is_rejected():
    with pytest.raises(ValueError):
        WellTracker({"max_wells": 0})
