import pytest

from medintake.intake import ProgressTracker


@pytest.mark.parametrize(
    "step, expected",
    [(1, 0), (2, 25), (3, 50), (4, 75), (5, 100)],
)
def test_four_step_progress(step, expected):
    assert ProgressTracker(4).progress(step) == expected


def test_three_step_progress_rounds():
    tracker = ProgressTracker(3)
    assert [tracker.progress(s) for s in (1, 2, 3, 4)] == [0, 33, 67, 100]


def test_halves_round_up():
    # 1/8 of 100 is 12.5
    assert ProgressTracker(8).progress(2) == 13


def test_only_completed_step_reaches_100():
    tracker = ProgressTracker(4)
    for step in range(1, 5):
        assert tracker.progress(step) < 100
        assert tracker.is_complete(step) is False
    assert tracker.is_complete(5) is True


def test_single_step_flow():
    tracker = ProgressTracker(1)
    assert tracker.progress(1) == 0
    assert tracker.progress(2) == 100


def test_display_step_is_clamped():
    tracker = ProgressTracker(4)
    assert tracker.display_step(3) == 3
    assert tracker.display_step(5) == 4


@pytest.mark.parametrize("step", [0, 6, -1])
def test_out_of_range_steps_raise(step):
    with pytest.raises(ValueError):
        ProgressTracker(4).progress(step)


def test_needs_at_least_one_step():
    with pytest.raises(ValueError):
        ProgressTracker(0)
