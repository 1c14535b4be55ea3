import pytest

from dotpic.timing import MAX_FPS, MIN_FPS, FrameTimer, clamp_fps


def make_timer(clock, fps=10, window=60):
    return FrameTimer(fps, window, clock=clock, sleep=clock.sleep)


def test_clamp_fps():
    assert clamp_fps(0) == MIN_FPS
    assert clamp_fps(-5) == MIN_FPS
    assert clamp_fps(1000) == MAX_FPS
    assert clamp_fps(30) == 30


def test_target_fps_is_clamped(clock):
    assert make_timer(clock, 0).target_fps == 1
    assert make_timer(clock, 1000).target_fps == 240
    timer = make_timer(clock)
    timer.set_target_fps(30)
    assert timer.target_fps == 30
    assert timer.target_frame_time == pytest.approx(1 / 30)


def test_no_frames_yet(clock):
    timer = make_timer(clock)
    assert timer.actual_fps == 0.0
    assert timer.frame_time == 0.0
    assert timer.dropped_frames == 0


def test_sleeps_for_the_rest_of_the_frame(clock):
    timer = make_timer(clock)
    clock.advance(0.03)
    timer.wait_for_next_frame()
    assert clock.sleeps == [pytest.approx(0.07)]
    assert timer.frame_time == pytest.approx(0.1)
    assert timer.dropped_frames == 0


def test_overdue_frame_is_dropped_not_caught_up(clock):
    timer = make_timer(clock)
    clock.advance(0.25)
    timer.wait_for_next_frame()
    assert clock.sleeps == []
    assert timer.dropped_frames == 1
    assert timer.frame_time == pytest.approx(0.25)

    timer.wait_for_next_frame()
    assert clock.sleeps == [pytest.approx(0.1)]
    assert timer.dropped_frames == 1


def test_actual_fps_matches_paced_rate(clock):
    timer = make_timer(clock, 20)
    for _ in range(5):
        clock.advance(0.01)
        timer.wait_for_next_frame()
    assert timer.actual_fps == pytest.approx(20.0)


def test_actual_fps_averages_recent_window(clock):
    timer = make_timer(clock, 10, window=3)
    for _ in range(3):
        timer.wait_for_next_frame()
    for _ in range(3):
        clock.advance(0.5)
        timer.wait_for_next_frame()
    assert timer.actual_fps == pytest.approx(2.0)
    assert timer.dropped_frames == 3


def test_reset(clock):
    timer = make_timer(clock)
    clock.advance(1.0)
    timer.wait_for_next_frame()
    timer.reset()
    assert timer.dropped_frames == 0
    assert timer.actual_fps == 0.0
    timer.wait_for_next_frame()
    assert clock.sleeps == [pytest.approx(0.1)]
