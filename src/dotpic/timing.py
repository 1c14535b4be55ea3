import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)

MIN_FPS = 1
MAX_FPS = 240
DEFAULT_FPS = 60
FRAME_WINDOW_SIZE = 60


def clamp_fps(fps: int) -> int:
    return max(MIN_FPS, min(MAX_FPS, int(fps)))


class FrameTimer:
    """Pace a render loop at a target frame rate and measure the rate achieved.

    ``wait_for_next_frame()`` sleeps until one frame period has passed since
    the previous frame started. An overdue frame returns at once and the next
    period is measured from that moment, so late frames are dropped rather
    than caught up.
    """

    def __init__(
        self,
        target_fps: int = DEFAULT_FPS,
        window: int = FRAME_WINDOW_SIZE,
        *,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._clock = clock
        self._sleep = sleep
        self._frame_times: deque[float] = deque(maxlen=max(1, window))
        self._dropped = 0
        self.set_target_fps(target_fps)
        self._last_frame_start = self._clock()

    @property
    def target_fps(self) -> int:
        return self._target_fps

    @property
    def target_frame_time(self) -> float:
        """Frame period in seconds."""
        return self._frame_duration

    @property
    def frame_time(self) -> float:
        """Duration of the most recent frame in seconds, 0.0 before the first."""
        return self._frame_times[-1] if self._frame_times else 0.0

    @property
    def dropped_frames(self) -> int:
        return self._dropped

    @property
    def actual_fps(self) -> float:
        """Average frame rate over the recent window, 0.0 before the first frame."""
        total = sum(self._frame_times)
        if not self._frame_times or total <= 0:
            return 0.0
        return len(self._frame_times) / total

    def set_target_fps(self, fps: int) -> None:
        self._target_fps = clamp_fps(fps)
        self._frame_duration = 1.0 / self._target_fps

    def wait_for_next_frame(self) -> None:
        deadline = self._last_frame_start + self._frame_duration
        now = self._clock()
        if now < deadline:
            self._sleep(deadline - now)
        elif now > deadline:
            self._dropped += 1
            logger.debug("Frame drop: %.4fs over a %.4fs budget", now - deadline, self._frame_duration)

        start = self._clock()
        self._frame_times.append(start - self._last_frame_start)
        self._last_frame_start = start

    def reset(self) -> None:
        self._frame_times.clear()
        self._dropped = 0
        self._last_frame_start = self._clock()
