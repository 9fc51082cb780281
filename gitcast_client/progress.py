"""Time-driven progress text and loader frames."""

import time
from typing import Callable, Optional, Sequence

Clock = Callable[[], float]

LOADER_FRAMES = ("git-commit-vertical", "git-branch", "git-merge")
INDEXING_PHRASES = (
    "Indexing your GitHub data",
    "Collecting commits",
    "Following your follows",
    "Merging timelines",
)


class ProgressIndicator:
    """
    Rotating phrase and loader frame derived from elapsed time.

    The indicator owns its start time and reads the clock it was given,
    so the same instant always yields the same frame.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        rotate_seconds: float = 2.0,
        phrases: Sequence[str] = INDEXING_PHRASES,
        frames: Sequence[str] = LOADER_FRAMES,
    ):
        if rotate_seconds <= 0:
            raise ValueError("rotate_seconds must be positive")
        self.clock = clock or time.monotonic
        self.rotate_seconds = rotate_seconds
        self.phrases = tuple(phrases)
        self.frames = tuple(frames)
        self.started_at = self.clock()

    def _step(self) -> int:
        elapsed = max(0.0, self.clock() - self.started_at)
        return int(elapsed // self.rotate_seconds)

    def frame(self) -> str:
        return self.frames[self._step() % len(self.frames)]

    def phrase(self) -> str:
        return self.phrases[self._step() % len(self.phrases)]

    def describe(self, current: int, target: int) -> str:
        """
        Human-readable progress line.

        Args:
            current: Events indexed so far.
            target: Events needed before the feed is shown.
        """
        return f"{self.phrase()}... {current}/{target} events"
