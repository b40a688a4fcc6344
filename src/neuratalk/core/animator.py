"""
Typewriter reveal of an already complete response.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from neuratalk.models import ASSISTANT_MARKER

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_MS = 30


@dataclass(frozen=True)
class RevealRate:
    chars_per_tick: int = 2
    period_ms: int = DEFAULT_PERIOD_MS

    @classmethod
    def from_speed(cls, animation_speed: float, period_ms: int = DEFAULT_PERIOD_MS) -> "RevealRate":
        """Map the 10..100 speed setting onto a batch size, at least one char per tick."""
        return cls(chars_per_tick=max(1, int(animation_speed) // 10), period_ms=period_ms)


class RevealAnimator:
    """
    Reveals `full_text` a batch of characters per tick.

    Text before the first assistant marker is shown at once; the marker and
    everything after it are animated. The timer task belongs to the reveal that
    started it and is cancelled before any new reveal begins.
    """

    def __init__(
        self,
        rate: RevealRate = RevealRate(),
        on_change: Optional[Callable[[], None]] = None,
        on_finish: Optional[Callable[[], None]] = None,
    ):
        self.rate = rate
        self.on_change = on_change
        self.on_finish = on_finish

        self.full_text = ""
        self.revealed_length = 0
        self.active = False
        self._prefix_len = 0
        self._timer: Optional[asyncio.Task] = None

    @property
    def chars_per_tick(self) -> int:
        return self.rate.chars_per_tick

    @property
    def animated_length(self) -> int:
        return len(self.full_text) - self._prefix_len

    @property
    def display_text(self) -> str:
        end = self._prefix_len + self.revealed_length
        return self.full_text[:end]

    def reveal(self, full_text: str, rate: Optional[RevealRate] = None) -> None:
        self._stop_timer()
        if rate is not None:
            self.rate = rate

        marker_at = full_text.find(ASSISTANT_MARKER)
        self.full_text = full_text
        self._prefix_len = marker_at if marker_at >= 0 else 0
        self.revealed_length = 0
        self.active = True
        self._notify_change()

        if self.animated_length <= 0:
            self._finish()
            return
        self._start_timer()

    def tick(self) -> bool:
        """Advance one batch. Returns whether the visible text changed."""
        if not self.active:
            return False

        self.revealed_length = min(self.revealed_length + self.rate.chars_per_tick, self.animated_length)
        self._notify_change()
        if self.revealed_length >= self.animated_length:
            self._stop_timer()
            self._finish()
        return True

    def skip(self) -> None:
        if not self.active:
            return
        self._stop_timer()
        changed = self.revealed_length != self.animated_length
        self.revealed_length = self.animated_length
        if changed:
            self._notify_change()
        self._finish()

    def set_rate(self, chars_per_tick: int, period_ms: int) -> None:
        self.rate = RevealRate(chars_per_tick=max(1, chars_per_tick), period_ms=period_ms)
        if self.active:
            self._stop_timer()
            self._start_timer()

    async def wait(self) -> None:
        """Wait until the current reveal is no longer active."""
        while self.active:
            timer = self._timer
            if timer is None:
                # Manually ticked reveal; poll.
                await asyncio.sleep(self.rate.period_ms / 1000)
                continue
            # asyncio.wait neither raises when the timer is cancelled by
            # skip/reveal nor cancels the timer when we are.
            await asyncio.wait({timer})

    def _start_timer(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop, e.g. driven by hand via tick().
            self._timer = None
            return
        self._timer = loop.create_task(self._run(self.rate.period_ms / 1000))

    def _stop_timer(self) -> None:
        timer, self._timer = self._timer, None
        if timer is None or timer.done():
            return
        # A tick that finishes the reveal runs inside the timer itself.
        if timer is not asyncio.current_task(timer.get_loop()):
            timer.cancel()

    async def _run(self, period: float) -> None:
        while self.active:
            await asyncio.sleep(period)
            self.tick()

    def _finish(self) -> None:
        self.active = False
        if self.on_finish:
            self.on_finish()

    def _notify_change(self) -> None:
        if self.on_change:
            self.on_change()
