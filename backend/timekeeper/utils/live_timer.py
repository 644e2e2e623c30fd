from typing import Any, Mapping, Optional

from timekeeper.config import settings


def format_duration(seconds: int) -> str:
    minutes = max(int(seconds), 0) // 60
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


class LiveTimerDisplay:
    """
    Display-only counter for a running timer.

    Seeded from the `GET /timers/active` snapshot and advanced locally between
    polls. It never reports anything back to the server; after a reconnect,
    reload or visible drift the caller must `sync` again, which discards all
    local progress.
    """

    def __init__(self, tick_seconds: Optional[int] = None):
        if tick_seconds is None:
            tick_seconds = settings.LIVE_TIMER_TICK_SECONDS
        if tick_seconds <= 0:
            raise ValueError("tick_seconds must be positive")
        self.tick_seconds = tick_seconds
        self.timer_id: Optional[int] = None
        self.is_ticking = False
        self._seed_seconds = 0
        self._ticks = 0

    @property
    def seconds(self) -> int:
        return self._seed_seconds + self._ticks * self.tick_seconds

    def sync(self, snapshot: Optional[Mapping[str, Any]]) -> None:
        self._ticks = 0
        if not snapshot:
            self.timer_id = None
            self.is_ticking = False
            self._seed_seconds = 0
            return

        self.timer_id = snapshot.get("id")
        self._seed_seconds = int(
            snapshot.get("current_effective_duration_seconds",
                         snapshot.get("effective_duration_seconds", 0)) or 0
        )
        closed = snapshot.get("end_time") is not None
        self.is_ticking = not closed and not snapshot.get("is_paused", False)

    def tick(self) -> int:
        if self.is_ticking:
            self._ticks += 1
        return self.seconds

    def stop(self) -> None:
        self.is_ticking = False

    def drifted(self, server_seconds: int, tolerance_seconds: Optional[int] = None) -> bool:
        tolerance = self.tick_seconds if tolerance_seconds is None else tolerance_seconds
        return abs(self.seconds - int(server_seconds)) > tolerance

    def format(self) -> str:
        return format_duration(self.seconds)
