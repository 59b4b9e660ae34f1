from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Tuple

from .errors import InvalidDeltaError, UnknownPriorityError
from .models import PRIORITY_ORDER, ActiveCallout, CalloutDisplay, CalloutMessage, CalloutPriority
from .settings import (
    CATEGORY_COOLDOWN,
    DEFAULT_DISPLAY_DURATION,
    FADE_DURATION,
    GLOBAL_COOLDOWN,
    SchedulerSettings,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CalloutScheduler",
    "GLOBAL_COOLDOWN",
    "CATEGORY_COOLDOWN",
    "DEFAULT_DISPLAY_DURATION",
    "FADE_DURATION",
]


class CalloutScheduler:
    """Decides which callout is on screen, one tick at a time.

    Producers call enqueue() whenever something worth saying happens. The host
    calls advance(dt) exactly once per frame and then get_current_display() to
    find out what to draw.

    Pacing works through two gates:
      - a global cooldown that blocks every promotion for a short while after one happens;
      - a per-category cooldown that blocks repeats of the same category for longer,
        so a different category can interleave sooner.

    Categories are always tried in PRIORITY_ORDER; within a category the oldest
    pending message goes first. Not thread safe: advance() needs a single owner.
    """

    def __init__(self, settings: Optional[SchedulerSettings] = None) -> None:
        self.settings = settings or SchedulerSettings()
        self._pending: List[CalloutMessage] = []
        self._active: Optional[ActiveCallout] = None
        self._global_cooldown: float = 0.0
        self._category_cooldowns: Dict[CalloutPriority, float] = {}

    # --- producer side -------------------------------------------------

    def enqueue(self, message: CalloutMessage) -> None:
        """Append a message to the tail of the pending queue.

        Raises:
            UnknownPriorityError: if the message priority is not a CalloutPriority.
        """
        if not isinstance(message.priority, CalloutPriority):
            raise UnknownPriorityError(f"Unknown callout priority: {message.priority!r}")
        self._pending.append(message)

    # --- tick ------------------------------------------------------------

    def advance(self, dt: float) -> Optional[CalloutMessage]:
        """Advance all timers by dt seconds and promote a callout if the slot is free.

        Args:
            dt: Elapsed seconds since the previous tick. Must be finite and >= 0.

        Returns:
            The message promoted during this tick, or None.

        Raises:
            InvalidDeltaError: if dt is negative or not finite. State is left untouched.
        """
        if not math.isfinite(dt) or dt < 0:
            raise InvalidDeltaError(f"advance() needs a finite dt >= 0, got {dt!r}")

        self._global_cooldown = max(0.0, self._global_cooldown - dt)
        for priority, remaining in self._category_cooldowns.items():
            self._category_cooldowns[priority] = max(0.0, remaining - dt)

        if self._active is not None:
            self._active.remaining -= dt
            if self._active.expired:
                logger.debug("Callout expired: [%s] %s", self._active.message.priority.name, self._active.message.text)
                self._active = None

        if self._active is not None:
            return None

        promoted = self._try_dequeue()
        if promoted is None:
            return None

        duration = promoted.effective_duration(self.settings.default_display_duration)
        self._active = ActiveCallout(
            message=promoted,
            remaining=duration + self.settings.fade_duration,
            fade_window=self.settings.fade_duration,
        )
        self._global_cooldown = self.settings.global_cooldown
        self._category_cooldowns[promoted.priority] = self.settings.category_cooldown
        logger.debug(
            "Promoted callout [%s] from %s (%.2fs, %d pending)",
            promoted.priority.name,
            promoted.speaker,
            duration,
            len(self._pending),
        )
        return promoted

    def _try_dequeue(self) -> Optional[CalloutMessage]:
        if self._global_cooldown > 0:
            return None
        for priority in PRIORITY_ORDER:
            if self._category_cooldowns.get(priority, 0.0) > 0:
                continue
            # An eligible category with nothing queued falls through to the next one.
            for idx, message in enumerate(self._pending):
                if message.priority is priority:
                    return self._pending.pop(idx)
        return None

    # --- presentation side -----------------------------------------------

    def get_current_display(self) -> Optional[CalloutDisplay]:
        if self._active is None:
            return None
        return CalloutDisplay(message=self._active.message, opacity=self._active.opacity())

    # --- introspection / teardown ------------------------------------------

    @property
    def pending(self) -> Tuple[CalloutMessage, ...]:
        return tuple(self._pending)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def active(self) -> Optional[ActiveCallout]:
        return self._active

    @property
    def global_cooldown(self) -> float:
        return self._global_cooldown

    def category_cooldown(self, priority: CalloutPriority) -> float:
        return self._category_cooldowns.get(priority, 0.0)

    @property
    def is_idle(self) -> bool:
        """True when nothing is shown and nothing is waiting."""
        return self._active is None and not self._pending

    def clear(self) -> None:
        """Drop every pending and active callout and reset all cooldowns."""
        if self._pending or self._active is not None:
            logger.debug("Clearing callouts (%d pending, active=%s)", len(self._pending), self._active is not None)
        self._pending.clear()
        self._active = None
        self._global_cooldown = 0.0
        self._category_cooldowns.clear()
