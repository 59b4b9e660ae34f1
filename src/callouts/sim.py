from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, field_validator

from .models import CalloutMessage, CalloutPriority
from .scheduler import CalloutScheduler

logger = logging.getLogger(__name__)

STEP_EPSILON = 1e-9


class ScriptedCallout(BaseModel):
    """A callout the script enqueues once simulated time reaches `at`."""

    at: float = Field(0.0, ge=0, description="Simulated second at which the callout is enqueued")
    priority: CalloutPriority = Field(..., description="One of CRITICAL, TACTICAL, REACTION, FLAVOR")
    text: str = Field(..., description="Callout line")
    speaker: str = Field("partner", description="Speaker identifier")
    duration: float = Field(0.0, description="Display seconds; <= 0 uses the scheduler default")

    @field_validator("priority", mode="before")
    @classmethod
    def parse_priority(cls, v: object) -> CalloutPriority:
        # UnknownPriorityError is a ValueError, so pydantic reports it as a validation error
        return CalloutPriority.parse(v)

    def to_message(self) -> CalloutMessage:
        return CalloutMessage(priority=self.priority, text=self.text, speaker=self.speaker, duration=self.duration)


class TimelineScript(BaseModel):
    """A scripted stream of callouts replayed against a scheduler."""

    dt: float = Field(1.0 / 60.0, gt=0, description="Fixed tick length in seconds")
    duration: float = Field(..., ge=0, description="Total simulated seconds")
    callouts: List[ScriptedCallout] = Field(default_factory=list)


def load_script(path: Path) -> TimelineScript:
    """Read a YAML timeline script."""
    if not path.exists():
        raise FileNotFoundError(f"Timeline script not found: {path}")
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    script = TimelineScript.model_validate(raw)
    logger.info("Loaded timeline %s (%d callouts, %.2fs)", path, len(script.callouts), script.duration)
    return script


def due_step(at: float, dt: float) -> int:
    """Index of the first tick whose start time (step * dt) is at or after `at`."""
    # at=0.3, dt=0.1 gives 2.9999999999999996; the tolerance keeps it on step 3
    return max(0, math.ceil(at / dt - STEP_EPSILON))


@dataclass(frozen=True)
class TimelineFrame:
    """What was on screen at the end of one tick."""

    t: float
    text: str
    speaker: str
    priority: str
    opacity: float


class CalloutSimulation:
    """Headless fixed-step replay of a TimelineScript.

    Each tick enqueues the callouts that are due, advances the scheduler by the
    script's dt and records the display state. Each `at` is converted once to
    the first step whose start time reaches it, so float error in step * dt
    never delays a callout by a tick.
    """

    def __init__(self, script: TimelineScript, scheduler: Optional[CalloutScheduler] = None) -> None:
        self.script = script
        self.scheduler = scheduler or CalloutScheduler()
        self.frames: List[TimelineFrame] = []
        self.promotions: List[Tuple[float, CalloutMessage]] = []
        # sorted() is stable, so equal `at` keeps script order
        self._due: List[Tuple[int, ScriptedCallout]] = sorted(
            ((due_step(c.at, script.dt), c) for c in script.callouts), key=lambda item: item[0]
        )
        self._step = 0

    @property
    def steps(self) -> int:
        return int(round(self.script.duration / self.script.dt))

    def tick(self) -> None:
        dt = self.script.dt
        while self._due and self._due[0][0] <= self._step:
            self.scheduler.enqueue(self._due.pop(0)[1].to_message())

        promoted = self.scheduler.advance(dt)
        self._step += 1
        t = self._step * dt
        if promoted is not None:
            self.promotions.append((t, promoted))
            logger.debug("t=%.3f promoted [%s] %s", t, promoted.priority.name, promoted.text)

        display = self.scheduler.get_current_display()
        if display is not None:
            self.frames.append(
                TimelineFrame(
                    t=t,
                    text=display.message.text,
                    speaker=display.message.speaker,
                    priority=display.message.priority.name,
                    opacity=display.opacity,
                )
            )

    def run(self) -> List[TimelineFrame]:
        for _ in range(self.steps - self._step):
            self.tick()
        logger.info(
            "Simulation complete (steps=%d, promotions=%d, still pending=%d)",
            self._step,
            len(self.promotions),
            self.scheduler.pending_count,
        )
        return self.frames

    def summary(self) -> dict:
        return {
            "steps": self._step,
            "dt": self.script.dt,
            "promotions": [
                {"t": round(t, 4), "priority": m.priority.name, "speaker": m.speaker, "text": m.text}
                for t, m in self.promotions
            ],
            "frames_displayed": len(self.frames),
            "never_shown": [m.text for m in self.scheduler.pending] + [c.text for _, c in self._due],
        }
