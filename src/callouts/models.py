from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Tuple

from .errors import UnknownPriorityError


class CalloutPriority(Enum):
    """The four fixed callout categories.

    Ranking is defined by PRIORITY_ORDER below, never by member values.
    """

    CRITICAL = "critical"
    TACTICAL = "tactical"
    REACTION = "reaction"
    FLAVOR = "flavor"

    @property
    def rank(self) -> int:
        """0 is the most important category."""
        return _RANK[self]

    @classmethod
    def parse(cls, value: Any) -> "CalloutPriority":
        """Convert loosely typed input (member, name or value, any case) to a member.

        Raises:
            UnknownPriorityError: if value does not name a category.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            for member in cls:
                if key.upper() == member.name or key.lower() == member.value:
                    return member
        raise UnknownPriorityError(f"Unknown callout priority: {value!r}")


# Highest first. Promotion scans categories in exactly this order.
PRIORITY_ORDER: Tuple[CalloutPriority, ...] = (
    CalloutPriority.CRITICAL,
    CalloutPriority.TACTICAL,
    CalloutPriority.REACTION,
    CalloutPriority.FLAVOR,
)

_RANK: Dict[CalloutPriority, int] = {p: i for i, p in enumerate(PRIORITY_ORDER)}


@dataclass(frozen=True)
class CalloutMessage:
    """A single callout produced by game logic.

    Attributes:
        priority: Category used for ranking and cooldowns. Strings are accepted and parsed.
        text: Line to show.
        speaker: Identifier of who says it (used by presentation for color/portrait).
        duration: Display seconds before the fade starts. 0 or negative means default.
    """

    priority: CalloutPriority
    text: str
    speaker: str
    duration: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.priority, CalloutPriority):
            object.__setattr__(self, "priority", CalloutPriority.parse(self.priority))

    def effective_duration(self, default: float) -> float:
        return self.duration if self.duration > 0 else default


@dataclass
class ActiveCallout:
    """The callout currently occupying the display slot."""

    message: CalloutMessage
    remaining: float
    fade_window: float

    @property
    def expired(self) -> bool:
        return self.remaining <= 0

    def opacity(self) -> float:
        if self.remaining > self.fade_window:
            return 1.0
        return max(0.0, self.remaining / self.fade_window)


@dataclass(frozen=True)
class CalloutDisplay:
    """What the presentation layer should draw this frame."""

    message: CalloutMessage
    opacity: float
