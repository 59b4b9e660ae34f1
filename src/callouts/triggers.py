from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from importlib import resources
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence

import yaml

from .errors import UnknownSpeakerError
from .models import CalloutMessage, CalloutPriority

logger = logging.getLogger(__name__)

DISPLAY_DURATION = 2.5
BASE_DANGER_RATIO = 0.3
HEAVY_WATT_COST = 150
COMBO_WINDOW = 3.0
KILL_STREAK_WINDOW = 5.0
KILL_STREAK_LENGTH = 3
DEAD_STATE = "dead"

LineBank = Mapping[str, Mapping[str, object]]


class EnemyUnit(Protocol):
    state: str
    watt_cost: float


def is_alive(unit: EnemyUnit) -> bool:
    """A unit counts as alive until its state is "dead"."""
    return unit.state != DEAD_STATE


@dataclass
class CalloutTriggerState:
    """Per-battle memory the triggers need between checks."""

    last_kill_time: float = -999.0
    kill_count: int = 0
    battle_started: bool = False
    last_player_skill_time: float = -999.0
    last_player_skill_name: Optional[str] = None


def load_line_bank(text: Optional[str] = None) -> Dict[str, Dict[str, object]]:
    """Load speaker lines from YAML text, or from the packaged callout_lines.yaml."""
    if text is None:
        text = resources.files("callouts.data").joinpath("callout_lines.yaml").read_text(encoding="utf-8")
        logger.debug("Loaded embedded callout line bank")
    raw = yaml.safe_load(text) or {}
    return {str(speaker): dict(kinds or {}) for speaker, kinds in raw.items()}


class CalloutTriggers:
    """Turns battle situations into CalloutMessages for a partner speaker.

    Each check returns a message to enqueue, or None when nothing is worth saying.
    The line for a message is picked at random from the speaker's bank; pass a
    seeded random.Random for deterministic output.
    """

    def __init__(self, lines: Optional[LineBank] = None, rng: Optional[random.Random] = None) -> None:
        self.lines = lines if lines is not None else load_line_bank()
        self.rng = rng or random.Random()

    @property
    def speakers(self) -> List[str]:
        return sorted(self.lines)

    def _bank(self, speaker: str) -> Mapping[str, object]:
        try:
            return self.lines[speaker]
        except KeyError:
            raise UnknownSpeakerError(speaker) from None

    def _pick(self, options: Sequence[str]) -> str:
        return options[self.rng.randrange(len(options))]

    def _message(self, speaker: str, priority: CalloutPriority, kind: str) -> Optional[CalloutMessage]:
        options = self._bank(speaker).get(kind) or []
        if not options:
            logger.debug("No %s lines for speaker %s", kind, speaker)
            return None
        return CalloutMessage(priority=priority, text=self._pick(options), speaker=speaker, duration=DISPLAY_DURATION)

    # --- checks ------------------------------------------------------------

    def check_base_danger(self, speaker: str, base_hp: float, base_max_hp: float) -> Optional[CalloutMessage]:
        if base_max_hp > 0 and base_hp / base_max_hp < BASE_DANGER_RATIO:
            return self._message(speaker, CalloutPriority.CRITICAL, "base_danger")
        return None

    def check_heavy_enemy(self, speaker: str, enemy_units: Iterable[EnemyUnit]) -> Optional[CalloutMessage]:
        if any(is_alive(u) and u.watt_cost > HEAVY_WATT_COST for u in enemy_units):
            return self._message(speaker, CalloutPriority.TACTICAL, "heavy_enemy")
        return None

    def check_skill_announce(self, speaker: str, skill_name: str) -> Optional[CalloutMessage]:
        skills = self._bank(speaker).get("skill_announce") or {}
        options = skills.get(skill_name) if isinstance(skills, Mapping) else None
        if not options:
            return None
        return CalloutMessage(
            priority=CalloutPriority.TACTICAL,
            text=self._pick(options),
            speaker=speaker,
            duration=DISPLAY_DURATION,
        )

    def check_combo_reaction(
        self, speaker: str, state: CalloutTriggerState, current_time: float
    ) -> Optional[CalloutMessage]:
        if state.last_player_skill_name and current_time - state.last_player_skill_time < COMBO_WINDOW:
            return self._message(speaker, CalloutPriority.REACTION, "combo_reaction")
        return None

    def check_kill_streak(
        self, speaker: str, state: CalloutTriggerState, current_time: float, new_kill: bool
    ) -> Optional[CalloutMessage]:
        """Count kills that land within KILL_STREAK_WINDOW of each other.

        The third kill in a row resets the counter and yields a FLAVOR callout.
        """
        if new_kill:
            if current_time - state.last_kill_time < KILL_STREAK_WINDOW:
                state.kill_count += 1
            else:
                state.kill_count = 1
            state.last_kill_time = current_time
        if state.kill_count >= KILL_STREAK_LENGTH:
            state.kill_count = 0
            return self._message(speaker, CalloutPriority.FLAVOR, "kill_streak")
        return None

    def battle_start(self, speaker: str, state: Optional[CalloutTriggerState] = None) -> Optional[CalloutMessage]:
        if state is not None:
            state.battle_started = True
        return self._message(speaker, CalloutPriority.FLAVOR, "battle_start")

    def battle_end(self, speaker: str, won: bool) -> Optional[CalloutMessage]:
        return self._message(speaker, CalloutPriority.FLAVOR, "battle_win" if won else "battle_lose")


def record_player_skill(state: CalloutTriggerState, skill_name: str, current_time: float) -> None:
    state.last_player_skill_time = current_time
    state.last_player_skill_name = skill_name
