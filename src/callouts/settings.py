from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import IO, Any, Dict, Mapping, Optional

import yaml

from .errors import SettingsError

logger = logging.getLogger(__name__)

GLOBAL_COOLDOWN = 3.0
CATEGORY_COOLDOWN = 8.0
DEFAULT_DISPLAY_DURATION = 2.5
FADE_DURATION = 0.5


@dataclass(frozen=True)
class SchedulerSettings:
    """Pacing values for CalloutScheduler, in seconds."""

    global_cooldown: float = GLOBAL_COOLDOWN
    category_cooldown: float = CATEGORY_COOLDOWN
    default_display_duration: float = DEFAULT_DISPLAY_DURATION
    fade_duration: float = FADE_DURATION

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            # nan compares False against everything, so check finiteness first
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise SettingsError(f"{f.name} must be a finite number, got {value}")
        for name in ("global_cooldown", "category_cooldown", "default_display_duration"):
            if getattr(self, name) < 0:
                raise SettingsError(f"{name} must be >= 0, got {getattr(self, name)}")
        # opacity divides by the fade window
        if self.fade_duration <= 0:
            raise SettingsError(f"fade_duration must be > 0, got {self.fade_duration}")

    @staticmethod
    def _as_mapping(raw: Any, source: str) -> Dict[str, Any]:
        if raw is None:
            return {}
        if not isinstance(raw, Mapping):
            raise SettingsError(f"{source} must be a mapping, got {type(raw).__name__}")
        return dict(raw)

    @classmethod
    def _read_file(cls, stream: IO[str], source: str) -> Dict[str, Any]:
        return cls._as_mapping(yaml.safe_load(stream), source)

    @classmethod
    def _overlay(cls, defaults: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
        """Lay user sections over the defaults, key by key inside each section."""
        merged = dict(defaults)
        for section, values in user.items():
            base = defaults.get(section)
            if isinstance(base, Mapping) and isinstance(values, Mapping):
                merged[section] = {**base, **values}
            else:
                merged[section] = values
        return merged

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SchedulerSettings":
        data = cls._as_mapping(data, "settings document")
        section = cls._as_mapping(data.get("scheduler"), "'scheduler' section")
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(section) - known)
        if unknown:
            logger.warning("Ignoring unknown scheduler settings: %s", ", ".join(unknown))
        try:
            values = {k: float(v) for k, v in section.items() if k in known}
        except (TypeError, ValueError) as e:
            raise SettingsError(f"Scheduler settings must be numbers: {e}") from e
        return cls(**values)

    @classmethod
    def load(cls, user_path: Optional[Path] = None) -> "SchedulerSettings":
        """Load settings from packaged defaults and an optional user override file.

        If user_path is provided and exists, its values are laid over the defaults.

        Raises:
            SettingsError: if either document is not a mapping or holds bad values.
            yaml.YAMLError: if a file is not valid YAML.
        """
        try:
            with resources.files("callouts.data").joinpath("default_settings.yaml").open("r", encoding="utf-8") as f:
                default_data = cls._read_file(f, "default_settings.yaml")
        except FileNotFoundError:
            logger.warning("Default scheduler settings not found; falling back to dataclass defaults.")
            default_data = {"scheduler": dataclasses.asdict(SchedulerSettings())}

        user_data: Dict[str, Any] = {}
        if user_path is not None:
            if user_path.exists():
                with user_path.open("r", encoding="utf-8") as f:
                    user_data = cls._read_file(f, str(user_path))
                logger.info("Loaded scheduler settings from %s", user_path)
            else:
                logger.warning("Scheduler settings file not found: %s", user_path)

        settings = cls.from_dict(cls._overlay(default_data, user_data))
        logger.debug("Scheduler settings: %s", settings)
        return settings
