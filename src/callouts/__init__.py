"""
Callout scheduling for short-lived partner notifications.

Game logic produces CalloutMessages (directly or through callouts.triggers) and
enqueues them; the frame loop advances a CalloutScheduler once per tick and
asks it what to draw. Rendering stays outside this package.
"""
from importlib.metadata import PackageNotFoundError, version

from .errors import (
    CalloutError,
    InvalidDeltaError,
    SettingsError,
    UnknownPriorityError,
    UnknownSpeakerError,
)
from .models import PRIORITY_ORDER, ActiveCallout, CalloutDisplay, CalloutMessage, CalloutPriority
from .scheduler import CalloutScheduler
from .settings import SchedulerSettings

try:
    __version__ = version("callout-scheduler")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "ActiveCallout",
    "CalloutDisplay",
    "CalloutMessage",
    "CalloutPriority",
    "CalloutScheduler",
    "PRIORITY_ORDER",
    "SchedulerSettings",
    "CalloutError",
    "InvalidDeltaError",
    "SettingsError",
    "UnknownPriorityError",
    "UnknownSpeakerError",
]
