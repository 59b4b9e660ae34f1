from __future__ import annotations


class CalloutError(Exception):
    """Base error for callout scheduling exceptions."""


class InvalidDeltaError(CalloutError, ValueError):
    """Raised when advance() receives a negative or non-finite time delta."""


class UnknownPriorityError(CalloutError, ValueError):
    """Raised when a priority value does not name one of the four categories."""


class UnknownSpeakerError(CalloutError, KeyError):
    """Raised when no line bank exists for a speaker."""


class SettingsError(CalloutError, ValueError):
    """Raised when scheduler settings are out of range."""
