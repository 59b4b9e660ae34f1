import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from callouts.models import CalloutMessage, CalloutPriority  # noqa: E402


@pytest.fixture()
def make_callout():
    def _make(text: str = "Test callout!", priority=CalloutPriority.TACTICAL, duration: float = 2.5, speaker: str = "vanguard"):
        return CalloutMessage(priority=priority, text=text, speaker=speaker, duration=duration)

    return _make
