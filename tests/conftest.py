from pathlib import Path

import pytest

from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


class ManualTimer:
    """TimerPort that only fires when a test asks it to."""

    def __init__(self) -> None:
        self.callbacks: dict[int, object] = {}
        self._next = 0

    def set_interval(self, callback, interval_seconds: float) -> int:
        self._next += 1
        self.callbacks[self._next] = callback
        return self._next

    def clear_interval(self, handle: int) -> None:
        self.callbacks.pop(handle, None)

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            for callback in list(self.callbacks.values()):
                callback()


@pytest.fixture
def rules_path() -> Path:
    path = PROJECT_ROOT / "rules.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Rules not found at {path}")
    return path


@pytest.fixture
def rules(rules_path: Path) -> Rules:
    """The REAL rules from the project root."""
    return load_rules(rules_path)


@pytest.fixture
def manual_timer() -> ManualTimer:
    return ManualTimer()
