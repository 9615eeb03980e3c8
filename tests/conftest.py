# tests/conftest.py
import os
import sys

import pytest

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

# Deterministic signing secret for every test; set before config is imported.
os.environ.setdefault("AUTOCOMPLETE_SECRET", "test-secret")


@pytest.fixture
def fixed_clock():
    """A controllable clock for signature tests."""
    class _Clock:
        def __init__(self, now: float = 1_700_000_000.0):
            self.now = now

        def __call__(self) -> float:
            return self.now

        def advance(self, seconds: float) -> None:
            self.now += seconds

    return _Clock()
