from __future__ import annotations

import pytest


class ScriptedRng:
    """Random source that replays fixed draws so tests can force each branch."""

    def __init__(self, randoms=(), ints=()) -> None:
        self.randoms = list(randoms)
        self.ints = list(ints)

    def random(self) -> float:
        return self.randoms.pop(0)

    def randint(self, a: int, b: int) -> int:
        value = self.ints.pop(0)
        assert a <= value <= b, f"scripted {value} outside randint({a}, {b})"
        return value

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def scripted_rng():
    return ScriptedRng
