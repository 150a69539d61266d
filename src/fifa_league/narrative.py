from __future__ import annotations

import random

SCORED_PHRASES = [
    "Perfect placement! The keeper dove the wrong way.",
    "Rocket into the top corner! Unstoppable!",
    "Cool as ice, slots it down the middle.",
    "Keeper guessed right but couldn't reach it!",
    "Powerful shot finds the bottom corner.",
    "Cheeky panenka! The keeper looks foolish.",
    "Side-footed perfectly into the corner.",
    "Thunderbolt into the roof of the net!",
]

MISSED_PHRASES = [
    "Blazed it over the bar! Pressure got to them.",
    "Keeper made a brilliant save!",
    "Hit the post! So close but no goal.",
    "Weak effort, easily saved by the keeper.",
    "Skied it into the stands! Terrible penalty.",
    "Keeper dived the right way and palmed it away.",
    "Hit the crossbar and bounced out!",
    "Scuffed the shot completely wide of the goal.",
    "Keeper stayed in the middle and caught it!",
]


def describe_attempt(scored: bool, call: str, outcome: str, rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    phrase = rng.choice(SCORED_PHRASES if scored else MISSED_PHRASES)
    return f"Called {call}, coin showed {outcome}. {phrase}"
