"""Penalty shootout resolution.

Each kick is a coin-flip call: the kicker calls heads or tails, the coin is
flipped and the kick scores when the call matches. Contestant one always kicks
first in a round. Regulation lasts five rounds and ends early once the trailing
side cannot catch up; a level shootout then goes to sudden death, one kick each
per round, until a round ends with the scores apart or the round cap is hit.
"""

from __future__ import annotations

import random
from typing import Iterable, Iterator

from .config import COIN_SIDES, MAX_SHOOTOUT_ROUNDS, REGULATION_ROUNDS
from .logging_config import get_logger
from .models import (
    COMPLETE,
    REGULATION,
    SUDDEN_DEATH,
    ContestantId,
    ShootoutAttempt,
    ShootoutOutcome,
    ShootoutStatus,
)
from .narrative import describe_attempt

logger = get_logger(__name__)


def flip_coin(rng: random.Random | None = None) -> str:
    rng = rng or random.Random()
    return COIN_SIDES[0] if rng.random() < 0.5 else COIN_SIDES[1]


def _validate_contestants(contestant1_id: ContestantId, contestant2_id: ContestantId) -> None:
    if contestant1_id is None or contestant2_id is None or contestant1_id == "" or contestant2_id == "":
        raise ValueError("Both contestant ids are required for a penalty shootout")
    if contestant1_id == contestant2_id:
        raise ValueError("Penalty shootout contestants must be different")


def _validate_call(call: str) -> None:
    if call not in COIN_SIDES:
        raise ValueError(f'Call must be "heads" or "tails", got {call!r}')


def _validate_rounds(regulation_rounds: int, max_rounds: int) -> None:
    if regulation_rounds < 1:
        raise ValueError("regulation_rounds must be >= 1")
    if max_rounds < regulation_rounds:
        raise ValueError("max_rounds must be >= regulation_rounds")


def _phase_for_round(round_number: int, regulation_rounds: int) -> str:
    return REGULATION if round_number <= regulation_rounds else SUDDEN_DEATH


def _round_decided(round_number: int, score1: int, score2: int, regulation_rounds: int) -> bool:
    """Check a completed round: early elimination in regulation, any gap in sudden death."""
    if round_number <= regulation_rounds:
        remaining = regulation_rounds - round_number
        return score1 > score2 + remaining or score2 > score1 + remaining
    return score1 != score2


def _winner(
    contestant1_id: ContestantId,
    contestant2_id: ContestantId,
    score1: int,
    score2: int,
) -> ContestantId | None:
    if score1 > score2:
        return contestant1_id
    if score2 > score1:
        return contestant2_id
    return None


def _take_kick(
    sequence_number: int,
    contestant_id: ContestantId,
    round_number: int,
    call: str,
    rng: random.Random,
    regulation_rounds: int,
) -> ShootoutAttempt:
    outcome = flip_coin(rng)
    scored = call == outcome
    return ShootoutAttempt(
        sequence_number=sequence_number,
        contestant_id=contestant_id,
        round_number=round_number,
        call=call,
        outcome=outcome,
        scored=scored,
        narrative=describe_attempt(scored, call, outcome, rng),
        phase=_phase_for_round(round_number, regulation_rounds),
    )


class ShootoutResolver:
    """Runs a whole shootout in one call."""

    def __init__(
        self,
        rng: random.Random | None = None,
        regulation_rounds: int = REGULATION_ROUNDS,
        max_rounds: int = MAX_SHOOTOUT_ROUNDS,
    ) -> None:
        _validate_rounds(regulation_rounds, max_rounds)
        self._rng = rng or random.Random()
        self.regulation_rounds = regulation_rounds
        self.max_rounds = max_rounds

    def _next_call(self, calls: Iterator[str] | None) -> str:
        if calls is not None:
            call = next(calls, None)
            if call is not None:
                _validate_call(call)
                return call
        return flip_coin(self._rng)

    def resolve(
        self,
        contestant1_id: ContestantId,
        contestant2_id: ContestantId,
        calls: Iterable[str] | None = None,
    ) -> ShootoutOutcome:
        _validate_contestants(contestant1_id, contestant2_id)
        call_iter = iter(calls) if calls is not None else None
        attempts: list[ShootoutAttempt] = []

        def kick(contestant_id: ContestantId, round_number: int) -> int:
            attempt = _take_kick(
                sequence_number=len(attempts) + 1,
                contestant_id=contestant_id,
                round_number=round_number,
                call=self._next_call(call_iter),
                rng=self._rng,
                regulation_rounds=self.regulation_rounds,
            )
            attempts.append(attempt)
            return 1 if attempt.scored else 0

        score1 = 0
        score2 = 0
        decided = False
        for round_number in range(1, self.regulation_rounds + 1):
            score1 += kick(contestant1_id, round_number)
            score2 += kick(contestant2_id, round_number)
            if _round_decided(round_number, score1, score2, self.regulation_rounds):
                decided = True
                break

        round_number = self.regulation_rounds + 1
        while not decided and round_number <= self.max_rounds:
            score1 += kick(contestant1_id, round_number)
            score2 += kick(contestant2_id, round_number)
            decided = score1 != score2
            round_number += 1

        winner = _winner(contestant1_id, contestant2_id, score1, score2)
        if winner is None:
            logger.info(
                "Shootout %s vs %s still level at %d-%d after %d rounds; left unresolved",
                contestant1_id,
                contestant2_id,
                score1,
                score2,
                self.max_rounds,
            )
        else:
            logger.debug(
                "Shootout %s vs %s won by %s %d-%d in %d attempts",
                contestant1_id,
                contestant2_id,
                winner,
                score1,
                score2,
                len(attempts),
            )
        return ShootoutOutcome(
            contestant1_id=contestant1_id,
            contestant2_id=contestant2_id,
            attempts=tuple(attempts),
            contestant1_score=score1,
            contestant2_score=score2,
            winner_contestant_id=winner,
        )


def resolve_shootout_automatic(
    contestant1_id: ContestantId,
    contestant2_id: ContestantId,
    rng: random.Random | None = None,
) -> ShootoutOutcome:
    return ShootoutResolver(rng=rng).resolve(contestant1_id, contestant2_id)


def resolve_shootout_attempt(
    prior_attempts: Iterable[ShootoutAttempt],
    contestant_id: ContestantId,
    round_index: int,
    call: str,
    rng: random.Random | None = None,
    regulation_rounds: int = REGULATION_ROUNDS,
    max_rounds: int = MAX_SHOOTOUT_ROUNDS,
) -> ShootoutAttempt:
    """Resolve one kick of an interactive shootout.

    Only turn order is checked here; whether the shootout is already over is
    decided by ``evaluate_shootout`` over the accumulated attempts.
    """
    _validate_call(call)
    if contestant_id is None or contestant_id == "":
        raise ValueError("A contestant id is required for a penalty attempt")
    prior = list(prior_attempts)
    sequence_number = len(prior) + 1
    if sequence_number > max_rounds * 2:
        raise ValueError("Maximum penalty attempts reached")
    expected_round = (sequence_number + 1) // 2
    if round_index != expected_round:
        raise ValueError(f"Attempt {sequence_number} belongs to round {expected_round}, not round {round_index}")
    if prior:
        opener = prior[0].contestant_id
        if sequence_number % 2 == 1 and contestant_id != opener:
            raise ValueError(f"Contestant {opener} opens every round")
        if sequence_number % 2 == 0:
            if contestant_id == opener:
                raise ValueError(f"Contestant {opener} has already kicked in round {expected_round}")
            if len(prior) >= 2 and contestant_id != prior[1].contestant_id:
                raise ValueError(f"Contestant {prior[1].contestant_id} takes the second kick of every round")

    rng = rng or random.Random()
    return _take_kick(
        sequence_number=sequence_number,
        contestant_id=contestant_id,
        round_number=round_index,
        call=call,
        rng=rng,
        regulation_rounds=regulation_rounds,
    )


def evaluate_shootout(
    attempts: Iterable[ShootoutAttempt],
    contestant1_id: ContestantId,
    contestant2_id: ContestantId,
    regulation_rounds: int = REGULATION_ROUNDS,
    max_rounds: int = MAX_SHOOTOUT_ROUNDS,
) -> ShootoutStatus:
    """Derive scores, phase and turn from a recorded attempt log."""
    _validate_contestants(contestant1_id, contestant2_id)
    _validate_rounds(regulation_rounds, max_rounds)
    log = list(attempts)
    score1 = 0
    score2 = 0

    for index, attempt in enumerate(log):
        expected = contestant1_id if index % 2 == 0 else contestant2_id
        if attempt.contestant_id != expected:
            raise ValueError(
                f"Attempt {attempt.sequence_number} was taken by {attempt.contestant_id}, expected {expected}"
            )
        if attempt.scored:
            if attempt.contestant_id == contestant1_id:
                score1 += 1
            else:
                score2 += 1

        if index % 2 == 0:
            continue
        round_number = (index + 1) // 2
        if _round_decided(round_number, score1, score2, regulation_rounds) or round_number >= max_rounds:
            if index + 1 < len(log):
                raise ValueError(f"Attempts recorded after the shootout finished in round {round_number}")
            return ShootoutStatus(
                phase=COMPLETE,
                round_number=round_number,
                contestant1_score=score1,
                contestant2_score=score2,
                attempts_taken=len(log),
                winner_contestant_id=_winner(contestant1_id, contestant2_id, score1, score2),
            )

    next_round = len(log) // 2 + 1
    return ShootoutStatus(
        phase=_phase_for_round(next_round, regulation_rounds),
        round_number=next_round,
        contestant1_score=score1,
        contestant2_score=score2,
        attempts_taken=len(log),
        next_contestant_id=contestant1_id if len(log) % 2 == 0 else contestant2_id,
    )


class InteractiveShootout:
    """Turn-by-turn shootout where the caller supplies every call."""

    def __init__(
        self,
        contestant1_id: ContestantId,
        contestant2_id: ContestantId,
        rng: random.Random | None = None,
        regulation_rounds: int = REGULATION_ROUNDS,
        max_rounds: int = MAX_SHOOTOUT_ROUNDS,
    ) -> None:
        _validate_contestants(contestant1_id, contestant2_id)
        _validate_rounds(regulation_rounds, max_rounds)
        self.contestant1_id = contestant1_id
        self.contestant2_id = contestant2_id
        self.regulation_rounds = regulation_rounds
        self.max_rounds = max_rounds
        self.attempts: list[ShootoutAttempt] = []
        self._rng = rng or random.Random()

    def status(self) -> ShootoutStatus:
        return evaluate_shootout(
            self.attempts,
            self.contestant1_id,
            self.contestant2_id,
            regulation_rounds=self.regulation_rounds,
            max_rounds=self.max_rounds,
        )

    def take_attempt(self, call: str, contestant_id: ContestantId | None = None) -> ShootoutAttempt:
        status = self.status()
        if status.is_complete:
            raise ValueError("Penalty shootout is already complete")
        if contestant_id is not None and contestant_id != status.next_contestant_id:
            raise ValueError(f"It is contestant {status.next_contestant_id}'s turn")
        attempt = resolve_shootout_attempt(
            self.attempts,
            status.next_contestant_id,
            status.round_number,
            call,
            rng=self._rng,
            regulation_rounds=self.regulation_rounds,
            max_rounds=self.max_rounds,
        )
        self.attempts.append(attempt)
        return attempt

    def outcome(self) -> ShootoutOutcome:
        status = self.status()
        if not status.is_complete:
            raise ValueError("Penalty shootout is still in progress")
        return ShootoutOutcome(
            contestant1_id=self.contestant1_id,
            contestant2_id=self.contestant2_id,
            attempts=tuple(self.attempts),
            contestant1_score=status.contestant1_score,
            contestant2_score=status.contestant2_score,
            winner_contestant_id=status.winner_contestant_id,
        )
